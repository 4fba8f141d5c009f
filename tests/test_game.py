"""Unit tests for the board rules."""

import pytest

from noughts.game import (
    EMPTY,
    IllegalMoveError,
    InvalidBoardError,
    apply_move,
    is_terminal,
    legal_moves,
    new_board,
    next_player,
    occupied_count,
    outcome,
    parse_board,
    status_text,
    utility,
    validate_board,
    winner,
)


DRAWN = tuple("XOXXOOOXX")


def test_reachable_position_count(reachable_boards):
    assert len(reachable_boards) == 5478


def test_next_player_follows_occupancy_parity(reachable_boards):
    for board in reachable_boards:
        expected = "X" if occupied_count(board) % 2 == 0 else "O"
        assert next_player(board) == expected


def test_terminal_iff_winner_or_full(reachable_boards):
    for board in reachable_boards:
        full = occupied_count(board) == 9
        assert is_terminal(board) == (winner(board) is not None or full)


def test_apply_move_does_not_mutate_input():
    board = [EMPTY] * 9
    board[4] = "X"
    snapshot = list(board)
    for move in legal_moves(board):
        result = apply_move(board, move)
        assert board == snapshot
        assert occupied_count(result) == occupied_count(board) + 1
        assert result[move] == "O"


def test_moves_alternate_from_x():
    board = apply_move(new_board(), 0)
    board = apply_move(board, 8)
    assert board[0] == "X"
    assert board[8] == "O"
    assert next_player(board) == "X"


def test_legal_moves_are_ascending():
    board = apply_move(apply_move(new_board(), 4), 0)
    assert legal_moves(board) == [1, 2, 3, 5, 6, 7, 8]


@pytest.mark.parametrize("move", [-1, 9, 42])
def test_off_board_move_rejected(move):
    with pytest.raises(IllegalMoveError):
        apply_move(new_board(), move)


def test_occupied_cell_rejected():
    board = apply_move(new_board(), 3)
    with pytest.raises(IllegalMoveError):
        apply_move(board, 3)


def test_non_integer_move_rejected():
    with pytest.raises(IllegalMoveError):
        apply_move(new_board(), "4")


def test_illegal_move_is_a_value_error():
    assert issubclass(IllegalMoveError, ValueError)


def test_winner_and_utility():
    x_row = parse_board(["X", "X", "X", "O", "O", "", "", "", ""])
    o_diag = parse_board(["O", "X", "X", "X", "O", "", "", "", "O"])
    assert winner(x_row) == "X"
    assert utility(x_row) == 1
    assert winner(o_diag) == "O"
    assert utility(o_diag) == -1
    assert utility(new_board()) == 0


def test_drawn_board():
    assert winner(DRAWN) is None
    assert is_terminal(DRAWN)
    assert utility(DRAWN) == 0
    result = outcome(DRAWN)
    assert result.drawn and not result.in_progress
    assert status_text(DRAWN) == "Draw"


def test_status_text():
    assert status_text(new_board()) == "Next player: X"
    assert status_text(apply_move(new_board(), 0)) == "Next player: O"
    assert status_text(tuple("XXXOO    ")) == "Winner: X"


def test_parse_board_accepts_client_empties():
    board = parse_board(["X", "", None, " ", "O", "", "", "", ""])
    assert board == ("X", EMPTY, EMPTY, EMPTY, "O", EMPTY, EMPTY, EMPTY, EMPTY)


@pytest.mark.parametrize(
    "cells",
    [
        ["X"] * 8,
        [""] * 10,
        ["X", "Q", "", "", "", "", "", "", ""],
    ],
)
def test_parse_board_rejects_malformed(cells):
    with pytest.raises(InvalidBoardError):
        parse_board(cells)


@pytest.mark.parametrize(
    "cells",
    [
        "XX       ",  # X two ahead
        "O        ",  # O moved first
        "XXXOOO   ",  # both players completed a line
    ],
)
def test_validate_board_rejects_unreachable(cells):
    with pytest.raises(InvalidBoardError):
        validate_board(cells)


def test_validate_board_accepts_reachable(reachable_boards):
    for board in reachable_boards:
        assert validate_board(board) == board


def test_client_blanks_count_as_empty():
    blank = [""] * 9
    assert winner(blank) is None
    assert not is_terminal(blank)
    assert occupied_count(blank) == 0
    assert legal_moves(blank) == list(range(9))
    assert apply_move(blank, 4)[4] == "X"

    raw = ["X", "X", "X", "O", "O", "", "", "", ""]
    assert winner(raw) == "X"
    assert next_player(raw) == "O"
