"""Core rules for noughts and crosses on a single 3x3 board."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Board = Tuple[str, ...]

EMPTY = " "
PLAYERS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class IllegalMoveError(ValueError):
    """Raised when a move targets an occupied cell or lies off the board."""


class InvalidBoardError(ValueError):
    """Raised when a board could not have been produced by a legal game."""


@dataclass(frozen=True)
class Outcome:
    winner: Optional[Player] = None
    drawn: bool = False

    @property
    def in_progress(self) -> bool:
        return self.winner is None and not self.drawn


# ---------- Queries ----------
#
# Any cell that is not an "X" or "O" mark counts as empty, so raw client
# boards using "" for blanks query the same as parsed ones.


def new_board() -> Board:
    return (EMPTY,) * BOARD_SIZE


def occupied_count(board: Sequence[str]) -> int:
    return sum(1 for c in board if c in PLAYERS)


def legal_moves(board: Sequence[str]) -> List[int]:
    """Empty cell indices in ascending order (search tie-breaks depend on it)."""
    return [i for i, c in enumerate(board) if c not in PLAYERS]


def next_player(board: Sequence[str]) -> Player:
    # X always opens, so the parity of the occupied count decides the turn
    return "X" if occupied_count(board) % 2 == 0 else "O"


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


def winner(board: Sequence[str]) -> Optional[Player]:
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v in PLAYERS and v == board[b] == board[c]:
            return v
    return None


def is_terminal(board: Sequence[str]) -> bool:
    return winner(board) is not None or occupied_count(board) == BOARD_SIZE


def utility(board: Sequence[str]) -> int:
    """+1 if X has won, -1 if O has won, 0 for anything else.

    Only meaningful on terminal boards; an unfinished game also scores 0.
    """
    w = winner(board)
    if w == "X":
        return 1
    if w == "O":
        return -1
    return 0


def outcome(board: Sequence[str]) -> Outcome:
    w = winner(board)
    if w is not None:
        return Outcome(winner=w)
    if occupied_count(board) == BOARD_SIZE:
        return Outcome(drawn=True)
    return Outcome()


def status_text(board: Sequence[str]) -> str:
    result = outcome(board)
    if result.winner:
        return f"Winner: {result.winner}"
    if result.drawn:
        return "Draw"
    return f"Next player: {next_player(board)}"


# ---------- Transitions ----------


def apply_move(board: Sequence[str], move: int) -> Board:
    """Return the board after the player to move marks ``move``.

    The input is never mutated.
    """
    if isinstance(move, bool) or not isinstance(move, int):
        raise IllegalMoveError(f"Move must be a cell index, got {move!r}")
    if not 0 <= move < BOARD_SIZE:
        raise IllegalMoveError(f"Cell {move} is off the board")
    if board[move] in PLAYERS:
        raise IllegalMoveError(f"Cell {move} is already occupied")
    cells = list(board)
    cells[move] = next_player(board)
    return tuple(cells)


# ---------- Validation ----------


def parse_board(cells: Iterable[Optional[str]]) -> Board:
    """Normalise caller input into a board snapshot.

    Accepts ``""`` and ``None`` for empty cells, as sent by the web client.
    """
    parsed: List[str] = []
    for index, cell in enumerate(cells):
        if cell is None or cell == "" or cell == EMPTY:
            parsed.append(EMPTY)
        elif cell in PLAYERS:
            parsed.append(cell)
        else:
            raise InvalidBoardError(f"Unknown mark {cell!r} at cell {index}")
    if len(parsed) != BOARD_SIZE:
        raise InvalidBoardError(
            f"Board must have {BOARD_SIZE} cells, got {len(parsed)}"
        )
    return tuple(parsed)


def validate_board(cells: Iterable[Optional[str]]) -> Board:
    """Parse ``cells`` and reject positions no legal game can reach."""
    board = parse_board(cells)
    x_count = board.count("X")
    o_count = board.count("O")
    # X goes first, so X is level with O or one ahead
    if x_count - o_count not in (0, 1):
        raise InvalidBoardError(
            f"Impossible mark counts: X={x_count}, O={o_count}"
        )
    line_owners = {
        board[a]
        for a, b, c in WINNING_LINES
        if board[a] != EMPTY and board[a] == board[b] == board[c]
    }
    if len(line_owners) > 1:
        raise InvalidBoardError("Both players have a completed line")
    return board
