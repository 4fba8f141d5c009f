"""Shared fixtures for the noughts test suite."""

from __future__ import annotations

from typing import Set

import pytest

from noughts.game import Board, apply_move, is_terminal, legal_moves, new_board


def _walk_reachable() -> Set[Board]:
    seen: Set[Board] = set()
    stack = [new_board()]
    while stack:
        board = stack.pop()
        if board in seen:
            continue
        seen.add(board)
        if not is_terminal(board):
            stack.extend(apply_move(board, move) for move in legal_moves(board))
    return seen


@pytest.fixture(scope="session")
def reachable_boards() -> Set[Board]:
    """Every position reachable from the empty board by legal play."""
    return _walk_reachable()
