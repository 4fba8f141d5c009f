"""Exhaustive minimax search and a win/block shortcut for noughts and crosses."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional, Sequence, Tuple
import logging
import math

from .game import (
    PLAYERS,
    WINNING_LINES,
    Board,
    Player,
    apply_move,
    is_terminal,
    legal_moves,
    next_player,
    occupied_count,
    opponent,
    utility,
    validate_board,
)

logger = logging.getLogger(__name__)

SearchResult = Tuple[int, Optional[int]]

CENTER = 4


# ---------- Tactical shortcut ----------


def find_completing_move(board: Sequence[str], player: Player) -> Optional[int]:
    """Return the cell that completes a line for ``player``, if any.

    Lines are scanned in ``WINNING_LINES`` order and the first line holding two
    of ``player``'s marks plus one empty cell wins the tie-break.
    """
    for line in WINNING_LINES:
        trio = [board[i] for i in line]
        empty = [i for i, v in zip(line, trio) if v not in PLAYERS]
        if trio.count(player) == 2 and len(empty) == 1:
            return empty[0]
    return None


# ---------- Full search ----------


@lru_cache(maxsize=None)
def _minimax(board: Board) -> SearchResult:
    if is_terminal(board):
        return utility(board), None

    # X maximises, O minimises, matching the sign of utility()
    maximizing = next_player(board) == "X"
    target = 1 if maximizing else -1
    value = -math.inf if maximizing else math.inf
    best_move: Optional[int] = None

    for move in legal_moves(board):
        score, _ = _minimax(apply_move(board, move))
        if (score > value) if maximizing else (score < value):
            value, best_move = score, move
            if value == target:
                break

    return int(value), best_move


def search(board: Sequence[str]) -> SearchResult:
    """Return ``(value, move)`` for the player to move under perfect play.

    ``value`` follows the utility convention (+1 X wins, -1 O wins, 0 draw).
    Among equally good moves the lowest index is chosen. Terminal boards give
    ``(utility, None)``.
    """
    position = validate_board(board)
    value, move = _minimax(position)
    logger.debug("minimax: %s -> value=%d move=%s", "".join(position), value, move)
    return value, move


# ---------- Shortcut search ----------


def heuristic_search(board: Sequence[str]) -> SearchResult:
    """Like :func:`search`, but answers obvious positions without a full search.

    Opens in the centre, takes an immediate win, or blocks the opponent's
    immediate win before falling back to minimax. The value is always the
    game-theoretic one; the chosen cell may differ from :func:`search` when
    several moves are equally good.
    """
    position = validate_board(board)
    if is_terminal(position):
        return utility(position), None

    if occupied_count(position) == 0:
        value, _ = _minimax(apply_move(position, CENTER))
        logger.debug("heuristic: opening in the centre")
        return value, CENTER

    me = next_player(position)
    win = find_completing_move(position, me)
    if win is not None:
        logger.debug("heuristic: %s wins at %d", me, win)
        return (1 if me == "X" else -1), win

    block = find_completing_move(position, opponent(me))
    if block is not None:
        value, _ = _minimax(apply_move(position, block))
        logger.debug("heuristic: %s blocks at %d", me, block)
        return value, block

    return search(position)


STRATEGIES: Dict[str, Callable[[Sequence[str]], SearchResult]] = {
    "minimax": search,
    "heuristic": heuristic_search,
}
DEFAULT_STRATEGY = "minimax"


def clear_cache() -> None:
    """Drop memoised search results."""
    _minimax.cache_clear()


# ---------- Player ----------


@dataclass
class MinimaxAI:
    """Computer opponent that picks its move with one of ``STRATEGIES``.

    - MinimaxAI(player="O", strategy="minimax")
    - choose(board) -> (value, cell_index)
    """

    player: Player
    strategy: str = DEFAULT_STRATEGY

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {self.strategy!r}")

    def choose(self, board: Sequence[str]) -> SearchResult:
        if next_player(board) != self.player:
            raise ValueError("It is not this AI player's turn")
        return STRATEGIES[self.strategy](board)
