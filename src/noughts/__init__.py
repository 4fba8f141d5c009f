"""Noughts and crosses package exposing game rules, the minimax AI, and the web application."""

from .ai import MinimaxAI, heuristic_search, search
from .game import IllegalMoveError, InvalidBoardError, apply_move, new_board
from .ui import app

__all__ = [
    "IllegalMoveError",
    "InvalidBoardError",
    "MinimaxAI",
    "app",
    "apply_move",
    "heuristic_search",
    "new_board",
    "search",
]
