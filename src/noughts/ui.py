"""FastAPI-powered web UI for playing noughts and crosses in the browser."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import DEFAULT_STRATEGY, STRATEGIES, MinimaxAI
from .game import (
    EMPTY,
    PLAYERS,
    Board,
    Player,
    apply_move,
    is_terminal,
    legal_moves,
    new_board,
    next_player,
    outcome,
    status_text,
    validate_board,
)

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active game and its optional AI opponent.

    The player to move is always derived from ``board``; no turn flag is kept.
    """

    board: Board = field(default_factory=new_board)
    ai: Optional[MinimaxAI] = None
    strategy: str = DEFAULT_STRATEGY
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    last_active: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def ai_to_move(self) -> bool:
        return (
            self.ai is not None
            and not is_terminal(self.board)
            and next_player(self.board) == self.ai.player
        )


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="Noughts and Crosses",
    description="Tic-tac-toe against a minimax opponent, played in the browser",
)


ALLOWED_STRATEGIES: Tuple[str, ...] = tuple(STRATEGIES)
AI_THINK_DELAY: Tuple[float, float] = (0.5, 0.5)
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes


def _check_strategy(value: str) -> str:
    if value not in ALLOWED_STRATEGIES:
        raise ValueError(
            f"Unsupported strategy {value!r}. "
            f"Choose one of {', '.join(ALLOWED_STRATEGIES)}."
        )
    return value


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    strategy: str = Field(
        default=DEFAULT_STRATEGY,
        description="Search strategy used by the AI opponent",
    )
    ai_player: Optional[Player] = Field(
        default="O",
        alias="aiPlayer",
        description="Mark played by the AI, or null for two human players",
    )

    @field_validator("strategy")
    @classmethod
    def ensure_supported_strategy(cls, value: str) -> str:
        return _check_strategy(value)

    @field_validator("ai_player")
    @classmethod
    def ensure_player(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in PLAYERS:
            raise ValueError("aiPlayer must be 'X', 'O' or null")
        return value


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    cell: int = Field(ge=0, le=8)
    player: Optional[Player] = Field(
        default=None,
        description="Client's view of whose turn it is; checked, never trusted",
    )


class AnalyzeRequest(BaseModel):
    """Request payload for a one-off evaluation of a board."""

    board: List[Optional[str]]
    strategy: str = DEFAULT_STRATEGY

    @field_validator("strategy")
    @classmethod
    def ensure_supported_strategy(cls, value: str) -> str:
        return _check_strategy(value)


def _cleanup_sessions() -> None:
    """Remove sessions idle for longer than the TTL with no AI move in flight."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if not session.ai_pending
        and now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Expired %d idle game(s)", len(expired))


def _create_session(strategy: str, ai_player: Optional[Player]) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    ai = MinimaxAI(player=ai_player, strategy=strategy) if ai_player else None
    session = GameSession(ai=ai, strategy=strategy)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (ai=%s, strategy=%s)", session_id, ai_player, strategy
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not session.ai_to_move():
                return
            player = session.ai.player
            value, cell = session.ai.choose(session.board)
            if cell is None:
                return
            session.board = apply_move(session.board, cell)
            session.move_log.append({"player": player, "cell": cell})
            logger.info(
                "Game %s: AI %s played %d (value %d)", game_id, player, cell, value
            )
        except Exception:
            logger.exception("Game %s: AI turn failed", game_id)
        finally:
            session.ai_pending = False


def _schedule_ai_turn(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    # Caller holds session.lock
    if not session.ai_to_move():
        return
    session.ai_pending = True
    if background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        board = session.board
        result = outcome(board)
        state: Dict[str, object] = {
            "id": game_id,
            "cells": [c if c != EMPTY else "" for c in board],
            "currentPlayer": None if is_terminal(board) else next_player(board),
            "winner": result.winner,
            "drawn": result.drawn,
            "status": status_text(board),
            "legalMoves": [] if is_terminal(board) else legal_moves(board),
            "aiPlayer": session.ai.player if session.ai else None,
            "strategy": session.strategy,
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell: int,
    claimed_player: Optional[Player] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        board = session.board
        if is_terminal(board):
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        player = next_player(board)
        if claimed_player is not None and claimed_player != player:
            raise HTTPException(
                status_code=409,
                detail=f"Turn out of sync: it is {player}'s move",
            )

        if session.ai and session.ai.player == player:
            raise HTTPException(status_code=400, detail="It is the AI's turn")

        try:
            session.board = apply_move(board, cell)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "cell": cell})
        _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request.strategy, request.ai_player)
    with session.lock:
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(
        game_id, session, request.cell, request.player, background_tasks
    )
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        session.board = new_board()
        session.move_log.clear()
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/analyze")
def analyze(request: AnalyzeRequest) -> Dict[str, object]:
    try:
        board = validate_board(request.board)
        value, move = STRATEGIES[request.strategy](board)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = outcome(board)
    terminal = is_terminal(board)
    return {
        "nextPlayer": None if terminal else next_player(board),
        "winner": result.winner,
        "drawn": result.drawn,
        "terminal": terminal,
        "legalMoves": [] if terminal else legal_moves(board),
        "value": value,
        "move": move,
        "strategy": request.strategy,
        "status": status_text(board),
    }


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Noughts and Crosses</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(480px, 100%);
      }
      h1 {
        margin: 0 0 1.25rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .controls {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
        align-items: center;
        margin-bottom: 1.5rem;
      }
      button,
      select {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      button:disabled {
        cursor: default;
        opacity: 0.6;
      }
      #status {
        text-align: center;
        font-weight: 600;
        margin-bottom: 0.5rem;
      }
      #message {
        text-align: center;
        min-height: 1.4rem;
        color: #b3261e;
        margin-bottom: 0.75rem;
      }
      .board-grid {
        position: relative;
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        max-width: 320px;
        margin: 0 auto;
      }
      .board-grid.thinking::after {
        content: '';
        position: absolute;
        inset: 0;
        background: rgba(255, 255, 255, 0.55);
        border-radius: 16px;
        pointer-events: none;
      }
      .cell {
        aspect-ratio: 1;
        border-radius: 14px;
        font-size: 2.6rem;
        font-weight: 700;
      }
      .cell.x {
        color: #ff4f64;
      }
      .cell.o {
        color: #3a7bff;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Noughts &amp; Crosses</h1>
      <div class=\"controls\">
        <label for=\"strategy\">AI</label>
        <select id=\"strategy\">
          <option value=\"minimax\" selected>Full minimax</option>
          <option value=\"heuristic\">Win/block shortcut</option>
        </select>
        <select id=\"ai-player\">
          <option value=\"O\" selected>AI plays O</option>
          <option value=\"X\">AI plays X</option>
          <option value=\"\">Two players</option>
        </select>
        <button id=\"new-game\">New game</button>
        <button id=\"reset\" disabled>Reset</button>
      </div>
      <div id=\"status\">Start a new game.</div>
      <div id=\"message\" role=\"status\"></div>
      <div id=\"board\" class=\"board-grid\"></div>
    </main>
    <script>
      const boardContainer = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const strategyEl = document.getElementById('strategy');
      const aiPlayerEl = document.getElementById('ai-player');
      const newGameButton = document.getElementById('new-game');
      const resetButton = document.getElementById('reset');

      let gameId = null;
      let gameState = null;
      let isRequestPending = false;
      let aiPollHandle = null;

      function stopAiPolling() {
        if (aiPollHandle !== null) {
          clearTimeout(aiPollHandle);
          aiPollHandle = null;
        }
      }

      function ensureAiPolling() {
        if (aiPollHandle === null) {
          aiPollHandle = setTimeout(pollAiState, 250);
        }
      }

      async function request(url, body) {
        const response = await fetch(url, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body || {}),
        });
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          const detail = typeof payload?.detail === 'string' ? payload.detail : 'Request failed';
          throw new Error(detail);
        }
        return response.json();
      }

      async function startGame() {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        stopAiPolling();
        try {
          const aiPlayer = aiPlayerEl.value || null;
          setState(await request('/api/game', { strategy: strategyEl.value, aiPlayer }));
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function resetGame() {
        if (isRequestPending || !gameId) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await request(`/api/game/${gameId}/reset`));
        } catch (error) {
          messageEl.textContent = error.message;
        } finally {
          isRequestPending = false;
        }
      }

      async function pollAiState() {
        aiPollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
          }
        } catch (error) {
          console.error('Polling failed', error);
        } finally {
          if (gameState?.aiPending) {
            ensureAiPolling();
          }
        }
      }

      async function sendMove(cell) {
        if (!gameState || isRequestPending || gameState.aiPending) return;
        if (!gameState.legalMoves.includes(cell)) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          // currentPlayer is only a hint; the server derives the turn from the board
          setState(
            await request(`/api/game/${gameId}/move`, {
              cell,
              player: gameState.currentPlayer,
            })
          );
        } catch (error) {
          messageEl.textContent = error.message;
          pollAiState();
        } finally {
          isRequestPending = false;
        }
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        resetButton.disabled = false;
        renderBoard();
        updateStatus();
        if (gameState.aiPending) {
          ensureAiPolling();
        } else {
          stopAiPolling();
        }
      }

      function renderBoard() {
        boardContainer.innerHTML = '';
        const cells = gameState ? gameState.cells : Array(9).fill('');
        cells.forEach((mark, index) => {
          const button = document.createElement('button');
          button.classList.add('cell');
          if (mark) {
            button.classList.add(mark === 'X' ? 'x' : 'o');
            button.textContent = mark;
          }
          button.disabled = !gameState || !gameState.legalMoves.includes(index);
          button.addEventListener('click', () => sendMove(index));
          boardContainer.appendChild(button);
        });
      }

      function updateStatus() {
        boardContainer.classList.toggle('thinking', Boolean(gameState?.aiPending));
        if (!gameState) {
          statusEl.textContent = 'Start a new game.';
          return;
        }
        statusEl.textContent = gameState.aiPending ? 'AI is thinking…' : gameState.status;
      }

      newGameButton.addEventListener('click', startGame);
      resetButton.addEventListener('click', resetGame);
      renderBoard();
    </script>
  </body>
</html>
"""
