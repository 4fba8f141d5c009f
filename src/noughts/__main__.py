"""Entry point for running the game via ``python -m noughts``."""

from __future__ import annotations

import logging
import os

import uvicorn

from . import ui


def main() -> None:
    """Start the FastAPI-powered noughts and crosses web server."""

    host = os.environ.get("NOUGHTS_HOST", "0.0.0.0")
    port = int(os.environ.get("NOUGHTS_PORT", "8000"))
    log_level = os.environ.get("NOUGHTS_LOG_LEVEL", "info").lower()
    delay = os.environ.get("NOUGHTS_AI_DELAY")

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if delay is not None:
        seconds = max(0.0, float(delay))
        ui.AI_THINK_DELAY = (seconds, seconds)

    uvicorn.run(ui.app, host=host, port=port, log_level=log_level, reload=False)


if __name__ == "__main__":
    main()
