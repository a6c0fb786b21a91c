"""Application bootstrap for the Feedback Sentiment Analyzer.

This module serves the FastAPI application with uvicorn when executed as a
script. Keeping the runtime bootstrap here (instead of in ``src/app.py``)
ensures the app module can be safely imported by unit tests and tooling
without side-effects.
"""
from __future__ import annotations

import uvicorn

from src.app import get_settings, logger


def main() -> None:  # pragma: no cover
    """Serve the API until the process receives a termination signal."""

    settings = get_settings()
    if not settings.openai_api_key:
        logger.warning(
            "OPENAI_API_KEY is not set; analysis endpoints will fail until it is."
        )

    logger.info("Starting server on %s:%d", settings.host, settings.port)
    try:
        uvicorn.run(
            "src.app:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:  # pragma: no cover
        logger.info("Shutdown requested (KeyboardInterrupt). Exiting…")
    finally:
        logger.info("Goodbye.")


if __name__ == "__main__":  # pragma: no cover
    main()
