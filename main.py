"""
Church Calendar Bot — Entry Point.

Single entry point: `python main.py` serves the webhook and cron API.
"""

import logging

import uvicorn

from src.config import load_settings
from src.web.app import build_app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app = build_app(settings)
    logging.getLogger(__name__).info("Church Calendar Bot listening on %s:%d", settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
