from __future__ import annotations

import logging
import os
from dataclasses import replace

import uvicorn

from taskhub.api.app import create_app
from taskhub.config import load_settings


def main() -> None:
    """
    Entry point for the taskhub API server.

    Settings come from the environment (and .env); see taskhub.config.
    """
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s",
    )
    logger = logging.getLogger(__name__)

    db_path = settings.db_path
    if not db_path.is_absolute():
        db_path = db_path.resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("taskhub starting - PID: %s", os.getpid())
    if settings.admin_email and not settings.admin_password:
        logger.warning("ADMIN_EMAIL set without ADMIN_PASSWORD; no admin will be bootstrapped")

    app = create_app(replace(settings, db_path=db_path))
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except Exception:
        logger.error("taskhub crashed - PID: %s", os.getpid(), exc_info=True)
        raise
    finally:
        logger.info("taskhub shutdown complete - PID: %s", os.getpid())


if __name__ == "__main__":
    main()
