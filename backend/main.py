from __future__ import annotations

import logging
import sys

import uvicorn

from app import ConfigurationError, create_application, get_settings
from app.core.logging import configure_logging

logger = logging.getLogger("init")


def run() -> None:
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        configure_logging()
        logger.critical("%s", exc)
        sys.exit(1)

    configure_logging(settings.log_level)
    app = create_application(settings)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
