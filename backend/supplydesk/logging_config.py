# Overview: Logging setup for the Flask app logger.

import logging

from flask.logging import default_handler

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"


def configure_logging(app) -> None:
    """Format Flask's default handler and set app.logger to LOG_LEVEL."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    default_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app.logger.setLevel(level)
