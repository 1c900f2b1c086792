"""Logging configuration shared by the bot and media-host entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s  %(name)s  %(levelname)s  %(message)s"

# Logger of the platform REST client; mirrors a separate SDK log level.
SDK_LOGGER = "app.streambot.platform"


def configure_logging(level: str = "INFO", sdk_level: str = "WARNING") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("app.streambot").setLevel(level)
    logging.getLogger(SDK_LOGGER).setLevel(sdk_level)
