import logging

from app.config import settings


def configure_logging() -> None:
    """Configure the root logger once, using LOG_LEVEL from settings."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(settings.LOG_LEVEL.upper())
        return
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
