import logging

from core.config import get_settings


def setup_logging() -> None:
    """Configure the root logger from settings.

    Safe to call more than once: if the root logger already has handlers
    (uvicorn, pytest) only the level is applied.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(settings.log_format))
    root.addHandler(console)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
