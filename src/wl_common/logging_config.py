"""Process-wide logging setup.

LOG_ENV selects the root level:
    local -> DEBUG, dev -> INFO, prod -> ERROR
"""

import logging

_LEVELS: dict[str, int] = {
    "local": logging.DEBUG,
    "dev": logging.INFO,
    "prod": logging.ERROR,
}

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(env: str) -> None:
    """Configure the root logger. Idempotent: handlers are added only once."""
    try:
        level = _LEVELS[env]
    except KeyError:
        raise ValueError(
            f"Invalid log env: {env!r}. Must be one of 'local', 'dev', or 'prod'."
        ) from None

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    root.addHandler(handler)
