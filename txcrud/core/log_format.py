"""
Console logging for txcrud: ``time | level | logger | message``.
"""

import logging

from txcrud.core.config import settings

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_HANDLER_NAME = "txcrud-console"


class CrudLogFormatter(logging.Formatter):
    """Pipe-separated line; structured ``extra`` fields are appended as key=value."""

    _EXTRA_KEYS = ("operation", "table", "count", "error")

    def __init__(self) -> None:
        super().__init__(fmt=_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = [
            f"{k}={getattr(record, k)}"
            for k in self._EXTRA_KEYS
            if getattr(record, k, None) is not None
        ]
        if fields:
            # Traceback (if any) stays last.
            head, sep, tail = line.partition("\n")
            line = f"{head} | {' '.join(fields)}{sep}{tail}"
        return line


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a console handler with CrudLogFormatter to the ``txcrud`` logger.

    Idempotent: calling it again only updates the level.
    """
    logger = logging.getLogger("txcrud")
    logger.setLevel(level or settings.LOG_LEVEL)
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(CrudLogFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger
