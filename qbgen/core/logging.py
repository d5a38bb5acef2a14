import logging
import sys
from typing import IO, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [target=%(target)s stage=%(stage)s] - %(message)s"

# Third-party loggers that echo every statement or pool checkout at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "asyncio")


class ContextFormatter(logging.Formatter):
    """Formatter that fills in the optional target and stage fields."""
    def format(self, record):
        if not hasattr(record, 'target'):
            record.target = '-'
        if not hasattr(record, 'stage'):
            record.stage = '-'
        return super().format(record)


class GenerationLogAdapter(logging.LoggerAdapter):
    """Stamps every record with the generation target and its current stage.

    The engine moves ``stage`` forward as it runs, so records logged from one
    generation carry the stage they were emitted in without each call site
    passing ``extra``.
    """

    def __init__(self, logger: logging.Logger, target: str, stage: str = '-'):
        super().__init__(logger, {"target": target})
        self.stage = stage

    def process(self, msg, kwargs):
        extra = {"target": self.extra["target"], "stage": self.stage}
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    """Send logs to stderr so stdout carries only the command's summary line."""
    level = level.upper()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )
    if logging.getLevelName(level) != logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
