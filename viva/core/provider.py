import datetime
import inspect
import logging
import logging.config
import typing as t

TimestampProvider = t.Callable[[], datetime.datetime]

# below DEBUG; per-evaluation detail from aggregation, `logger.log(TRACE, ...)`
TRACE: t.Final = 5
logging.addLevelName(TRACE, "TRACE")


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class LoggingProvider(object):
    """Container resource that applies the `logging` settings with dictConfig.

    Debug runs also route `warnings` through logging.
    """

    def __init__(self, config: dict[str, t.Any], debug: bool):
        logging.config.dictConfig(config)
        logging.captureWarnings(debug)

    @staticmethod
    def get_logger(name: str | None = None, depth: int = 1) -> logging.Logger:
        """The named logger, or the calling module's when `name` is omitted"""
        if name is None:
            caller = inspect.stack()[depth].frame
            name = caller.f_globals["__name__"]
        return logging.getLogger(name)
