"""Settings mirroring the `logging.config.dictConfig` schema.

Dumped by alias, these produce the `()` and `class` keys dictConfig expects;
`viva web serve` passes the same dump to uvicorn as its `log_config`.
"""

import typing as t

import pydantic as p

from .base import BaseSettings

LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "WARN", "ERROR", "FATAL", "CRITICAL"]


class FormatterSettings(BaseSettings):
    factory: t.Literal["viva.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str = "colorlog.ColoredFormatter"
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] | None = None
    no_color: bool = False
    indent: bool | None = None


class StreamHandlerSettings(BaseSettings):
    class_: t.Literal["colorlog.StreamHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    stream: str = "ext://sys.stderr"


class FileHandlerSettings(BaseSettings):
    class_: t.Literal["logging.FileHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    filename: str
    encoding: str = "utf-8"


HandlerSettings = t.Annotated[StreamHandlerSettings | FileHandlerSettings, p.Field(discriminator="class_")]


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] | None = None


class RootLoggerSettings(BaseSettings):
    handlers: list[str]
    level: LogLevel = "WARNING"


class LoggingSettings(BaseSettings):
    version: t.Literal[1]
    disable_existing_loggers: bool = True
    formatters: dict[str, FormatterSettings]
    handlers: dict[str, HandlerSettings]
    root: RootLoggerSettings
    loggers: dict[str, LoggerSettings] = {}

    @p.model_validator(mode="after")
    def check_references(self) -> t.Self:
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} uses undefined formatter {handler.formatter!r}")
        for name in self.root.handlers:
            if name not in self.handlers:
                raise ValueError(f"root logger uses undefined handler {name!r}")
        return self
