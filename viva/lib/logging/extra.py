import importlib
import json
import logging
import string
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from viva.lib.json import JSONEncoder, JSONValue

from .style import LogStyle

# attributes every LogRecord carries, plus those added by formatting and colorlog
ReservedKeys = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "asctime",
    "color_message",
    "exception",
    "id",
    "log_color",
    "message",
    "taskName",
}


def _load(dotted: str) -> type[logging.Formatter]:
    module, _, name = dotted.rpartition(".")
    return t.cast(type[logging.Formatter], getattr(importlib.import_module(module), name))


class ExtraFormatter(logging.Formatter):
    """Delegates to a base formatter, then appends the record's `extra={...}`
    context as sorted JSON.

    State transitions and audit writes log their identifiers through `extra`,
    so this is where they become visible. Multi-line messages are indented to
    line up under the first line's prefix.
    """

    def __init__(
        self,
        base: type[logging.Formatter] | str,
        format: str | None = None,
        datefmt: str | None = None,
        indent: bool | None = True,
        no_color: bool = False,
        pyg_style: type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        **kwargs: t.Any,
    ):
        base_cls = _load(base) if isinstance(base, str) else base
        if no_color:
            kwargs["no_color"] = True
        self.base = base_cls(format, datefmt=datefmt, style=style, validate=validate, **kwargs)
        self.pyg_style = pyg_style
        self.indent = 4 if indent else None
        self.no_color = no_color
        self.encoder = JSONEncoder()

    def format(self, record: logging.LogRecord) -> str:
        if "color_message" in record.__dict__:
            # uvicorn keeps a pre-colored copy of its message
            record.msg = record.__dict__.pop("color_message")
        self._align(record)
        message = self.base.format(record)

        extra = {k: v for k, v in record.__dict__.items() if k not in ReservedKeys}
        if not extra:
            return message
        return f"{message} {self._render(extra)}"

    def _align(self, record: logging.LogRecord) -> None:
        msg = record.getMessage()
        if "\n" not in msg:
            return
        formatted = self.base.format(record)
        prefix = formatted[: formatted.find(msg)]
        width = sum(1 for c in prefix if c in string.printable)
        first, *rest = msg.splitlines()
        record.msg = record.message = first + "\n" + textwrap.indent("\n".join(rest), " " * width)
        record.args = None

    def _encode(self, obj: t.Any) -> JSONValue:
        try:
            return self.encoder.default(obj)
        except TypeError:
            return repr(obj)

    def _render(self, extra: dict[str, t.Any]) -> str:
        js = json.dumps(extra, sort_keys=True, indent=self.indent, default=self._encode)
        if self.no_color:
            return js
        highlighted = pygments.highlight(  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            js, JsonLexer(), Terminal256Formatter(style=self.pyg_style)
        )
        return t.cast(str, highlighted).strip()

    def __getattr__(self, name: str) -> t.Any:
        return getattr(self.base, name)
