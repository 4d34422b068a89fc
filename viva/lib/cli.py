"""Click, plus the parameter types viva commands need.

Commands import this module as `click`, so everything Click exports is
re-exported here.
"""

from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

from viva.model.id import ShortUUIDKey

Key = t.TypeVar("Key", bound=ShortUUIDKey)


class _Converting(click.ParamType):
    """Passes `None` and already-converted values through untouched"""

    target: type

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> t.Any:
        if value is None or isinstance(value, self.target):
            return value
        try:
            return self.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)

    def parse(self, value: t.Any) -> t.Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return self.name


class EnumType(_Converting):
    """An enum member, given by value: `--env local`"""

    def __init__(self, enum_cls: type[enum.Enum]):
        self.target = enum_cls
        self.name = enum_cls.__name__

    def parse(self, value: str) -> enum.Enum:
        try:
            return self.target(value)
        except ValueError:
            choices = ", ".join(str(m.value) for m in self.target)
            raise ValueError(f"{value!r} is not a {self.name}; choose from {choices}") from None


class KeyType(_Converting):
    """A prefixed key of one kind, e.g. `KeyType(EvaluationID)` accepts `eval$...`"""

    def __init__(self, key_cls: type[Key]):
        self.target = key_cls
        self.name = key_cls.__name__

    def parse(self, value: str) -> ShortUUIDKey:
        return self.target(value.strip())


class URIParamType(click.ParamType):
    """A URI, or a filesystem path taken as a `file://` URI.

    `file_ok=False` rejects file URIs entirely. When `file_exists` is set the
    path must exist, and it may name a directory only when `dir_ok` is set.
    """

    def __init__(self, file_ok: bool = True, dir_ok: bool = False, file_exists: bool = True):
        self.file_ok = file_ok
        self.dir_ok = dir_ok
        self.file_exists = file_exists
        self.name = "URI OR PATH" if file_ok else "URI"

    def convert(
        self, value: str | pathlib.Path | p.AnyUrl | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.AnyUrl | None:
        if value is None or isinstance(value, p.AnyUrl):
            return value

        text = str(value)
        if isinstance(value, str) and "://" in text:
            url = p.AnyUrl(text)
            if url.scheme != "file":
                return url
            if url.path is None:
                self.fail("file path not specified", param, ctx)
            path = pathlib.Path(url.path)
        else:
            path = pathlib.Path(text)

        if not self.file_ok:
            self.fail("file URL not allowed", param, ctx)
        if self.file_exists:
            if not path.exists():
                self.fail(f"{text}: no such file or directory", param, ctx)
            if path.is_dir() and not self.dir_ok:
                self.fail("directory path not accepted", param, ctx)
        return p.FileUrl(f"file://{path.absolute()}")
