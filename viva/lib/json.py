"""JSON with encoders for the values viva stores and logs.

The engine serializes with `dumps`/`loads` for JSON columns, and log extras
go through `JSONEncoder().default`.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import functools
import json as pyjson
import pathlib
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


@functools.singledispatch
def encode(obj: t.Any) -> JSONValue:
    raise TypeError(f"{obj.__class__.__name__} is not JSON serializable")


@encode.register
def _(obj: p.BaseModel) -> JSONValue:
    return obj.model_dump(mode="json")


@encode.register(datetime.date)
@encode.register(datetime.time)
def _(obj: datetime.date | datetime.time) -> JSONValue:
    return obj.isoformat()


@encode.register(decimal.Decimal)
@encode.register(pathlib.PurePath)
def _(obj: decimal.Decimal | pathlib.PurePath) -> JSONValue:
    return str(obj)


@encode.register
def _(obj: enum.Enum) -> JSONValue:
    return obj.value


@encode.register(set)
@encode.register(frozenset)
def _(obj: set[t.Any] | frozenset[t.Any]) -> JSONValue:
    # sorted so that equal sets always serialize identically
    return sorted(obj, key=str)


class JSONEncoder(pyjson.JSONEncoder):
    def default(self, o: t.Any) -> JSONValue:
        return encode(o)


def dumps(obj: t.Any, *, cls: type[pyjson.JSONEncoder] = JSONEncoder, **kw: t.Any) -> str:
    return pyjson.dumps(obj, cls=cls, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> t.Any:
    return pyjson.loads(s, **kw)
