"""Dependency-injection helpers.

Functions declare collaborators as `di.Provide["dotted.path"]` defaults.
Booting the container wires every viva package, so the defaults resolve at
call time; an explicit argument always wins, which is how tests pass their
own session.
"""

from __future__ import annotations

__all__ = [
    "Manage",
    "NotReady",
    "Provide",
    "as_",
    "inject",
]

import functools
import typing as t

import dependency_injector.wiring as wiring
from dependency_injector.containers import Container
from dependency_injector.providers import Provider
from dependency_injector.wiring import ClassGetItemMeta, Closing, Provide, TypeModifier

P = t.ParamSpec("P")
R = t.TypeVar("R")
T = t.TypeVar("T")


def inject(fn: t.Callable[P, R]) -> t.Callable[P, R]:
    patched = wiring.inject(fn)
    # FastAPI resolves postponed annotations against the handler's globals,
    # which must be the route module's, not the wiring module's
    if fn.__module__.startswith("viva.web") and hasattr(fn, "__globals__"):
        return functools.wraps(fn, updated=("__globals__",))(patched)
    return patched


class Manage(object, metaclass=ClassGetItemMeta):
    """`Depends(di.Manage["storage.persistent.session"])` hands a route a
    resource that is closed once the request is finished with it."""

    def __new__(cls, provider: Provider[T] | Container | str):
        return Closing[Provide[provider]]

    @classmethod
    def __class_getitem__(cls, item: Provider[T] | Container | str):
        return cls(item)


def as_(type_: type[T]) -> TypeModifier:
    """Typed stand-in for `wiring.as_`: `di.Provide["config.web", di.as_(WebSettings)]`"""
    return TypeModifier(type_)


class NotReady(object):
    """Placeholder held by providers until the container has been booted"""

    _instance: t.ClassVar[NotReady | None] = None

    def __new__(cls) -> NotReady:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<NotReady>"
