"""Prefixed short-UUID keys.

A key reads `eval$<22 shortuuid characters>`. Only the 22-character part is
stored in the database; the prefix keeps key kinds apart in URLs, logs and
JSON payloads, so passing a schedule key where an evaluation key belongs fails
at parse time.
"""

from __future__ import annotations

import typing as t

import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KeyLength = 22
Alphabet = frozenset(shortuuid.get_alphabet())


class ShortUUIDKey(str):
    prefix: t.ClassVar[str]
    separator: t.ClassVar[str] = "$"

    def __init_subclass__(cls, prefix: str, separator: str = "$", **kwargs: t.Any) -> None:
        super().__init_subclass__(**kwargs)
        if len(prefix) < 4 or not prefix.isalpha():
            raise TypeError(f"{cls.__name__}: prefix must be at least four letters, got {prefix!r}")
        if len(separator) != 1:
            raise TypeError(f"{cls.__name__}: separator must be a single character")
        cls.prefix = prefix
        cls.separator = separator

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        """Parse a full prefixed key, wrap a bare stored `key`, or mint a new one.

        `key` is trusted as-is; it comes back from the database column.
        """
        if key is None:
            key = shortuuid.uuid() if s is None else cls.split(s)
        return super().__new__(cls, f"{cls.prefix}{cls.separator}{key}")

    @classmethod
    def split(cls, s: str) -> str:
        """Validate a prefixed key and return its stored part"""
        head, sep, key = s.partition(cls.separator)
        if not sep or head != cls.prefix:
            raise ValueError(f"invalid {cls.__name__}: key must begin with {cls.prefix}{cls.separator}")
        if len(key) != KeyLength:
            raise ValueError(f"invalid {cls.__name__}: key must have length {KeyLength}")
        if not Alphabet.issuperset(key):
            raise ValueError(f"invalid {cls.__name__}: key contains characters outside the shortuuid alphabet")
        return key

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator) :]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key}>"

    @classmethod
    def __get_pydantic_core_schema__(cls, source: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        parse = core_schema.no_info_after_validator_function(cls, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=parse,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), parse]),
            serialization=core_schema.to_string_ser_schema(),
        )


# fmt: off
class UserID(ShortUUIDKey, prefix="user"): ...
class GroupID(ShortUUIDKey, prefix="group"): ...
class ScheduleID(ShortUUIDKey, prefix="sched"): ...
class RubricTemplateID(ShortUUIDKey, prefix="rubric"): ...
class RubricCriterionID(ShortUUIDKey, prefix="crit"): ...
class EvaluationID(ShortUUIDKey, prefix="eval"): ...
class StudentEvaluationID(ShortUUIDKey, prefix="steval"): ...
class AuditLogID(ShortUUIDKey, prefix="audit"): ...
# fmt: on
