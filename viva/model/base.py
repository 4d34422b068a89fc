import datetime
import typing as t

import pydantic as p


class BaseModel(p.BaseModel):
    """Dumps by alias unless the caller says otherwise; settings models rely on
    this to emit keys such as `()` and `class` for dictConfig."""

    def model_dump(self, **kwargs: t.Any) -> dict[str, t.Any]:  # type: ignore[override]
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)

    def model_dump_json(self, **kwargs: t.Any) -> str:  # type: ignore[override]
        kwargs.setdefault("by_alias", True)
        return super().model_dump_json(**kwargs)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithMtime(BaseModel):
    update_time: datetime.datetime


class WithTimestamps(WithCtime, WithMtime): ...
