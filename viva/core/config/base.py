import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from viva.model import BaseModel


# NOTE: BaseModel comes after pydantic-settings in the MRO so that we inherit
#       its by_alias=True model_dump
class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)
