import typing as t

import annotated_types as ant

from .base import BaseSettings


class EvaluationSettings(BaseSettings):
    lock_on_submit: bool = True
    weight_tolerance: t.Annotated[float, ant.Gt(0)] = 1e-4
