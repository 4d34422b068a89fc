"""Translate engine errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from viva.evaluation.errors import EngineError, MissingCriteriaError, NotFoundError, RubricWeightError, \
    ScoreRangeError, StateConflictError, UnknownCriterionError, ValidationError

logger = logging.getLogger(__name__)


def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "entity": exc.entity, "entity_id": exc.entity_id},
    )


def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    content: dict[str, object] = {"detail": str(exc)}
    if isinstance(exc, MissingCriteriaError):
        content["missing_criterion_ids"] = list(exc.missing_criterion_ids)
    elif isinstance(exc, UnknownCriterionError):
        content["criterion_ids"] = list(exc.criterion_ids)
    elif isinstance(exc, ScoreRangeError):
        content["criterion_id"] = exc.criterion_id
    elif isinstance(exc, RubricWeightError):
        content["total"] = exc.total
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


def state_conflict_handler(request: Request, exc: StateConflictError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "current_state": exc.current_state.value},
    )


def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    logger.error("unhandled engine error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def register(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StateConflictError, state_conflict_handler)  # type: ignore[arg-type]
    app.add_exception_handler(EngineError, engine_error_handler)  # type: ignore[arg-type]
