"""Route aggregation for the evaluation web application."""

from fastapi import APIRouter

from . import evaluation, ranking, schedule

router = APIRouter()
router.include_router(evaluation.router)
router.include_router(schedule.router)
router.include_router(ranking.router)
