"""FastAPI application for panel scoring and rankings."""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import viva
from viva.core import BootConfiguration, di, VivaContainer
from viva.core.config.web import VivaWebSettings
from viva.model import DeploymentEnvironment

from . import errors
from .route import router

# set by `viva web serve` so that uvicorn workers boot with the same arguments
BootVariable = "VIVA_BOOT"


@di.inject
def build_app(
    config: VivaWebSettings = di.Provide["config.web.viva", di.as_(VivaWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
) -> FastAPI:
    app = FastAPI(title="Viva", description="Thesis defense evaluation and ranking", version=viva.__version__)

    # a separately served frontend only exists during local development
    if env is DeploymentEnvironment.Local and config.frontend is not None:
        port = config.frontend.port
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[f"http://{config.frontend.host}:{port}", f"http://localhost:{port}"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    errors.register(app)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """uvicorn factory; boots a container of its own when launched by `viva web serve`"""
    serialized = os.environ.get(BootVariable)
    if not serialized:
        return build_app()

    boot_cf = BootConfiguration.model_validate_json(serialized)
    ct = VivaContainer()
    VivaContainer.boot(ct, **dict(boot_cf))
    return build_app(config=VivaWebSettings(**ct.config.web.viva()), env=boot_cf.env)
