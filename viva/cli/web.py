import os

import uvicorn

import viva.lib.cli as click
from viva.core import BootConfiguration, di
from viva.core.config import LoggingSettings, WebSettings
from viva.web.viva.main import BootVariable


@click.group()
def web():
    """Serve the HTTP API."""


@web.command(name="serve")
@click.argument("app_name", default="viva")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart the server when source files change")
@di.inject
def serve(
    app_name: str,
    workers: int,
    reload: bool,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
):
    """Run the `viva.web.<APP_NAME>` application under uvicorn.

    Workers are separate processes, so the boot arguments travel to them in
    the environment and each one builds its own container.
    """
    app_cf = getattr(web_cf, app_name, None)
    if app_cf is None:
        raise click.BadParameter(f"no web.{app_name} section in the configuration", param_hint="APP_NAME")

    os.environ[BootVariable] = boot_cf.model_dump_json()
    uvicorn.run(
        f"viva.web.{app_name}:create_app",
        factory=True,
        host=str(app_cf.backend.host),
        port=app_cf.backend.port,
        reload=reload,
        workers=workers,
        log_config=logging_cf.model_dump(),
    )
