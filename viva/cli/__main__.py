"""`viva` command-line entry point.

Subcommand modules are imported lazily and wired into the container when it
boots, so `viva --help` never touches configuration or the database.
"""

from __future__ import annotations

import importlib
import sys
import threading
import traceback
import types
import typing as t
from pathlib import Path

import pydantic as p

import viva
import viva.lib.cli as click
from viva.core import di, VivaContainer
from viva.model import DeploymentEnvironment

DefaultConfigRoot = Path(viva.__file__).resolve().parents[1] / "config"
Subcommands = ("evaluation", "schema", "web")


class _State(object):
    booted = False
    loaded: list[types.ModuleType] = []


class VivaCommands(click.Group):
    def list_commands(self, ctx: click.Context) -> t.List[str]:
        return list(Subcommands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        if cmd_name not in Subcommands:
            return None
        module = importlib.import_module(f"{__package__}.{cmd_name}")
        _State.loaded.append(module)
        return getattr(module, cmd_name)


@click.group(cls=VivaCommands)
@click.option("-E", "--env", default=DeploymentEnvironment.Local, type=click.EnumType(DeploymentEnvironment))
@click.option("-c", "--config-root", default=DefaultConfigRoot, type=click.URIParamType(dir_ok=True))
@click.option("-s", "--secrets-path", default=None, type=click.URIParamType())
@click.option(
    "-o",
    "--override",
    multiple=True,
    help="override a configuration value by dotted path, e.g. -o evaluation.lock_on_submit=false",
)
@click.option("-D", "--debug", is_flag=True, default=False, help="print tracebacks for failed commands")
@click.pass_obj
@di.inject
def main(
    ct: VivaContainer,
    env: DeploymentEnvironment,
    config_root: p.FileUrl,
    secrets_path: p.AnyUrl | None,
    override: tuple[str, ...],
    debug: bool,
):
    """Thesis-defense evaluation and ranking."""
    VivaContainer.boot(
        ct,
        debug=debug,
        env=env,
        config_root=config_root,
        secrets_path=secrets_path,
        override=override,
        wiring=tuple(_State.loaded),
    )
    _State.booted = True


def _report(ex: Exception, container: VivaContainer) -> int:
    click.secho("ERROR ", fg="red", nl=False, err=True)
    click.echo(str(ex), err=True)
    # before boot the container cannot answer, so fall back to the raw flag
    verbose = container.debug() if _State.booted else "-D" in sys.argv[1:] or "--debug" in sys.argv[1:]
    if verbose:
        traceback.print_exc()
    return ex.exit_code if isinstance(ex, click.ClickException) else -1


def execute_command(*argv: str) -> None:
    threading.current_thread().name = "viva-0"
    prog, *args = argv or sys.argv
    container = VivaContainer()

    status = 0
    try:
        with main.make_context(Path(prog).name, args=list(args)) as ctx:
            ctx.obj = container
            status = t.cast(int, main.invoke(ctx)) or 0
    except (EOFError, KeyboardInterrupt, click.Abort):
        click.echo("Aborted!", err=True)
        status = 1
    except click.exceptions.Exit as ex:
        status = ex.exit_code
    except Exception as ex:
        status = _report(ex, container)
    finally:
        container.shutdown_resources()
    sys.exit(status)


if __name__ == "__main__":
    execute_command(*sys.argv)
