"""`viva schema`: alembic migrations against the configured database."""

from __future__ import annotations

import alembic.command
from alembic.config import Config

import viva.lib.cli as click
from viva.core import di

Alembic = di.Provide["storage.persistent.alembic_config"]


@click.group("schema")
def schema():
    """Inspect and migrate the database schema."""


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def current(verbose: bool, conf: Config = Alembic):
    """Show the revision the database is at."""
    alembic.command.current(conf, verbose=verbose)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def history(verbose: bool, conf: Config = Alembic):
    alembic.command.history(conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, default=False, help="print the migration SQL instead of running it")
@di.inject
def up(revision: str, sql: bool, conf: Config = Alembic):
    alembic.command.upgrade(conf, revision, sql=sql)


@schema.command()
@click.argument("revision", default="-1")
@di.inject
def down(revision: str, conf: Config = Alembic):
    alembic.command.downgrade(conf, revision)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, conf: Config = Alembic):
    """Record REVISION as applied without running any migration."""
    alembic.command.stamp(conf, revision)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True, help="diff the table metadata against the database")
@di.inject
def generate(message: str, autogenerate: bool, conf: Config = Alembic):
    alembic.command.revision(conf, message, autogenerate=autogenerate)
