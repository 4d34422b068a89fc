"""Persistence providers: connection URL, engine, sessions and the alembic
configuration used by `viva schema`."""

from __future__ import annotations

import contextlib
import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import viva.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import PersistentSettings, PostgresqlSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider

MigrationTemplate = "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s"


def _reveal(secret: t.Any) -> str | None:
    return None if secret is None else secret.get_secret_value()


def _postgresql_dsn(pg: PostgresqlSettings, secrets: PostgresqlSecrets) -> DSN:
    return DSN.create(
        pg.driver,
        host=None if pg.host is None else str(pg.host),
        port=pg.port,
        database=pg.database,
        username=_reveal(secrets.username),
        password=_reveal(secrets.password),
    )


def provide_dsn(
    postgresql: dict[str, t.Any] | None, sqlite: dict[str, t.Any] | None, secrets: PostgresqlSecrets
) -> DSN:
    settings = PersistentSettings(postgresql=postgresql, sqlite=sqlite)
    if settings.sqlite is not None:
        return DSN.create(settings.sqlite.driver, database=settings.sqlite.database)
    return _postgresql_dsn(t.cast(PostgresqlSettings, settings.postgresql), secrets)


def provide_alembic_conf(migration_path: Path, dsn: DSN, root: Path | NotReady) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("alembic needs the project root, which is set when the container boots")

    conf = alembic.config.Config()
    conf.set_main_option("script_location", str(root / migration_path))
    # configparser interpolates %, so the URL and template are escaped
    conf.set_section_option("alembic", "sqlalchemy.url", dsn.render_as_string(hide_password=False).replace("%", "%%"))
    conf.set_section_option("alembic", "file_template", MigrationTemplate)
    return conf


def provide_engine(dsn: DSN, logging: LoggingProvider) -> sqlalchemy.Engine:
    options: dict[str, t.Any] = {"json_serializer": json.dumps, "json_deserializer": json.loads}
    sqlite = dsn.get_backend_name() == "sqlite"
    if sqlite:
        options.update(connect_args={"check_same_thread": False}, poolclass=sqlalchemy.pool.StaticPool)

    engine = sqlalchemy.create_engine(dsn, **options)
    if sqlite:
        sqlalchemy.event.listen(engine, "connect", register_sqlite_pragmas)
        sqlalchemy.event.listen(engine, "begin", emit_sqlite_begin)
    else:
        sqlalchemy.event.listen(engine, "connect", register_timezone)

    logging.get_logger().info(
        "database engine ready",
        extra={"driver": dsn.drivername, "database": dsn.database, "host": dsn.host, "port": dsn.port},
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """A fresh session that does not begin on its own; routes open one with
    `session.begin()` and `di.Manage` closes it after the request."""
    return sqlalchemy.orm.Session(engine, autobegin=False, autoflush=False, expire_on_commit=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    dsn: Provider[DSN] = Singleton(
        provide_dsn,
        postgresql=config.postgresql,
        sqlite=config.sqlite,
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
    )
    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        dsn=dsn,
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(provide_engine, dsn=dsn, logging=logging)
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Configuration = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    # timestamptz values come back in the session time zone; keep it UTC
    with contextlib.closing(dbapi_conn.cursor()) as cursor:
        cursor.execute("SET TIMEZONE TO 'UTC'")


def register_sqlite_pragmas(dbapi_conn: t.Any, _: t.Any) -> None:
    # hand transaction control to SQLAlchemy so SAVEPOINT works under pysqlite
    dbapi_conn.isolation_level = None
    with contextlib.closing(dbapi_conn.cursor()) as cursor:
        cursor.execute("PRAGMA foreign_keys=ON")


def emit_sqlite_begin(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN")
