"""Alembic migration environment with async psycopg3 support.

Enhanced with:
- compare_type support for the JSONPayload column type
- Batch mode auto-detection for SQLite compatibility
- Object filtering to exclude system tables
- Empty migration detection to skip no-op revisions
- Configurable via config.attributes when driven programmatically

Without a configured PostgreSQL database the same SQLite fallback URL as the
application is used.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

# Import every model module so Base.metadata is aware of all mapped classes.
import relay_service.features.users.models  # noqa: F401
import relay_service.infra.events.outbox.models  # noqa: F401
from relay_service.core.database.base import Base
from relay_service.core.database.types import JSONPayload
from relay_service.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import Iterable

    from alembic.autogenerate.api import AutogenContext
    from alembic.operations.ops import MigrationScript
    from alembic.runtime.migration import MigrationContext
    from sqlalchemy.engine import Connection
    from sqlalchemy.sql.type_api import TypeEngine

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///./relay.db"

# Alembic Config object
config = context.config

# Setup Python logging from alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for autogenerate
target_metadata = Base.metadata

# Override URL from settings
db_settings = get_db_settings()
if db_settings.is_configured:
    config.set_main_option("sqlalchemy.url", db_settings.get_sqlalchemy_url())
elif not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", SQLITE_FALLBACK_URL)


def get_config_value(key: str, default: Any = None) -> Any:
    """Get configuration value from config.attributes or default."""
    return config.attributes.get(key, default)


# Feature flags (can be overridden through config.attributes)
COMPARE_TYPE = get_config_value("compare_type", True)
RENDER_AS_BATCH = get_config_value("render_as_batch", False)


def compare_type(
    context: MigrationContext,
    inspected_column: Column[Any],
    metadata_column: Column[Any],
    inspected_type: TypeEngine[Any],
    metadata_type: TypeEngine[Any],
) -> bool | None:
    """Compare column types including JSONPayload.

    JSONPayload is reflected as JSONB on PostgreSQL and TEXT elsewhere, so
    compare against the type it resolves to for the current dialect.

    Returns:
        True if types are different, False if the same, None for default
    """
    _ = inspected_column, metadata_column
    if isinstance(metadata_type, JSONPayload):
        from sqlalchemy import Text
        from sqlalchemy.dialects.postgresql import JSONB

        expected = JSONB if context.dialect.name == "postgresql" else Text
        return not isinstance(inspected_type, expected)

    return None


def include_object(
    obj: Any,
    name: str | None,
    type_: str,
    reflected: bool,
    compare_to: Any,
) -> bool:
    """Control which objects are included in autogenerate."""
    # Skip alembic's own table
    if type_ == "table" and name == "alembic_version":
        return False

    _ = reflected, compare_to
    # Skip PostgreSQL system schemas
    return not (hasattr(obj, "schema") and obj.schema in ("pg_catalog", "information_schema"))


def render_item(type_: str, obj: Any, autogen_context: AutogenContext) -> str | bool:
    """Render JSONPayload with its import in generated migrations."""
    if type_ == "type" and isinstance(obj, JSONPayload):
        autogen_context.imports.add("from relay_service.core.database.types import JSONPayload")
        return "JSONPayload()"

    return False


def process_revision_directives(
    context: MigrationContext,
    revision: str | tuple[str, ...] | Iterable[str | None] | Iterable[str],
    directives: list[MigrationScript],
) -> None:
    """Skip writing a revision when autogenerate detects no changes."""
    _ = context, revision
    if getattr(config.cmd_opts, "autogenerate", False) and directives:
        script = directives[0]
        if script.upgrade_ops is not None and script.upgrade_ops.is_empty():
            directives[:] = []
            print("No changes detected, skipping migration creation")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (generate SQL only)."""
    url = config.get_main_option("sqlalchemy.url")

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=compare_type if COMPARE_TYPE else None,
        include_object=include_object,
        render_item=render_item,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Configure and run migrations with connection.

    Auto-detects SQLite for batch mode.
    """
    is_sqlite = connection.dialect.name == "sqlite"
    use_batch_mode = is_sqlite or RENDER_AS_BATCH

    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=compare_type if COMPARE_TYPE else None,
        include_object=include_object,
        render_item=render_item,
        render_as_batch=use_batch_mode,
        process_revision_directives=process_revision_directives,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations with async engine.

    Uses an engine passed through config.attributes when present, otherwise
    creates one from the config URL.
    """
    engine = get_config_value("engine")

    if engine is not None:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    else:
        connectable = async_engine_from_config(
            config.get_section(config.config_ini_section, {}),
            prefix="sqlalchemy.",
            poolclass=pool.NullPool,
        )

        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)

        await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
