"""Database connection and write helpers.

Writes go through short-lived sessions from an ``async_sessionmaker``; the
engine is created on demand so importing this module never connects.
"""

from collections.abc import Sequence

from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import Executable, inspect
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from staking_indexer.helpers.config import get_optional_env, get_required_env

Base = declarative_base()

DBModelType = TypeVar("DBModelType")


def get_database_url() -> str:
    """Get the database URL from environment variables.

    DATABASE_URL wins when set, otherwise the URL is assembled from the
    POSTGRE_* variables.

    Returns:
        str: PostgreSQL database URL

    Raises:
        ValueError: If required environment variables are not set
    """
    database_url = get_optional_env("DATABASE_URL")
    if database_url:
        return database_url

    postgre_host = get_required_env("POSTGRE_HOST")
    postgre_port = get_optional_env("POSTGRE_PORT", "5432")
    postgre_user = get_required_env("POSTGRE_USER")
    postgre_password = get_required_env("POSTGRE_PASSWORD")
    postgre_db = get_required_env("POSTGRE_DB")

    # Use psycopg (version 3) as the async PostgreSQL driver
    return (
        "postgresql+psycopg://"
        f"{postgre_user}:{postgre_password}"
        f"@{postgre_host}:{postgre_port}"
        f"/{postgre_db}"
    )


def create_session_factory(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async engine and its session factory.

    Args:
        database_url: Optional URL, defaults to get_database_url()

    Returns:
        async_sessionmaker bound to a new engine (reachable via ``.kw["bind"]``)
    """
    engine = create_async_engine(database_url or get_database_url(), echo=False)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the staking tables if they don't exist."""
    # Register the staking tables on Base.metadata
    import staking_indexer.data.rewards.db  # noqa: F401
    import staking_indexer.data.slashes.db  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _rows(
    pydantic_models: Sequence[BaseModel], extra_fields: dict[str, Any] | None
) -> list[dict[str, Any]]:
    rows = [model.model_dump() for model in pydantic_models]
    if extra_fields:
        for row in rows:
            row.update(extra_fields)
    return rows


def upsert_statement(db_model_class: type[Any], rows: list[dict[str, Any]]) -> Insert:
    """Build ``INSERT ... ON CONFLICT (pk) DO UPDATE`` for rows of db_model_class.

    Every non primary key column present in the rows is overwritten with the
    incoming value, so the last write for a key wins.

    Raises:
        ValueError: If the model class cannot be inspected or has no primary key
    """
    mapper = inspect(db_model_class, raiseerr=False)
    if mapper is None:
        msg = f"Cannot inspect {db_model_class}"
        raise ValueError(msg)
    pk_columns = [column.name for column in mapper.primary_key]
    if not pk_columns:
        msg = f"{db_model_class.__name__} has no primary key to upsert on"
        raise ValueError(msg)

    stmt = pg_insert(db_model_class).values(rows)
    return stmt.on_conflict_do_update(
        index_elements=pk_columns,
        set_={
            column: stmt.excluded[column]
            for column in rows[0]
            if column not in pk_columns
        },
    )


async def _execute(
    session_factory: async_sessionmaker[AsyncSession], stmt: Executable
) -> None:
    async with session_factory() as session:
        try:
            await session.execute(stmt)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def insert_models(
    db_model_class: type[DBModelType],
    pydantic_models: Sequence[BaseModel],
    session_factory: async_sessionmaker[AsyncSession],
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """Insert models with a plain INSERT, duplicates are stored as new rows.

    Args:
        db_model_class: Target table (e.g., StakingRewardDB)
        pydantic_models: Records to insert
        session_factory: Session factory to write with
        extra_fields: Columns to add to every row that the records don't carry

    Raises:
        Exception: Whatever the driver raised, after rolling back
    """
    rows = _rows(pydantic_models, extra_fields)
    if rows:
        await _execute(session_factory, pg_insert(db_model_class).values(rows))


async def upsert_models(
    db_model_class: type[DBModelType],
    pydantic_models: Sequence[BaseModel],
    session_factory: async_sessionmaker[AsyncSession],
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """Insert models or overwrite the rows sharing their primary key.

    The conflict is resolved by PostgreSQL in the same statement, so
    concurrent writers of one key never interleave a read and a write.

    Args:
        db_model_class: Target table (e.g., StakingSlashDB)
        pydantic_models: Records to upsert
        session_factory: Session factory to write with
        extra_fields: Columns to add to every row that the records don't carry

    Raises:
        ValueError: If the table has no usable primary key
    """
    rows = _rows(pydantic_models, extra_fields)
    if rows:
        await _execute(session_factory, upsert_statement(db_model_class, rows))


async def upsert_model(
    db_model_class: type[DBModelType],
    pydantic_model: BaseModel,
    session_factory: async_sessionmaker[AsyncSession],
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """Upsert a single model, see upsert_models.

    Examples:
        await upsert_model(
            db_model_class=StakingSlashDB,
            pydantic_model=slash,
            session_factory=session_factory,
        )
    """
    await upsert_models(
        db_model_class=db_model_class,
        pydantic_models=[pydantic_model],
        session_factory=session_factory,
        extra_fields=extra_fields,
    )


__all__ = [
    "Base",
    "create_session_factory",
    "create_tables",
    "get_database_url",
    "insert_models",
    "upsert_model",
    "upsert_models",
    "upsert_statement",
]
