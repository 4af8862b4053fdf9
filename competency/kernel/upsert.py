"""
Per-key upserts on the dialect's INSERT ... ON CONFLICT DO UPDATE.

Progress rows and case tags are keyed by a unique constraint; writing them
through one statement keeps concurrent recomputations of the same key from
racing between a read and an insert.
"""

from typing import Any, Dict, Sequence

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(session: AsyncSession, model):
    """INSERT construct for the session's backend."""
    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Upsert is not supported on dialect {dialect!r}")
    return insert(model)


async def upsert(
    session: AsyncSession,
    model,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> None:
    """Insert `values`, or overwrite the non-key columns of the row holding the same key."""
    stmt = dialect_insert(session, model).values(**values)
    updates = {name: stmt.excluded[name] for name in values if name not in conflict_columns}
    if "updated_at" in model.__table__.c:
        updates["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=updates)
    await session.execute(stmt)
