"""Database — SQLAlchemy failure mapping and session rollback."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from crate_api.core.errors import DatabaseError
from crate_api.infrastructure.database import (
    DatabaseSessionManager, as_database_error,
)


@pytest.mark.parametrize("error, operation", [
    (IntegrityError("INSERT", {}, Exception("dup")), "commit"),
    (OperationalError("SELECT", {}, Exception("gone")), "execute"),
    (SQLAlchemyError("odd"), "unknown"),
])
def test_sqlalchemy_errors_map_to_database_error(error, operation):
    mapped = as_database_error(error)
    assert isinstance(mapped, DatabaseError)
    assert mapped.operation == operation
    assert mapped.http_status == 503


async def test_session_wraps_sqlalchemy_failures():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    try:
        with pytest.raises(DatabaseError):
            async with manager.session() as db:
                await db.execute(text("SELECT * FROM no_such_table"))
        assert await manager.health_check() is True
    finally:
        await manager.dispose()
