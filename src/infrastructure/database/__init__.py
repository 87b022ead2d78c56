from .async_db import (
    check_database_health,
    create_async_db_and_tables,
    create_engine,
    create_session_factory,
)

__all__ = [
    "check_database_health",
    "create_async_db_and_tables",
    "create_engine",
    "create_session_factory",
]
