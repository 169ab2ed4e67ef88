"""Engine construction defaults."""

from studio_scheduler.database import create_db_engine


def test_sqlite_connections_enforce_foreign_keys():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
    finally:
        engine.dispose()
