"""
Shared fixtures: every test gets its own throwaway SQLite database.
"""
import os
import tempfile

# Keep the application database away from ~/.eventide during tests
os.environ.setdefault(
    "DATABASE_PATH",
    os.path.join(tempfile.mkdtemp(prefix="eventide_test_"), "eventide.db"),
)
os.environ.setdefault("SCHEDULE_RUN_IN_PROCESS", "false")

import pytest
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def store(tmp_path):
    from eventide.core.memory.db import create_db_engine, init_db
    from eventide.core.schedule.store import SqlEventStore

    engine = create_db_engine(f"sqlite:///{tmp_path / 'events.db'}")
    init_db(bind=engine)
    yield SqlEventStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()
