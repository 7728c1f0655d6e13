import os
import tempfile

# Keep test runs from writing log files into the user's home directory
os.environ.setdefault("TODOGRAPH_LOG_DIR", os.path.join(tempfile.gettempdir(), "todograph-test-logs"))

import pytest

from todograph.store import TaskStore


@pytest.fixture
def store():
    """An empty task store."""
    return TaskStore()


@pytest.fixture
def chain_store():
    """Three tasks where 3 depends on 2 and 2 depends on 1."""
    s = TaskStore()
    for name in ("first", "second", "third"):
        s.create(name)
    s.get(2).depends_on.add(1)
    s.get(3).depends_on.add(2)
    return s
