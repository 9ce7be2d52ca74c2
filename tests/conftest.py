import os
import tempfile

import pytest

# api.server builds its engine at import time; keep it out of the working tree.
os.environ.setdefault("RECDB_DATA_DIR", tempfile.mkdtemp(prefix="recdb-test-"))

from recdb.engine import DatabaseEngine  # noqa: E402
from recdb.table import Table  # noqa: E402


@pytest.fixture
def table():
    t = Table()
    t.create_index(1)
    return t


@pytest.fixture
def engine(tmp_path):
    return DatabaseEngine(str(tmp_path))
