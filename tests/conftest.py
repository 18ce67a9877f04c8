from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

# Set env before any receipt_spend imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.receipt_spend_test.db")
os.environ.setdefault("LOCAL_STORAGE_PATH", ".tmp_storage_test")
os.environ.setdefault("RECEIPT_AI_ENABLED", "false")


@pytest.fixture(autouse=True)
def _reset_db_and_storage() -> None:
    import receipt_spend.models  # noqa: F401
    from receipt_spend.core.db import engine
    from receipt_spend.core.models import Base

    # Reset storage cache and directory
    import receipt_spend.core.storage as storage_mod

    storage_mod._storage = None

    storage_path = Path(os.environ["LOCAL_STORAGE_PATH"])
    if storage_path.exists():
        shutil.rmtree(storage_path)

    # Reset DB schema
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield
