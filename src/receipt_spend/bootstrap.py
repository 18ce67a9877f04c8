from __future__ import annotations

import receipt_spend.models  # noqa: F401
from receipt_spend.core.config import settings
from receipt_spend.core.db import engine
from receipt_spend.core.logging import get_logger, log_event
from receipt_spend.core.models import Base

logger = get_logger(__name__)


def bootstrap() -> None:
    if settings.environment == "dev" and str(settings.database_url).startswith("sqlite"):
        Base.metadata.create_all(engine)
        log_event(logger, "bootstrap.schema.created", database_url=settings.database_url)
