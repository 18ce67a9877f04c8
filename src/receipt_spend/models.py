"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

from receipt_spend.modules.sessions.models import ReportSession, Upload  # noqa: F401
from receipt_spend.modules.expenses.models import Expense, ExpenseSplit  # noqa: F401
