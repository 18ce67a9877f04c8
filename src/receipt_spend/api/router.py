from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from receipt_spend.core.storage import diagnose_storage
from receipt_spend.modules.expenses.api import router as expenses_router
from receipt_spend.modules.reports.api import router as reports_router
from receipt_spend.modules.sessions.api import router as sessions_router

router = APIRouter()

router.include_router(sessions_router, prefix="/api")
router.include_router(expenses_router, prefix="/api")
router.include_router(reports_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/storage")
def healthz_storage(*, write_test: bool = False) -> JSONResponse:
    result = diagnose_storage(write_test=write_test)
    status_code = 200 if result.get("ok") else 503
    return JSONResponse(status_code=status_code, content=result)
