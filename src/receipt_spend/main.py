from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from receipt_spend.api.router import router as api_router
from receipt_spend.bootstrap import bootstrap
from receipt_spend.core.logging import RequestContextMiddleware


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        bootstrap()
        yield

    app = FastAPI(title="Receipt Spend", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()
