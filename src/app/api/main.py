from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.cache_middleware import CacheHeaderMiddleware
from app.api.deps import get_db
from app.api.error_handlers import (
    database_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.api.routes_payroll import router as payroll_router
from app.db import healthcheck
from app.logging import configure_logging
from app.payroll_queries import fetch_latest_month
from app.schemas.responses import HealthResponse
from app.settings import get_settings

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name)
api_v1_router = APIRouter(prefix=settings.api_version_prefix)
api_v1_router.include_router(payroll_router)
app.include_router(api_v1_router)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
app.add_middleware(CacheHeaderMiddleware)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id", str(uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


@app.get(f"{settings.api_version_prefix}/health", response_model=HealthResponse)
def get_v1_health(db: Session = Depends(get_db)) -> HealthResponse:
    return HealthResponse(status="ok", db=healthcheck(), latest_month=fetch_latest_month(db))


@app.get("/health", include_in_schema=False)
def get_health_compat() -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "db": healthcheck(),
            "deprecated": True,
            "message": f"Use {settings.api_version_prefix}/health instead.",
        },
    )
