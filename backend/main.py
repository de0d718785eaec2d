import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from audit_trail.api.v1.api import api_router
from audit_trail.core.config import settings
from audit_trail.core.logging import configure_logging
from audit_trail.services.audit.errors import AuditError

configure_logging(
    settings.LOG_LEVEL,
    audit_level=settings.AUDIT_LOG_LEVEL,
    sql_level=settings.SQL_LOG_LEVEL,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "audit_config enabled=%s excluded=%s",
        settings.AUDIT_ENABLED,
        settings.AUDIT_EXCLUDED_ENTITIES,
    )
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(AuditError)
async def audit_error_handler(request: Request, exc: AuditError):
    # the recorder already rolled the session back; nothing was saved
    return JSONResponse(
        status_code=500,
        content={"detail": "Audit trail could not be recorded", "error": type(exc).__name__},
    )


@app.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "audit_enabled": settings.AUDIT_ENABLED,
        "audit_excluded_entities": settings.AUDIT_EXCLUDED_ENTITIES,
    }
