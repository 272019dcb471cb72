import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Sequence

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from crm.api.v1.router import api_router
from crm.core.config import settings
from crm.core.database import Database
from crm.core.errors import CRMError, ValidationError, store_error_from
from crm.services.gallabox import GallaboxClient

VERSION = "0.1.0"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the database and Gallabox collaborators; dispose of them on shutdown."""
    app.state.database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO) if settings.DATABASE_URL else None
    app.state.gallabox = GallaboxClient.from_settings(settings) if settings.GALLABOX_API_KEY else None
    logger.info(
        "CRM API starting (env=%s, database=%s, gallabox=%s)",
        settings.APP_ENV,
        "configured" if app.state.database else "missing",
        "configured" if app.state.gallabox else "missing",
    )
    yield
    if app.state.gallabox is not None:
        await app.state.gallabox.aclose()
    if app.state.database is not None:
        await app.state.database.dispose()


app = FastAPI(
    title="CRM API",
    description="Leads, stage pipeline, activity log, follow-ups and WhatsApp outreach via Gallabox",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_errors(errors: Sequence[dict], strip_location: bool) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for err in errors:
        loc = list(err.get("loc", ()))
        # FastAPI prefixes the location with where the value came from
        if strip_location and loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        key = ".".join(str(part) for part in loc) or "body"
        fields.setdefault(key, []).append(err.get("msg", "invalid value"))
    return fields


@app.exception_handler(CRMError)
async def crm_error_handler(request: Request, exc: CRMError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(fields=_field_errors(exc.errors(), strip_location=True))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(pydantic.ValidationError)
async def pydantic_validation_handler(request: Request, exc: pydantic.ValidationError):
    error = ValidationError(fields=_field_errors(exc.errors(), strip_location=False))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    error = store_error_from(exc, f"handle {request.method} {request.url.path}")
    logger.error("Unhandled store error: %s", error.message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "crm-api", "version": VERSION}
