# InvoiceDesk backend entrypoint: FastAPI app wiring, logging and error handlers.

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.app.api import clients
from backend.app.api import dashboard
from backend.app.api import exports
from backend.app.api import invoices
from backend.app.api import login
from backend.app.api import preferences
from backend.app.api import products
from backend.app.api import register
from backend.app.api import reports
from backend.app.api import settings as settings_api
from backend.app.core.dev_seed import ensure_default_dev_owner
from backend.app.core.errors import SettingsSchemaError
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine

settings = get_settings()

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level, logging.INFO),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(clients.router)
app.include_router(products.router)
app.include_router(invoices.router)
app.include_router(reports.router)
app.include_router(dashboard.router)
app.include_router(settings_api.router)
app.include_router(preferences.router)
app.include_router(exports.router)


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "The operation could not be completed. Please try again."})


@app.exception_handler(SettingsSchemaError)
async def handle_settings_schema_error(request: Request, exc: SettingsSchemaError):
    logger.error("Settings schema error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def init_database():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_dev_owner(db, environment=settings.environment)
    finally:
        db.close()
