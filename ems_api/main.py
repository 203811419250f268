from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ems_api.core.config import get_hr_bootstrap_credentials
from ems_api.core.errors import DomainError
from ems_api.core.logging import configure_logging
from ems_api.database import SessionLocal
from ems_api.models import audit_log, employee, hr_user, time_entry, timesheet  # noqa: F401
from ems_api.routers.audit import router as audit_router
from ems_api.routers.auth import router as auth_router
from ems_api.routers.employees import router as employees_router
from ems_api.routers.time_entries import router as time_entries_router
from ems_api.routers.timesheets import employee_router as employee_timesheets_router
from ems_api.routers.timesheets import router as timesheets_router
from ems_api.services.auth_service import ensure_bootstrap_hr_user

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _bootstrap_hr_user() -> None:
    name, pin = get_hr_bootstrap_credentials()
    db = SessionLocal()
    try:
        user = ensure_bootstrap_hr_user(db, name, pin)
        db.commit()
        if user is not None:
            logger.info("Bootstrap HR user created", extra={"hr_user_id": user.id})
    except Exception:
        db.rollback()
        # schema may not be migrated yet; the app still serves /health.
        logger.exception("HR bootstrap failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    _bootstrap_hr_user()
    yield


app = FastAPI(
    title="Employee Management API",
    version=VERSION,
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("Domain error", extra={"path": request.url.path, "code": exc.code})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(employees_router)
app.include_router(time_entries_router)
app.include_router(employee_timesheets_router)
app.include_router(timesheets_router)
app.include_router(audit_router)


@app.get("/")
def root():
    return {"status": "Employee Management API running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": VERSION,
    }
