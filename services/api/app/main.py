"""FastAPI application — DevFlow Requests API.

Project requests, manual payment verification, the admin panel and
the public portfolio. The web frontend communicates exclusively
through this API.
"""

from __future__ import annotations

import os
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import __version__
from core.hosting import HostingAuthError, HostingError
from core.lifecycle import LifecycleError, OwnershipError

from . import db
from .routers import admin, auth, estimates, payments, portfolio, projects

logger = logging.getLogger(__name__)

app = FastAPI(
    title="DevFlow Requests API",
    version=__version__,
    description="Project requests, payment verification and portfolio for the DevFlow agency",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
ALLOWED_ORIGINS = os.environ.get(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in ALLOWED_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
PERMISSIONS_REMEDIATION = (
    "The data store rejected this operation. Check the database grants for "
    "the application role, and that the signed-in account has the admin role."
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    return JSONResponse(
        status_code=422,
        content={"detail": {
            "code": "INVALID_REQUEST",
            "message": first.get("msg", "Invalid request."),
            "field": ".".join(loc) or None,
        }},
    )


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    status = 403 if isinstance(exc, OwnershipError) else 422
    return JSONResponse(
        status_code=status,
        content={"detail": {"code": exc.code, "message": exc.message, "field": exc.field}},
    )


@app.exception_handler(db.StorePermissionError)
async def store_permission_handler(request: Request, exc: db.StorePermissionError):
    logger.warning("Store permission denied on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=403,
        content={"detail": {
            "code": "STORE_PERMISSION_DENIED",
            "category": "permissions",
            "message": str(exc),
            "remediation": PERMISSIONS_REMEDIATION,
        }},
    )


@app.exception_handler(HostingError)
async def hosting_error_handler(request: Request, exc: HostingError):
    code = "HOSTING_INVALID_TOKEN" if isinstance(exc, HostingAuthError) else "HOSTING_ERROR"
    logger.warning("Hosting API error (%s): %s", exc.status_code, exc.message)
    return JSONResponse(
        status_code=502,
        content={"detail": {
            "code": code,
            "category": "hosting",
            "message": f"Netlify API Error: {exc.message}",
        }},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth.router, prefix="/v1", tags=["auth"])
app.include_router(projects.router, prefix="/v1", tags=["projects"])
app.include_router(payments.router, prefix="/v1", tags=["payments"])
app.include_router(estimates.router, prefix="/v1", tags=["estimates"])
app.include_router(portfolio.router, prefix="/v1", tags=["portfolio"])
app.include_router(admin.router, prefix="/v1", tags=["admin"])


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.get("/")
async def root():
    return {"message": "DevFlow Requests API", "docs": "/docs"}
