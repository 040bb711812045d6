import logging
import sqlite3

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from src.core.config import get_settings
from src.core.logging_setup import configure_logging
from src.routers import auth, chat, diagnostics, guidebook, health, properties

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="AI Host Backend",
    description="APIs for owner accounts, properties, guidebook processing, and AI diagnostics.",
    version="0.1.0",
    openapi_tags=[
        {"name": "health", "description": "Service liveness"},
        {"name": "auth", "description": "Accounts and sessions"},
        {"name": "properties", "description": "Rental properties"},
        {"name": "guidebook", "description": "Guidebook processing"},
        {"name": "diagnostics", "description": "AI provider diagnostics"},
    ],
)

# Install CORS middleware early so that OPTIONS preflight is handled
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,  # session cookie
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers: every error body carries an "error" key
@app.exception_handler(sqlite3.DatabaseError)
async def sqlite_error_handler(request: Request, exc: sqlite3.DatabaseError):
    logger.warning("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"error": "Database operation failed"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # dict details are complete envelopes, e.g. {"error": ..., "details": ...}
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # If it's a CORS preflight (OPTIONS), respond with empty OK to avoid 400/422 from body validation
    if request.method.upper() == "OPTIONS":
        return Response(status_code=204)
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


# Catch-all for truly unhandled exceptions only
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(auth.api_router)
app.include_router(properties.router)
app.include_router(guidebook.router)
app.include_router(chat.router)
app.include_router(diagnostics.router)
