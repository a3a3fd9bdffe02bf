import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.core.exceptions import (
    ResourceNotFoundError,
    BusinessRuleError,
    InvalidDateRangeError,
    AuthenticationError,
)
from app.api.v1.router import api_router
from app.db.session import init_db, close_db

settings = get_settings()

# Configure logging - suppress noisy third-party loggers
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

# Silence noisy third-party libraries
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("passlib").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    await init_db()
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="""
## Expense Tracker API

Personal finance tracking: record expenses and incomes, organise them into
categories and follow where the money goes.

### Features
- **Categories**: Per-user categories with icon and color, seeded on registration
- **Transactions**: Create, filter, paginate, edit and delete expenses and incomes
- **Stats**: Period summaries, category breakdowns, monthly evolution and recent activity

### Authentication
Register or log in to obtain a token, then send it in the Authorization header:
```
Authorization: Bearer <token>
```
""",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "Registration, login and current user"},
        {"name": "categories", "description": "Manage spending and income categories"},
        {"name": "transactions", "description": "View and manage transactions"},
        {"name": "stats", "description": "Dashboard statistics"},
        {"name": "health", "description": "Health checks"},
    ],
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix from the location
        loc = [str(part) for part in error.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})

    return error_response(400, "Validation failed.", errors=errors)


@app.exception_handler(AuthenticationError)
async def authentication_exception_handler(request: Request, exc: AuthenticationError):
    logger.debug(f"Authentication failed: {exc.message} ({exc.details})")
    return error_response(401, exc.message, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(ResourceNotFoundError)
async def not_found_exception_handler(request: Request, exc: ResourceNotFoundError):
    return error_response(404, exc.message)


@app.exception_handler(BusinessRuleError)
async def business_rule_exception_handler(request: Request, exc: BusinessRuleError):
    return error_response(400, exc.message)


@app.exception_handler(InvalidDateRangeError)
async def invalid_date_range_exception_handler(
    request: Request, exc: InvalidDateRangeError
):
    return error_response(400, exc.message)


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    """Constraint violations that slipped past the pre-checks."""
    logger.warning(f"IntegrityError on {request.method} {request.url.path}: {exc.orig}")
    if "unique" in str(exc.orig).lower():
        return error_response(400, "An entry with these values already exists.")
    return error_response(400, "Invalid reference. The related record does not exist.")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTPExceptions (including unmatched routes) with consistent format."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found."
    else:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error occurred")
    content = {
        "success": False,
        "message": "An unexpected error occurred",
    }

    # Include the traceback in debug mode
    if settings.DEBUG:
        content["debug"] = {
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        }

    return JSONResponse(status_code=500, content=content)


# Include API routers
app.include_router(api_router, prefix=settings.API_PREFIX)


# Root health check
@app.get("/health")
async def health_check():
    return {
        "success": True,
        "message": f"{settings.APP_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }
