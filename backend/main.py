from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from routers import auth, artifacts
from database import init_async_db
from config import settings, setup_logging
from exceptions import AppError
from middleware import LoggingMiddleware

# Setup logging first
logger, request_id_filter = setup_logging()

logger.info(f"Database target: {settings.DATABASE_URL.split('@')[-1]}")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.SETTING_VERSION,
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "tryItOutEnabled": True,
        "defaultModelsExpandDepth": -1,
    }
)

# Add logging middleware
app.add_middleware(LoggingMiddleware, request_id_filter=request_id_filter)

# CORS configuration - include X-New-Token in exposed headers for token refresh
cors_expose_headers = list(settings.CORS_EXPOSE_HEADERS) + ["X-New-Token"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=cors_expose_headers,
)


@app.middleware("http")
async def token_refresh_middleware(request: Request, call_next):
    """
    Middleware to inject refreshed token into response header.

    If validate_token() determines the token needs refresh, it stores
    the new token in request.state.new_token. This middleware reads it
    and adds it to the response header so the client can update its stored token.
    """
    response = await call_next(request)

    if getattr(request.state, 'new_token', None):
        response.headers["X-New-Token"] = request.state.new_token

    return response

# Include routers
logger.info("Including routers...")

app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["auth"],
    responses={401: {"description": "Not authenticated"}}
)
app.include_router(artifacts.router)

logger.info("Routers included")


@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up...")
    await init_async_db()
    logger.info("Database initialized")


@app.get("/")
async def root():
    """Root endpoint - points at the health check and docs"""
    return {"message": "artifact.shelf API", "health": "/api/health", "docs": "/docs"}

@app.get("/api/health")
async def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "version": settings.SETTING_VERSION}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map application errors to {"error": message} with their status code"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} in {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors (body parsing, path params, etc.)"""
    logger.warning(f"RequestValidationError in {request.url.path}:")
    errors = exc.errors()
    for error in errors:
        logger.warning(f"  - {error.get('loc')}: {error.get('msg')} (type: {error.get('type')})")
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else (first.get("msg") or "Invalid request")
    # Keep only JSON-safe parts of each error
    detail = [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]
    return JSONResponse(
        status_code=400,
        content={"error": message, "detail": detail}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for any unhandled exceptions"""
    logger.exception(f"Unhandled exception in {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


logger.info("Application startup complete")
