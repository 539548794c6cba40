# main.py
# FastAPI app for building forms, distributing them to email lists and collecting responses
# Development: uvicorn main:app --reload
# Production: uvicorn main:app --host 0.0.0.0 --port $PORT

import os
import logging

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import settings
from database import init_db, close_db
from routes import distribution, email_lists, forms, submissions
from services.email_service import email_service
from services.exceptions import FormAppError
from services.rate_limit_service import check_storage, limiter
from services.storage_service import storage_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Form Builder API",
    description="Build forms, send them to email lists, and collect, view and export responses",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add rate limiting exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(FormAppError)
async def form_app_error_handler(request: Request, exc: FormAppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid input", "details": details})


# CORS configuration
allowed_origins = settings.ALLOWED_ORIGINS.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
    allow_headers=["*"],
)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Create tables when running against the SQL backend"""
    try:
        if settings.REPOSITORY_BACKEND == "sql":
            # In production, prefer managed migrations over create_all
            await init_db()
        logger.info(f"Application startup completed ({settings.REPOSITORY_BACKEND} repository)")
    except Exception as e:
        logger.error(f"Error during startup: {str(e)}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    try:
        await close_db()
        logger.info("Application shutdown completed successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


app.include_router(forms.router)
app.include_router(submissions.router)
app.include_router(email_lists.router)
app.include_router(distribution.router)


@app.get("/")
async def root():
    """
    Root endpoint to check if the API is running
    """
    return {
        "status": "ok",
        "message": "Form Builder API is running",
        "version": "1.0.0",
        "documentation": "/docs",
    }


@app.get("/health")
async def health_check():
    """
    Detailed health check endpoint
    """
    email_health = await email_service.get_provider_health()
    return {
        "status": "healthy",
        "services": {
            "repository": settings.REPOSITORY_BACKEND,
            "email": "available" if email_health["resend"]["available"] else "unconfigured",
            "storage": "available" if storage_service.available else "unconfigured",
            "rate_limit_storage": await check_storage(),
        },
    }


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    """
    Handle favicon.ico requests to prevent 404 errors
    """
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True if os.getenv("ENVIRONMENT") == "development" else False
    )
