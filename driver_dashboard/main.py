# driver_dashboard/main.py
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware
import logging
import uvicorn

from driver_dashboard.config import DEV_SESSION_SECRET, settings
from driver_dashboard.data.data_loader import seed_storage
from driver_dashboard.data.storage import MemStorage
from driver_dashboard.routers import auth, calendar, dashboard, deliveries, inventory, recommendations, routes, stations

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL.upper(),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _strip_context(errors):
    return [{key: value for key, value in error.items() if key not in ("ctx", "url")} for error in errors]


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"message": "Validation failed", "errors": _strip_context(exc.errors())}),
    )


async def model_validation_handler(request: Request, exc: ValidationError):
    # Raised when an update produces an invalid record
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"message": "Validation failed", "errors": _strip_context(exc.errors())}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def create_app(storage: Optional[MemStorage] = None) -> FastAPI:
    app = FastAPI(
        title="Driver Dashboard API",
        description="Inventory, deliveries, routes, stations and schedule for truck drivers, with optional AI route optimization.",
        version="1.0.0"
    )

    if storage is None:
        storage = MemStorage()
        if settings.SEED_SAMPLE_DATA:
            seed_storage(storage)
    app.state.storage = storage

    session_secret = settings.SESSION_SECRET
    if not session_secret:
        logger.warning("SESSION_SECRET is not configured. Using the development secret; do not deploy like this.")
        session_secret = DEV_SESSION_SECRET

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN] if settings.FRONTEND_ORIGIN else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, model_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(auth.router, prefix="/api", tags=["Auth"])
    app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
    app.include_router(deliveries.router, prefix="/api/deliveries", tags=["Deliveries"])
    app.include_router(routes.router, prefix="/api/routes", tags=["Routes"])
    app.include_router(stations.router, prefix="/api/stations", tags=["Stations"])
    app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])
    app.include_router(recommendations.router, prefix="/api/recommendations", tags=["AI Recommendations"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

    @app.get("/", tags=["Root"])
    async def read_root():
        logger.info("Root endpoint was accessed.")
        return {"message": "Welcome to the Driver Dashboard API!"}

    @app.get("/api/health", tags=["Root"])
    async def health():
        return {
            "status": "ok",
            "ai_enabled": settings.llm_enabled,
            "maps_enabled": settings.maps_enabled,
        }

    return app


app = create_app()

# For running programmatically (optional)
if __name__ == "__main__":
    logger.info("Starting Uvicorn server on http://localhost:8000")
    uvicorn.run(app, host="0.0.0.0", port=8000)
