# app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.db import Base, engine
from app.utils.logger import setup_app_logging, get_logger
# Local application imports - Models (registered on Base before create_all)
from app.fleet import models as fleet_models  # noqa: F401
from app.rates import models as rate_models  # noqa: F401
from app.attributes import models as attribute_models  # noqa: F401
from app.profiles import models as profile_models  # noqa: F401
# Local application imports - Routes
from app.fleet.router import router as fleet_routes
from app.rates.router import override_router, plan_router, rate_router
from app.attributes.router import type_router, shift_attribute_router
from app.profiles.router import profile_router, shift_profile_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create any missing tables on startup
    """
    Base.metadata.create_all(bind=engine)
    yield


# Create the FastAPI app
fleet_app = FastAPI(
    title=f"{settings.app_name} - {settings.environment}",
    description="Lease rate and shift profile resolution API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure logging
if settings.environment.lower() != "production":
    setup_app_logging(
        fleet_app,
        log_level=settings.log_level,
        use_json=settings.log_json,
        log_file=settings.log_file,
        app_name=settings.app_name,
        environment=settings.environment,
    )
else:
    setup_app_logging(
        fleet_app,
        log_level=settings.log_level,
        use_json=True,
        log_file=settings.log_file,
        app_name=settings.app_name,
        environment="production",
    )
logger = get_logger(__name__)

# Add CORS middleware
fleet_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_urls.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
fleet_app.include_router(fleet_routes)
fleet_app.include_router(override_router)
fleet_app.include_router(plan_router)
fleet_app.include_router(rate_router)
fleet_app.include_router(type_router)
fleet_app.include_router(shift_attribute_router)
fleet_app.include_router(profile_router)
fleet_app.include_router(shift_profile_router)


# Root API to check if the server is up
@fleet_app.get("/", tags=["Base"])
async def health_check():
    """
    Root API to check if the server is up
    """
    logger.info("Calling root API for testing")
    return {"status": "ok"}


@fleet_app.get("/ping", tags=["Base"])
async def ping():
    return {"ping": "pong"}
