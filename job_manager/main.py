"""
FastAPI application for the Job Manager services.

SERVICE_NAME picks which API (auth, company or subscription) this process
serves. The event consumers run separately (job_manager.consumer.consumer).
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional

from aiokafka.errors import KafkaError
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from job_manager import __version__
from job_manager.container import ServiceContainer, build_container
from job_manager.core.config import Config, get_config
from job_manager.core.errors import (
    ErrorResponse,
    error_response_handler,
    http_exception_handler,
    validation_exception_handler,
)
from job_manager.core.logger import logger
from job_manager.db.mongodb import ensure_indexes
from job_manager.middlewares import CorrelationIdMiddleware
from job_manager.routers import auth_router, company_router, operational_router, subscription_router

SERVICE_ROUTERS = {
    "auth": (auth_router.router, "/api/auth"),
    "company": (company_router.router, "/api/companies"),
    "subscription": (subscription_router.router, "/api/subscriptions"),
}


def create_app(config: Optional[Config] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application for the configured service.

    A prebuilt container (tests) is used as is; otherwise one is built,
    indexed and connected in the lifespan and closed on shutdown.
    """
    config = config or (container.config if container is not None else get_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting job-manager-{config.service_name}...")
        owned = container is None
        active = build_container(config) if owned else container

        if owned:
            await ensure_indexes(config.service_name, active.database, active.shard_router)
            if active.publisher is not None:
                try:
                    await active.publisher.start()
                except KafkaError as e:
                    # publishes start the producer lazily and park events until Kafka is back
                    logger.error("Kafka producer could not be started", error=e)

        app.state.container = active
        logger.info(
            f"job-manager-{config.service_name} started successfully",
            metadata={
                "service_name": config.service_name,
                "version": config.service_version,
                "environment": config.environment,
                "port": config.port,
            }
        )

        yield

        # Shutdown
        logger.info(f"Shutting down job-manager-{config.service_name}...")
        if owned:
            await active.close()

    app = FastAPI(
        title=f"Job Manager {config.service_name.capitalize()} Service",
        description="Company lifecycle microservice of the Job Manager platform",
        version=__version__,
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    # Configure error handlers
    app.add_exception_handler(ErrorResponse, error_response_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(operational_router.router)
    if config.service_name in SERVICE_ROUTERS:
        router, prefix = SERVICE_ROUTERS[config.service_name]
        app.include_router(router, prefix=prefix, tags=[config.service_name])

    return app


app = create_app()


def run():
    import uvicorn

    from job_manager.validators.config_validator import validate_config

    validate_config()
    config = get_config()

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
        }
    )

    uvicorn.run(
        "job_manager.main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development",
    )


if __name__ == "__main__":
    run()
