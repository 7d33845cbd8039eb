import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from agent.intent_classifier import IntentClassifier
from agent.language_model import AgentsLanguageModel, LanguageModel
from agent.orchestrator import TurnOrchestrator
from agent.response_synthesizer import ResponseSynthesizer
from src.api import v1_router
from src.api.health import health_router
from src.config.config import Config, load_config
from src.exceptions.configuration import ConfigurationError
from src.services.weather_service import WeatherService
from src.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


def build_orchestrator(
    config: Config,
    weather_service: WeatherService,
    language_model: Optional[LanguageModel] = None,
) -> TurnOrchestrator:
    """Wire the classifier, gateway and synthesizer into a turn orchestrator."""
    language_model = language_model or AgentsLanguageModel(config)
    return TurnOrchestrator(
        classifier=IntentClassifier(language_model, config),
        gateway=weather_service,
        synthesizer=ResponseSynthesizer(language_model, config),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Collaborators are built by create_app; shutdown closes the shared
    HTTP connection pool of the weather service.
    """
    logger.info("Starting Weather Chat application")

    try:
        yield

    finally:
        logger.info("Shutting down Weather Chat")
        await app.state.weather_service.aclose()


def create_app(
    config: Optional[Config] = None,
    weather_service: Optional[WeatherService] = None,
    orchestrator: Optional[TurnOrchestrator] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Loaded settings; read from the environment when omitted
        weather_service: Weather gateway; built from config when omitted
        orchestrator: Turn orchestrator; built from config when omitted

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationError: If settings are loaded here and are invalid
    """
    config = config or load_config()
    weather_service = weather_service or WeatherService(config)
    orchestrator = orchestrator or build_orchestrator(config, weather_service)

    app = FastAPI(
        title="Weather Chat API",
        description="""
        ## Weather Chat API

        A chat assistant that answers natural-language weather questions with live data.

        ### Features:
        - **Chat**: Send the conversation, get a reply plus a structured weather card
        - **Current Weather**: Normalized current conditions for any city
        - **Forecast**: Up to 7 daily forecast entries per city
        - **Location Search**: Geocoding candidates for free-text places

        ### Authentication:
        If an API token is configured, include it as a Bearer token in the Authorization header.

        ### Example Queries:
        - "What's the weather in Paris?"
        - "Will it rain in Saint Louis tomorrow?"
        - "Give me the full picture for Tokyo"
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.weather_service = weather_service
    app.state.orchestrator = orchestrator

    # Configure CORS for the browser chat client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests with timing information."""
        start_time = time.time()

        logger.info(
            "HTTP request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            logger.info(
                "HTTP request completed",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                process_time=process_time,
            )

            response.headers["X-Process-Time"] = str(process_time)
            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "HTTP request failed",
                method=request.method,
                url=str(request.url),
                error=str(e),
                process_time=process_time,
            )
            raise

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions globally."""
        logger.error(
            "Unhandled exception",
            method=request.method,
            url=str(request.url),
            error=str(exc),
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
                "timestamp": time.time(),
            },
        )

    # HTTP exception handler
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent formatting."""
        logger.warning(
            "HTTP exception",
            method=request.method,
            url=str(request.url),
            status_code=exc.status_code,
            detail=exc.detail,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "status_code": exc.status_code, "timestamp": time.time()},
        )

    app.include_router(health_router)
    app.include_router(v1_router)

    # Root endpoint (hide from swagger)
    @app.get("/", tags=["Root"], include_in_schema=False)
    async def root():
        """Root endpoint providing basic system information."""
        return {
            "message": "Weather Chat API",
            "version": "1.0.0",
            "status": "running",
            "timestamp": time.time(),
            "docs": "/docs",
            "redoc": "/redoc",
        }

    # Custom OpenAPI schema
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Weather Chat API",
            version="1.0.0",
            description="Chat assistant answering weather questions with live data",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
            }
        }

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


def main():
    # Missing credentials are fatal: fail fast before serving anything
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error("Failed to start Weather Chat", error=str(e))
        sys.exit(1)

    setup_logging(config)
    app = create_app(config)

    logger.info(
        f"Starting Weather Chat server in {config.environment} environment",
        host=config.api_host,
        port=config.api_port,
        reload=False,
    )

    try:
        uvicorn.run(
            app,
            host=config.api_host,
            port=config.api_port,
            log_level=config.log_level.lower(),
            access_log=True,
            server_header=False,
            date_header=False,
        )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error("Server failed to start", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
