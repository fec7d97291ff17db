# carbon_coach/main.py
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from carbon_coach.api.v1.endpoints import advice, footprints
from carbon_coach.core.config import Settings, get_settings
from carbon_coach.core.gemini_client import build_gemini_client
from carbon_coach.db.database import FootprintStore
from carbon_coach.services.advice_gateway import AdviceGateway
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid value for '{field}': {first.get('msg')}" if field else f"Invalid request body: {first.get('msg')}"


def create_app(
    settings: Optional[Settings] = None,
    advice_gateway: Optional[AdviceGateway] = None,
    footprint_store: Optional[FootprintStore] = None,
) -> FastAPI:
    """
    Construye la aplicación. Los clientes (Gemini, base de datos) se crean una
    sola vez aquí y se guardan en app.state; los tests pueden inyectar los suyos.
    """
    settings = settings or get_settings()
    if settings.DEBUG:
        logging.getLogger().setLevel(logging.DEBUG)

    if advice_gateway is None:
        advice_gateway = AdviceGateway(build_gemini_client(settings), audience=settings.COACH_AUDIENCE)
    if footprint_store is None:
        footprint_store = FootprintStore(settings.database_dsn)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"AI advice: {'ON' if advice_gateway.configured else 'OFF (no GEMINI_API_KEY)'}")
        if footprint_store.configured:
            footprint_store.ensure_schema()
        yield
        logger.info(f"Shutting down {settings.APP_NAME}")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Carbon footprint estimation, history and AI-powered reduction coaching.",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.advice_gateway = advice_gateway
    app.state.footprint_store = footprint_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning(f"Rejected request to {request.url.path}: {message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    app.include_router(advice.router, prefix="/api/v1", tags=["AI Advice"])
    app.include_router(footprints.router, prefix="/api/v1/footprints", tags=["Footprints"])

    @app.get("/", tags=["Health Check"])
    async def read_root():
        logger.info("Health check endpoint '/' accessed.")
        return {
            "message": f"Welcome to the {settings.APP_NAME}!",
            "version": settings.APP_VERSION,
            "ai_configured": advice_gateway.configured,
            "storage_configured": footprint_store.configured,
        }

    return app


app = create_app()
