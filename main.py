# main.py
"""FastAPI application: startup wiring and routes"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.endpoints import register_exception_handlers, router
from config import settings
from services.factory import build_rag_service
from services.logger_config import setup_logging

setup_logging()
logger = logging.getLogger(settings.LOGGER_NAME)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting application...")

    # A service injected before startup (tests) is kept as is
    if getattr(app.state, "rag_service", None) is None:
        app.state.rag_service = build_rag_service(settings)
    logger.info(
        f"Services initialized (store={settings.VECTOR_STORE_TYPE}, "
        f"embeddings={settings.EMBEDDING_MODEL_NAME}, llm={settings.LLM_MODEL_NAME})"
    )

    yield

    logger.info("Application shutdown complete")

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.include_router(router)
    register_exception_handlers(app)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
