"""
ChatGPT Clone - Main FastAPI Application
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import Settings, settings
from .api import auth_router, chat_router, eval_router
from .core import CompletionService, EvalStore
from .core.logging_config import setup_logging
from .llm import create_llm_provider
from .middleware import RequestLoggingMiddleware
from .services import GoogleOAuthClient
from .storage import create_chat_repository

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI, config: Settings) -> None:
    """Create the shared stores and clients the request handlers depend on."""
    app.state.chat_repository = create_chat_repository(config.chat_storage_path)

    provider = create_llm_provider(
        provider=config.llm_provider,
        api_key=config.effective_llm_api_key,
        model=config.llm_model,
        base_url=config.llm_base_url,
    )
    app.state.completion_service = CompletionService(provider, mock_delay=config.mock_stream_delay)
    app.state.eval_store = EvalStore()
    app.state.google_client = GoogleOAuthClient(
        client_id=config.google_client_id,
        client_secret=config.google_client_secret,
        redirect_uri=config.google_redirect_uri,
    )
    logger.info(f"LLM provider configured: {provider is not None}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    setup_logging(settings)
    init_app_state(app, settings)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage: {settings.storage_type}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Chat assistant with streamed model responses",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(eval_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn
    uvicorn.run(
        "chatclone.main:app",
        host="0.0.0.0",
        port=3001,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
