"""FastAPI application entry point.

Voice chat relay - browser microphone to Gemini and back.
"""

import errno
import socket
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.routes import health, metrics
from src.api.websocket.chat_stream import chat_stream_endpoint, session_registry
from src.config import Settings, get_settings
from src.logging_config import get_logger, mask_secret, setup_logging
from src.services.llm.gemini import GeminiService
from src.services.llm.protocol import GenerationClient

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    generation_client: GenerationClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings
        generation_client: Client to use instead of a GeminiService
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler.

        Startup:
        - Initialize logging
        - Create the generation client

        Shutdown:
        - Close active chat sessions
        - Close the generation client
        """
        api_key = settings.google_api_key
        setup_logging(
            level=settings.log_level,
            enable_file=settings.is_production,
            secrets=[api_key.get_secret_value() if api_key else None],
        )

        client = generation_client or GeminiService(settings=settings)
        app.state.generation_client = client

        if api_key is not None and settings.has_api_key:
            logger.info(
                f"Gemini REST API configured (model: {settings.gemini_model}, "
                f"key: {mask_secret(api_key.get_secret_value())})"
            )
        else:
            logger.error("Missing GOOGLE_API_KEY in environment; replies will report errors")

        yield

        await session_registry.close_all()
        await client.close()

    app = FastAPI(
        title="Voice Chat Relay",
        description="Relays browser voice and text chat to the Gemini API",
        version="0.1.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Compress HTTP responses
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def microphone_permissions(request: Request, call_next):
        """Allow the served page to request microphone access."""
        response = await call_next(request)
        response.headers["Permissions-Policy"] = "microphone=(self)"
        return response

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # Metrics endpoint for Prometheus scraping
    app.include_router(metrics.router, tags=["Observability"])

    # WebSocket endpoint for chat sessions
    @app.websocket("/ws")
    async def chat_ws(websocket: WebSocket):
        """WebSocket endpoint for browser chat sessions."""
        await chat_stream_endpoint(
            websocket,
            websocket.app.state.generation_client,
            settings=settings,
        )

    # Serve the browser UI last so API routes take precedence
    static_path = Path(settings.static_dir)
    if static_path.is_dir():
        app.mount("/", StaticFiles(directory=static_path, html=True), name="static")
    else:
        logger.debug(f"Static directory {static_path} not found; UI not served")

    return app


def find_available_port(host: str, first_port: int, attempts: int) -> int:
    """Return the first port in ``[first_port, first_port + attempts)`` that binds.

    Raises:
        OSError: If none of the candidate ports is free.
    """
    for port in range(first_port, first_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise
                logger.warning(f"Port {port} is in use. Trying next port...")
                continue
            return port

    raise OSError(errno.EADDRINUSE, "No available ports to bind the server")


def run() -> None:
    """Start the server, falling back to the next free port if needed."""
    settings = get_settings()
    port = find_available_port(settings.host, settings.port, settings.port_attempts)
    logger.info(f"Server listening on http://localhost:{port}")
    logger.info(f"WebSocket available at ws://localhost:{port}/ws")
    uvicorn.run(app, host=settings.host, port=port, log_level=settings.log_level.lower())


# Application instance
app = create_app()


if __name__ == "__main__":
    run()
