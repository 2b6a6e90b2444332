import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from lynqai.db.conversation_store import ConversationStore
from lynqai.errors import Unauthenticated
from lynqai.routes.chat.route import router as chat_router
from lynqai.settings import config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ConversationStore().init_schema()
    yield


def initialize_app() -> FastAPI:
    app = FastAPI(
        title="LynqAI API",
        description="Social media post and image generation with persisted conversations",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(chat_router, tags=["chat"])
    return app


def add_middlewares(app: FastAPI):
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        # headers and bodies carry credentials and image payloads
        logger.info(f"{request.method} {request.url.path}")
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response


def add_exception_handlers(app: FastAPI):
    @app.exception_handler(Unauthenticated)
    async def unauthenticated_handler(request: Request, exc: Unauthenticated):
        logger.warning(f"Unauthenticated {request.method} {request.url.path}: {exc}")
        return PlainTextResponse(
            "Unauthorized", status_code=401, headers={"WWW-Authenticate": "Bearer"}
        )


app = initialize_app()
add_middlewares(app)
add_exception_handlers(app)


@app.get("/")
async def root():
    return {"message": "LynqAI API is running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    logger.info(f"Starting LynqAI API server on port {config.port}...")
    import uvicorn

    uvicorn.run(
        "lynqai.__main__:app",
        host="0.0.0.0",
        port=config.port,
        reload=True,
        log_level="info",
    )
