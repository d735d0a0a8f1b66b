import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError

from hirepipe.api.router import api_router
from hirepipe.core.config import Settings, settings as default_settings
from hirepipe.core.errors import PipelineError
from hirepipe.core.logging_config import configure_logging
from hirepipe.db.session import build_engine, build_sessionmaker, create_schema
from hirepipe.jobs.queue import JobQueue
from hirepipe.middleware.logging import RequestLoggingMiddleware
from hirepipe.services.llm import AnthropicTextGenerator

logger = logging.getLogger("hirepipe.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = build_engine(settings)
    if settings.database_create_schema:
        await create_schema(engine)
    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    llm = AnthropicTextGenerator.from_settings(settings)

    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.queue = JobQueue.from_settings(redis, settings)
    app.state.llm = llm
    logger.info("app_started", extra={"environment": settings.environment})
    try:
        yield
    finally:
        await llm.close()
        await redis.aclose()
        await engine.dispose()


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("pipeline_error", extra={"path": request.url.path, "reason": exc.reason, "detail": exc.detail})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{field}: {first.get('msg')}" if field else str(first.get("msg") or "Invalid request")
    return JSONResponse(status_code=400, content={"error": "invalid_input", "detail": detail})


async def redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    logger.error("queue_unavailable", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=503,
        content={"error": "queue_unavailable", "detail": "Job queue is unavailable"},
    )


def create_app(settings: Settings | None = None, *, lifespan_handler=lifespan) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan_handler,
    )
    app.state.settings = settings
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RedisError, redis_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "environment": settings.environment}

    app.include_router(api_router)
    return app


app = create_app()
