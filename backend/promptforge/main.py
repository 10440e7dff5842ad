"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from promptforge.config import settings
from promptforge.database import engine, get_db
from promptforge.errors import PromptForgeError, RateLimitError
from promptforge.models import Base

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, dispose the engine on shutdown."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("PromptForge API started")

    yield

    await engine.dispose()


app = FastAPI(
    title="PromptForge API",
    version="1.0.0",
    description="Prompt templates with variables, semantic versions and sharing.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PromptForgeError)
async def promptforge_error_handler(request: Request, exc: PromptForgeError):
    """Render domain errors as {"error": code, "message": ..., extra fields}."""
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from promptforge.routes.profiles import router as profiles_router
from promptforge.routes.prompts import router as prompts_router
from promptforge.routes.versions import router as versions_router
from promptforge.routes.shares import router as shares_router
from promptforge.routes.analysis import router as analysis_router
from promptforge.routes.usage import router as usage_router
app.include_router(profiles_router)
app.include_router(prompts_router)
app.include_router(versions_router)
app.include_router(shares_router)
app.include_router(analysis_router)
app.include_router(usage_router)
