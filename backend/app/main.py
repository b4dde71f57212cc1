import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.endpoints import users, ideas
from app.core.async_context import close_async_context
from app.core.config import settings
from app.core.exceptions import IdeaServiceError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Startup complete.")
    yield
    await close_async_context()
    logger.info("Shutdown complete.")


app = FastAPI(
    title="Idea Validator API",
    description="AI feasibility reports for business ideas.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(IdeaServiceError)
async def idea_service_error_handler(request: Request, exc: IdeaServiceError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(ideas.router, prefix="/api/v1/ideas", tags=["Ideas"])


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}
