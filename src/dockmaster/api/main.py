from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dockmaster import __version__
from dockmaster.config.log_setup import configure_logging
from dockmaster.config.settings import get_settings
from dockmaster.api.scope_api import router as scope_router
from dockmaster.api.work_orders_api import router as work_orders_router
from dockmaster.api.outreach_api import router as outreach_router

logger = structlog.get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "api_started",
        openai_configured=bool(settings.openai_api_key),
        anthropic_configured=bool(settings.anthropic_api_key),
    )
    yield


app = FastAPI(
    title="DockMaster AI API",
    description="Service scoping, work order pricing and proactive outreach for the marina service desk",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scope_router)
app.include_router(work_orders_router)
app.include_router(outreach_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "DockMaster AI API Active", "version": __version__}
