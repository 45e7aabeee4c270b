"""
Review Council — FastAPI application entrypoint.

Start the server:
    uvicorn main:app --reload --port 8000

API Overview:
    GET    /api/health                      — Health check
    POST   /api/pipeline/run                — Start a pipeline run
    GET    /api/pipeline/run/{run_id}       — Poll run status/result
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from logger import configure_logging, get_logger


log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    configure_logging()
    log.info("Review Council API starting up...")
    yield
    log.info("Review Council API shutting down...")


app = FastAPI(
    title="Review Council API",
    description=(
        "Runs interview transcripts through the analyze → metrics → report "
        "pipeline, with a quality judge approving or sending back each stage."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# CORS — allow all origins in development; tighten in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount REST routes under /api prefix
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
