"""
Worklog – store service
Start with: uvicorn worklog.main:app --reload
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worklog import __version__, config
from worklog.db import init_db
from worklog.logging_config import setup_logging
from worklog.routers import auth, sessions


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    yield


app = FastAPI(
    title="Worklog API",
    description="Accounts and work-session storage for the Worklog time tracker",
    version=__version__,
    lifespan=lifespan,
)

# Allow the frontend to call this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(sessions.router)


@app.get("/health")
def health():
    """Check that the API is running. The client can call this first."""
    return {"status": "ok", "message": "Worklog API is running"}


@app.get("/")
def root():
    return {"app": "Worklog", "docs": "/docs"}
