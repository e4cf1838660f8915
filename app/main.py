from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.mongo import connect_to_mongo, disconnect_from_mongo
from app.stores.session import SessionRegistry

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    try:
        yield
    finally:
        await disconnect_from_mongo()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Per-user business sessions live for the lifetime of the process
app.state.sessions = SessionRegistry()


@app.get("/")
async def root():
    return {"message": "Welcome to PetStock API"}


app.include_router(api_router, prefix=settings.API_V1_STR)
