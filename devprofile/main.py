import asyncio
import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from devprofile.api import auth, integrations
from devprofile.core.config import CORS_ORIGINS
from devprofile.core.database import init_models
from devprofile.services.encryption_service import get_cipher
from devprofile.services.github_service import github_client
from devprofile.services.state_service import state_store

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("devprofile")

app = FastAPI(title="devprofile")

app.include_router(auth.router)
app.include_router(integrations.router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_sweeper_task = None


@app.on_event("startup")
async def startup():
    global _sweeper_task
    # Fail fast on a missing or malformed ENCRYPTION_KEY
    get_cipher()
    await init_models()
    _sweeper_task = asyncio.create_task(state_store.run_sweeper())
    logger.info("devprofile started")


@app.on_event("shutdown")
async def shutdown():
    if _sweeper_task:
        _sweeper_task.cancel()
    await github_client.aclose()


@app.get("/")
async def root():
    return {"message": "devprofile API"}
