from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from decisionfindr.config import get_settings
from decisionfindr.database import connect_to_mongo, close_mongo_connection
from decisionfindr.auth.router import router as auth_router
from decisionfindr.users.router import router as users_router
from decisionfindr.admin.router import router as admin_router
from decisionfindr.search.router import router as search_router
from decisionfindr.lists.router import router as lists_router
from decisionfindr.export.router import router as export_router
from decisionfindr.search.clients import get_profile_search_client

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - connect/disconnect MongoDB and the search webhook."""
    # Startup
    await connect_to_mongo()
    logger.info(f"Search webhook at {get_profile_search_client().url}")

    yield

    # Shutdown
    await get_profile_search_client().close()
    await close_mongo_connection()


app = FastAPI(title="DecisionFindr API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(admin_router)
app.include_router(search_router)
app.include_router(lists_router)
app.include_router(export_router)


@app.get("/health")
def health():
    return {"status": "ok"}
