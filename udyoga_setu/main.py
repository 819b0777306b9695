"""
Udyoga Setu API

Job seekers apply at a kiosk, online or by voice; resumes reach the kiosk
from a phone through a short-lived QR upload session. Employers post jobs,
admins moderate them, and dashboards follow applications over WebSockets.

Run: uvicorn udyoga_setu.main:app --reload
"""

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from udyoga_setu.api.routes import api_router, page_router
from udyoga_setu.core.config import get_settings
from udyoga_setu.db.mongodb import init_mongo_indexes, mongo_ready
from udyoga_setu.db.postgres import database_ready
from udyoga_setu.db.schema import create_tables
from udyoga_setu.services.storage_service import get_storage
from udyoga_setu.services.upload_service import run_cleanup_loop

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Udyoga Setu",
    description="""
    Job applications by QR resume upload or voice, and applicant pipelines for employers.

    ## Areas
    - **Auth**: employer sign-up and login; admins are created from the CLI
    - **Jobs**: postings, public search and the moderation queue
    - **Applications**: kiosk, online and voice submissions with status and interviews
    - **Uploads**: phone-to-kiosk resume handoff through QR sessions
    - **Realtime**: `/api/realtime/applications` and `/api/realtime/notifications`
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")
app.include_router(page_router)

# strong references so the cleanup task is not garbage collected mid-run
_background_tasks = set()


@app.on_event("startup")
async def startup_event():
    if settings.auto_create_tables:
        create_tables()

    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("Skipping GridFS index setup: %s", e)

    task = asyncio.create_task(run_cleanup_loop(get_storage()))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    logger.info("Upload cleanup scheduled every %d minutes", settings.upload_cleanup_interval_minutes)


@app.on_event("shutdown")
async def shutdown_event():
    for task in list(_background_tasks):
        task.cancel()


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Udyoga Setu", "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Reachability of the SQL database and the GridFS store."""
    return {
        "status": "healthy",
        "database": "connected" if database_ready() else "disconnected",
        "storage": "connected" if mongo_ready() else "disconnected",
    }
