# main.py
# Entry point for the backend service.
# - Initializes FastAPI app
# - Registers API routes (projects, expenses, finances, account)
# - Provides root health-check endpoint
# - Run with: uvicorn main:app --reload --app-dir backend/src
import logging
import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

sys.path.insert(0, str(Path(__file__).parent))
from api import (
    auth_router,
    expense_router,
    finance_router,
    notification_router,
    profile_router,
    project_router,
    settings_router,
)
from config.settings import get_config

config = get_config()

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Freelance Dashboard API",
    description="Projects, expenses and financial summaries for freelancers",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"status": "healthy", "message": "Backend API is running"}


@app.get("/health")
def health_check():
    return {"status": "ok", "supabase_configured": config.supabase_configured}


# Register API routes
app.include_router(auth_router)
app.include_router(project_router)
app.include_router(expense_router)
app.include_router(finance_router)
app.include_router(profile_router)
app.include_router(settings_router)
app.include_router(notification_router)

if not config.supabase_configured:
    logger.warning("Supabase credentials not configured; data endpoints will return configuration errors")

if __name__ == "__main__":
    from cli.app import main as cli_main

    sys.exit(cli_main())
