"""
FastAPI application factory for the Hamlet API.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hamlet.api.sessions import SessionManager
from hamlet.api.routers import placement, villagers, villages

# Load .env from the project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]  # src/hamlet/api/app.py → project root
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Hamlet API",
        description="REST API for the Hamlet village builder",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    db_path = os.environ.get("HAMLET_DB_PATH", "data/hamlet.db")
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    autosave_ms = float(os.environ.get("HAMLET_AUTOSAVE_MS", "5000"))
    application.state.session_manager = SessionManager(
        db_path=db_path, autosave_ms=autosave_ms,
    )

    application.include_router(villages.router, prefix="/api/villages", tags=["villages"])
    application.include_router(placement.router, prefix="/api/placement", tags=["placement"])
    application.include_router(villagers.router, prefix="/api/villagers", tags=["villagers"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
