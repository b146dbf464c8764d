"""
Point d'entrée principal de l'API InternQuest Admin.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant les routers
from app.events import feed
from app.routers import activity, companies, dashboard, deleted, notifications, storage, students
from app.scheduler import start_scheduler, stop_scheduler
from app.services.dashboard import create_dashboard

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Cycle de vie de l'application : démarre le scheduler APScheduler et le
    contrôleur du tableau de bord, puis les arrête (désabonnement inclus).
    """
    start_scheduler()
    controller = create_dashboard(feed)
    controller.start()
    app.state.dashboard = controller
    yield
    controller.stop()
    stop_scheduler()


app = FastAPI(
    title="InternQuest Admin API",
    description="API d'administration des stagiaires : élèves, entreprises, documents et notifications",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS — autorise tous les ports localhost en développement (à restreindre en production).
# allow_origin_regex est nécessaire pour les requêtes preflight POST avec Content-Type JSON.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type", "Authorization", "Accept",
        "X-Admin-Role", "X-Admin-Id", "X-Admin-Username", "X-Admin-Sections", "X-Admin-College",
    ],
)


app.include_router(students.router)
app.include_router(companies.router)
app.include_router(dashboard.router)
app.include_router(notifications.router)
app.include_router(deleted.router)
app.include_router(activity.router)
app.include_router(storage.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    Sans ce handler, ServerErrorMiddleware renvoie une réponse brute sans headers CORS,
    ce qui provoque une erreur "Failed to fetch" côté navigateur.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "InternQuest Admin API", "version": "0.1.0"}
