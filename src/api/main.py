# api/main.py

import os
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import dashboard, scoring

# Charge .env en local uniquement (en prod les vars sont injectées)
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s : %(message)s",
)
logger = logging.getLogger("immopulse.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("ImmoPulse API — Démarrage")
    yield
    logger.info("ImmoPulse API — Arrêt")


app = FastAPI(
    title="ImmoPulse API",
    version="1.0.0",
    description="Scores, alertes et santé du pipeline pour agences immobilières",
    lifespan=lifespan,
)

# ─────────────────────────────────────────
# CORS
# ─────────────────────────────────────────
# FRONTEND_ORIGINS="https://crm.agence.fr,https://preview.agence.fr"
frontend_origins = os.getenv("FRONTEND_ORIGINS", "")
origins = [
    "http://localhost:5173",   # Vite local
    "http://localhost:8080",
]

if frontend_origins:
    origins.extend([o.strip() for o in frontend_origins.split(",") if o.strip()])

origins = sorted(set(origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],  # inclut X-API-KEY
)

# ─────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(scoring.router, prefix="/scoring", tags=["scoring"])

# ─────────────────────────────────────────
# HEALTH
# ─────────────────────────────────────────
@app.get("/")
def root() -> dict:
    return {"status": "ok", "service": "immopulse-api"}

@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "immopulse-api"}

# ─────────────────────────────────────────
# ERREURS GLOBALES
# ─────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erreur non gérée — {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Erreur interne", "detail": str(exc)},
    )
