"""
GrowTrack - FastAPI Backend
Hauptanwendung und Router-Konfiguration
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from growtrack.config import get_settings
from growtrack.core.events import TrayEventBus, log_subscriber
from growtrack.core.exceptions import (
    TrayDomainError, CapacityError, NotOccupiedError, InvalidQuantityError,
    AllocationMismatchError, InvalidTransitionError, DuplicateTrayError, DuplicateSystemError,
    SystemInUseError, ConcurrentModificationError, TrayNotFoundError, SystemNotFoundError,
    HistoryImmutableError,
)
from growtrack.database import engine, Base
from growtrack.api.v1 import systems, trays, movements

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup und Shutdown Events"""
    # Startup: Tabellen erstellen (für Entwicklung)
    # In Produktion: Alembic Migrations verwenden
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## GrowTrack API

    Tray-Lebenszyklus und Platzbelegung für Vertical Farming.

    ### Features
    - **Anbausysteme**: Nursery, Blackout, Ebb & Flow, Türme, NFT-Kanäle, Regale
    - **Trays**: Aussaat, Umsetzen, Teilen, Ernte, Standort-Historie
    - **Bewegungen**: Automatische Stufenwechsel für Microgreens

    ### Authentifizierung
    Bearer Token via Keycloak
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Änderungs-Benachrichtigungen nach Commit
app.state.event_bus = TrayEventBus()
app.state.event_bus.subscribe(log_subscriber)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check
@app.get("/health", tags=["System"])
async def health_check():
    """
    Systemstatus prüfen.
    Wird von Docker für Health Checks verwendet.
    """
    return {"status": "healthy", "version": settings.app_version}


@app.get("/", tags=["System"])
async def root():
    """API Root - Zeigt Willkommensnachricht"""
    return {
        "message": "Willkommen bei GrowTrack",
        "version": settings.app_version,
        "docs": "/docs",
    }


# API Router einbinden
app.include_router(
    systems.router,
    prefix="/api/v1",
    tags=["Anbausysteme"]
)

app.include_router(
    trays.router,
    prefix="/api/v1",
    tags=["Trays"]
)

app.include_router(
    movements.router,
    prefix="/api/v1",
    tags=["Bewegungen"]
)


# Reihenfolge: spezifische Klassen zuerst
ERROR_STATUS = [
    ((TrayNotFoundError, SystemNotFoundError), 404),
    ((InvalidQuantityError, AllocationMismatchError), 422),
    ((CapacityError, NotOccupiedError, InvalidTransitionError, DuplicateTrayError,
      DuplicateSystemError, SystemInUseError, ConcurrentModificationError,
      HistoryImmutableError), 409),
]


def status_for_error(exc: TrayDomainError) -> int:
    for classes, status_code in ERROR_STATUS:
        if isinstance(exc, classes):
            return status_code
    return 400


# Exception Handler
@app.exception_handler(TrayDomainError)
async def domain_exception_handler(request: Request, exc: TrayDomainError):
    """Fachliche Fehler der Services"""
    status_code = status_for_error(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {type(exc).__name__}: {exc.message}")
    content = {"detail": exc.message, "error": type(exc).__name__}
    if exc.system_id:
        content["system_id"] = exc.system_id
    if exc.tray_id:
        content["tray_id"] = exc.tray_id
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Globaler Exception Handler"""
    logger.exception(f"Unerwarteter Fehler bei {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Ein interner Fehler ist aufgetreten.",
            "error": str(exc) if settings.debug else None
        }
    )
