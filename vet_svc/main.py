"""
FastAPI application entry point for the Vet Clinic Record Service.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging with request ids
- Dependency Injection: Services, repository and store injected via Depends()
- Exception Handling: ``{success: false, error}`` envelopes via setup_exception_handlers()
- CORS Middleware: Allows the clinic frontend to call the API
- Lifespan Management: Store creation at startup, connection close at shutdown
- Metrics Collection: In-memory metrics for Prometheus scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack                                           │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics            │
    │    ├── clinic.py     - /test, /login                        │
    │    ├── pacientes.py  - Patient CRUD                         │
    │    └── consultas.py  - Consultations & /historial           │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)          ← Injected via Depends()     │
    ├─────────────────────────────────────────────────────────────┤
    │  RecordRepository              ← Injected into Services     │
    ├─────────────────────────────────────────────────────────────┤
    │  SqlRecordStore | MongoRecordStore  (VET_SVC_BACKEND)       │
    └─────────────────────────────────────────────────────────────┘

The store connects lazily: the app starts even when MongoDB is down, and
requests return 503 until it becomes reachable.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD, settings
from core.dependencies import close_record_store, get_record_store
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware
from api.routers import clinic_router, consultas_router, health_router, pacientes_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application.

    Startup:
        - Configures structured JSON logging stamped with the backend name
        - Builds the store for the configured backend (no connection yet)

    Shutdown:
        - Closes the store's connection, if one was opened
    """
    setup_logging(level="INFO", json_format=True, backend=settings.backend)

    logger = logging.getLogger(__name__)
    logger.info("Starting Vet Clinic Record Service...")

    store = get_record_store()
    logger.info(
        "Record store ready",
        extra={"backend": store.backend, "port": API_PORT}
    )

    yield

    logger.info("Vet Clinic Record Service shutting down...")
    close_record_store()


app = FastAPI(
    title="Vet Clinic Record Service",
    description="REST API for a veterinary clinic: patients (animals), consultations and "
                "per-pet history, stored in SQLite or MongoDB.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Middleware is executed in REVERSE order of registration.

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(clinic_router)
app.include_router(pacientes_router)
app.include_router(consultas_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
