"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.clinic import router as clinic_router
from api.routers.consultas import router as consultas_router
from api.routers.health import router as health_router
from api.routers.pacientes import router as pacientes_router

__all__ = ["clinic_router", "consultas_router", "health_router", "pacientes_router"]
