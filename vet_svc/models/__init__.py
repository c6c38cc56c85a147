"""
Domain models for the vet clinic service.

These dataclasses are shared by both storage adapters and the service layer.
"""
from models.consultation import Consultation
from models.patient import Patient

__all__ = ["Consultation", "Patient"]
