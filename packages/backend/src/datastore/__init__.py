"""Datastore package: optional database handle and dependency types."""

from src.datastore.database import Datastore, connect_datastore
from src.datastore.types import Connected, Dependency, NotConfigured, Probe, close_dependency

__all__ = [
    "Connected",
    "Datastore",
    "Dependency",
    "NotConfigured",
    "Probe",
    "close_dependency",
    "connect_datastore",
]
