"""
Storage Package
===============

Where vital readings are kept.
"""

from .vital_store import VitalStore, SqlAlchemyVitalStore

__all__ = [
    "VitalStore",
    "SqlAlchemyVitalStore",
]
