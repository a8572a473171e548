"""
Routers Package
===============

Routers are like the reception desk - they direct incoming requests
to the right place.
"""

from .vitals import router as vitals_router, set_vital_service, get_vital_service

__all__ = [
    "vitals_router",
    "set_vital_service",
    "get_vital_service",
]
