"""
HTTP layer for the job calendar feature.
"""

from .router import router

__all__ = ["router"]
