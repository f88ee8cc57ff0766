"""
Router shim for the job calendar endpoints.

The feature-specific router lives under app.features.job_calendar.
"""

from app.features.job_calendar.api import router

__all__ = ["router"]
