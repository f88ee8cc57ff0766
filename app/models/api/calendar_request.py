# app/models/api/calendar_request.py
"""
Calendar API request models.
Used by routes for input validation.
"""

from datetime import date

from pydantic import BaseModel, Field


class RescheduleEventRequest(BaseModel):
    """Request for moving a calendar event to another day."""

    new_date: date = Field(..., description="New calendar day (YYYY-MM-DD)")
