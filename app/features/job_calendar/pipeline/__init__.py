"""
Pipeline components for the job calendar.

Sources turn table rows into calendar events, the aggregation service
merges them, and views reshape the merged list for each screen.
"""

__all__ = ["aggregation", "sources", "views"]
