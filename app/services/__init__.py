"""
Application services module.
"""

from app.services.mortgage import local_today, remaining_debt

__all__ = ["local_today", "remaining_debt"]
