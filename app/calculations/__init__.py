"""
Financial Calculation Engine

Pure calculation modules for the property portfolio.
No database or network access happens here.
"""

from app.calculations import mortgage

__all__ = ["mortgage"]
