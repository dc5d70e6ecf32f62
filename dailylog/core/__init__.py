"""
Core of Daily Log.

Exports:
    - DailyLog: Application facade wiring every service behind the auth gate
"""

from .daily_log import DailyLog

__all__ = ["DailyLog"]
