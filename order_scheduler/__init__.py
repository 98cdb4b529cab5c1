"""
Order Scheduler - holiday-aware scheduling of orders on a working-day calendar.
"""

__version__ = "0.1.0"
