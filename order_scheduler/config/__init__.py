"""
Configuration loading.
"""

from order_scheduler.config.manager import ConfigManager

__all__ = ["ConfigManager"]
