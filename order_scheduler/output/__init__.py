"""
Output formatting and export functionality.
"""

from order_scheduler.output.formatter import ConsoleFormatter
from order_scheduler.output.exporter import ResultExporter

__all__ = ["ConsoleFormatter", "ResultExporter"]
