"""
Export functionality for orders and holiday rules.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from order_scheduler.data.schemas import HolidayRule, Task

logger = logging.getLogger(__name__)

TASK_COLUMNS = [
    "ID",
    "Order Number",
    "Order Name",
    "Customer",
    "Start Date",
    "End Date",
    "Due Date",
    "Working Days",
    "Holidays",
    "Holiday Dates",
    "Effort",
    "Status",
]

RULE_COLUMNS = ["ID", "Name", "Type", "Date", "Weekday", "Effective From", "Cancelled", "Cancelled On"]


class ResultExporter:
    """Exports orders and holiday rules to JSON or CSV."""

    def __init__(
        self,
        output_directory: str = "results",
        timestamp_format: str = "%Y%m%d_%H%M%S",
    ):
        """
        Initialize the result exporter.

        Args:
            output_directory: Directory for output files.
            timestamp_format: Format string for timestamps in filenames.
        """
        self.output_directory = output_directory
        self.timestamp_format = timestamp_format

    def _resolve_path(self, prefix: str, extension: str, output_path: Optional[str]) -> Path:
        """Use the given path or generate a timestamped one in the output directory."""
        if output_path:
            file_path = Path(output_path)
        else:
            timestamp = datetime.now().strftime(self.timestamp_format)
            file_path = Path(self.output_directory) / f"{prefix}_{timestamp}.{extension}"
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return file_path

    def export_tasks_json(self, tasks: List[Task], output_path: Optional[str] = None) -> str:
        """
        Export orders to a JSON file.

        Args:
            tasks: Orders to export.
            output_path: Optional specific output path.

        Returns:
            Path to the exported file.
        """
        file_path = self._resolve_path("orders", "json", output_path)
        data = {
            "exported_at": datetime.now().isoformat(),
            "count": len(tasks),
            "orders": [task.model_dump(mode="json") for task in tasks],
        }
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Exported {len(tasks)} orders to: {file_path}")
        return str(file_path)

    def export_tasks_csv(self, tasks: List[Task], output_path: Optional[str] = None) -> str:
        """Export orders to a CSV file, one row per order."""
        file_path = self._resolve_path("orders", "csv", output_path)

        with open(file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(TASK_COLUMNS)
            for task in tasks:
                writer.writerow([
                    task.id,
                    task.order_number,
                    task.order_name,
                    task.customer_name,
                    task.start_date.isoformat(),
                    task.end_date.isoformat(),
                    task.due_date.isoformat(),
                    task.working_days,
                    task.holiday_count,
                    ";".join(d.isoformat() for d in task.holiday_dates),
                    task.effort,
                    task.status.value,
                ])

        logger.info(f"Exported {len(tasks)} orders to: {file_path}")
        return str(file_path)

    def export_rules_csv(self, rules: List[HolidayRule], output_path: Optional[str] = None) -> str:
        """Export holiday rules to a CSV file."""
        file_path = self._resolve_path("holidays", "csv", output_path)

        with open(file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(RULE_COLUMNS)
            for rule in rules:
                writer.writerow([
                    rule.id,
                    rule.name,
                    rule.kind.value,
                    rule.holiday_date.isoformat() if rule.holiday_date else "",
                    rule.weekday if rule.weekday is not None else "",
                    rule.effective_from.isoformat() if rule.effective_from else "",
                    rule.cancelled,
                    rule.cancelled_on.isoformat() if rule.cancelled_on else "",
                ])

        logger.info(f"Exported {len(rules)} holiday rules to: {file_path}")
        return str(file_path)

    def export_rules_json(self, rules: List[HolidayRule], output_path: Optional[str] = None) -> str:
        """Export holiday rules to a JSON file."""
        file_path = self._resolve_path("holidays", "json", output_path)
        data = {
            "exported_at": datetime.now().isoformat(),
            "count": len(rules),
            "holidays": [rule.model_dump(mode="json") for rule in rules],
        }
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Exported {len(rules)} holiday rules to: {file_path}")
        return str(file_path)
