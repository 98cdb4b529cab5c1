"""
MCP Server for the Order Scheduler.

This module provides an MCP (Model Context Protocol) server that exposes
holiday classification and working-day arithmetic to MCP clients.

Supports two transport modes:
- stdio: For local desktop integration
- sse: For HTTP-based integration (Docker, remote servers)
"""

import argparse
import os
from datetime import date
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from order_scheduler.config.manager import ConfigManager
from order_scheduler.core.classifier import exception_name, holiday_name
from order_scheduler.core.classifier import is_holiday as classify_holiday
from order_scheduler.core.date_arithmetic import coerce_working_days
from order_scheduler.core.date_arithmetic import compute_end_date as walk_forward
from order_scheduler.core.date_arithmetic import compute_start_date as walk_backward
from order_scheduler.core.scheduler import TaskScheduler
from order_scheduler.core.staleness import find_stale_dates as stale_dates

# Load configuration
config_manager = ConfigManager()
config = config_manager.load_config()


def create_mcp_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    scheduler: Optional[TaskScheduler] = None,
) -> FastMCP:
    """Create and configure the MCP server with tools."""
    scheduler = scheduler or TaskScheduler.from_config(config)
    mcp = FastMCP("Order Scheduler", host=host, port=port)

    def parse(value: str) -> date:
        return date.fromisoformat(value)

    @mcp.tool()
    def is_holiday(day: str) -> dict:
        """
        Check whether a date is a holiday under the current holiday rules.

        Working-day exceptions override holidays on the same date. Weekends are
        not holidays unless a rule says so.

        Args:
            day: Date in YYYY-MM-DD format

        Returns:
            Dictionary with:
            - date: The checked date
            - is_holiday: True if no work happens on this date
            - holiday_name: Names of the matching holidays, if any
            - exception_name: Names of working-day exceptions on the date, if any
        """
        try:
            check = parse(day)
        except ValueError as e:
            return {"error": f"Invalid date format: {e}"}

        rules = scheduler.rule_service.active_rules()
        return {
            "date": check.isoformat(),
            "is_holiday": classify_holiday(check, rules),
            "holiday_name": holiday_name(check, rules),
            "exception_name": exception_name(check, rules),
        }

    @mcp.tool()
    def compute_start_date(end_date: str, working_days: int) -> dict:
        """
        Compute the start date of an order from its end date.

        Walks backward from the end date, skipping holidays, until the range
        holds the requested number of working days. The end date always counts
        as the first working day.

        Args:
            end_date: Last day of work in YYYY-MM-DD format
            working_days: Number of working days (values below 1 are treated as 1)

        Returns:
            Dictionary with start_date, end_date, working_days and the
            holiday dates inside the range.

        Example:
            >>> compute_start_date("2024-01-10", 5)
        """
        try:
            end = parse(end_date)
            days = coerce_working_days(working_days)
            result = walk_backward(
                end, days, scheduler.rule_service.active_rules(), scheduler.max_walk_days
            )
        except ValueError as e:
            return {"error": str(e)}

        return {
            "start_date": result.start_date.isoformat(),
            "end_date": end.isoformat(),
            "working_days": days,
            "holiday_count": len(result.holiday_dates),
            "holiday_dates": [d.isoformat() for d in result.holiday_dates],
        }

    @mcp.tool()
    def compute_end_date(start_date: str, working_days: int) -> dict:
        """
        Compute the end date of an order from its start date.

        The start date counts as the first working day; holidays after it are
        skipped.

        Args:
            start_date: First day of work in YYYY-MM-DD format
            working_days: Number of working days (values below 1 are treated as 1)

        Returns:
            Dictionary with start_date, end_date and working_days.
        """
        try:
            start = parse(start_date)
            days = coerce_working_days(working_days)
            end = walk_forward(
                start, days, scheduler.rule_service.active_rules(), scheduler.max_walk_days
            )
        except ValueError as e:
            return {"error": str(e)}

        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "working_days": days,
        }

    @mcp.tool()
    def find_stale_dates(holiday_dates: List[str]) -> dict:
        """
        Find cached holiday dates that are no longer holidays.

        Args:
            holiday_dates: Dates in YYYY-MM-DD format stored on an order

        Returns:
            Dictionary with the stale dates and an is_stale flag.
        """
        try:
            cached = [parse(d) for d in holiday_dates]
        except ValueError as e:
            return {"error": f"Invalid date format: {e}"}

        stale = stale_dates(cached, scheduler.rule_service.active_rules())
        return {
            "stale_dates": [d.isoformat() for d in stale],
            "is_stale": bool(stale),
        }

    @mcp.tool()
    def list_holiday_rules(include_cancelled: bool = False) -> dict:
        """
        List the holiday rules, newest first.

        Args:
            include_cancelled: Also list cancelled rules

        Returns:
            Dictionary with the rule count and each rule's id, name, kind,
            description and cancelled flag.
        """
        rules = scheduler.rule_service.list_rules(include_cancelled=include_cancelled)
        return {
            "count": len(rules),
            "rules": [
                {
                    "id": rule.id,
                    "name": rule.name,
                    "kind": rule.kind.value,
                    "applies": rule.describe(),
                    "cancelled": rule.cancelled,
                }
                for rule in rules
            ],
        }

    return mcp


def main():
    """Run the MCP server with configurable transport.

    Transport can be set via:
    - Command line: --transport sse --port 8080
    - Environment: MCP_TRANSPORT=sse MCP_PORT=8080 MCP_HOST=0.0.0.0
    """
    parser = argparse.ArgumentParser(description="Order Scheduler MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=os.environ.get("MCP_TRANSPORT", "stdio"),
        help="Transport mode: stdio (default) or sse for HTTP",
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("MCP_HOST", "0.0.0.0"),
        help="Host to bind to (SSE mode only, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("MCP_PORT", "8080")),
        help="Port to listen on (SSE mode only, default: 8080)",
    )

    args = parser.parse_args()

    mcp = create_mcp_server(host=args.host, port=args.port)
    mcp.run(transport=args.transport)


if __name__ == "__main__":
    main()
