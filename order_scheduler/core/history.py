"""
Order history log.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select

from order_scheduler.data.schemas import HistoryAction, HistoryEntry, Task
from order_scheduler.store.database import Database
from order_scheduler.store.models import HistoryRecord

logger = logging.getLogger(__name__)


class HistoryLog:
    """Records added, modified and deleted orders."""

    def __init__(self, database: Database):
        self.database = database

    def record(
        self,
        action: HistoryAction,
        task: Task,
        details: Optional[str] = None,
        user_name: str = "System",
    ) -> HistoryEntry:
        """Append an entry for a change to an order."""
        with self.database.session() as db:
            record = HistoryRecord(
                timestamp=datetime.now(),
                action=action.value,
                task_id=task.id,
                order_number=task.order_number,
                order_name=task.order_name,
                details=details,
                user_name=user_name,
            )
            db.add(record)
            db.flush()
            entry = HistoryEntry.model_validate(record, from_attributes=True)

        logger.debug(f"History: {action.value} order {task.order_number}")
        return entry

    def entries(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """Entries newest first."""
        query = select(HistoryRecord).order_by(HistoryRecord.timestamp.desc(), HistoryRecord.id.desc())
        if limit:
            query = query.limit(limit)
        with self.database.session() as db:
            return [
                HistoryEntry.model_validate(record, from_attributes=True)
                for record in db.scalars(query)
            ]

    def clear(self) -> int:
        with self.database.session() as db:
            return db.execute(delete(HistoryRecord)).rowcount
