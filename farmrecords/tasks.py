"""
Farm tasks (``tasks_c``).

Besides CRUD this module answers "what is due this week" (`get_upcoming`) and
flips completion (`toggle_complete`). Toggling is a read followed by a full
update, so a concurrent update of the same task can be lost (last write wins).

The `completed` and `recurring` flags are written as given on both create and
update, so creating with ``completed: True`` stores a finished task; only an
absent flag is written as False.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from . import settings
from .mappers import Entity, Field, FLAG, REFERENCE, as_utc, iso_timestamp, parse_timestamp
from .services import FarmScopedService

logger = logging.getLogger(__name__)

TASK = Entity(
    collection="tasks_c",
    label="title",
    singular="task",
    plural="tasks",
    fields=(
        Field("title", "title_c"),
        Field("description", "description_c"),
        Field("dueDate", "dueDate_c"),
        Field("priority", "priority_c", default="medium"),
        Field("completed", "completed_c", kind=FLAG),
        Field("recurring", "recurring_c", kind=FLAG),
        Field("farmId", "farmId_c", kind=REFERENCE),
    ),
)


class TaskService(FarmScopedService):
    def __init__(self, window_days: Optional[int] = None, **kwargs):
        super().__init__(TASK, **kwargs)
        self.window_days = settings.UPCOMING_TASK_WINDOW_DAYS if window_days is None else window_days

    def get_upcoming(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        Open tasks due between now and the end of the window, soonest first.
        The backend filters on completion and the window's end; tasks already
        overdue (or with an unreadable due date) are dropped here.
        """
        try:
            now = as_utc(now)
            window_end = now + timedelta(days=self.window_days)
            where = [
                {"FieldName": TASK.source_of("completed"), "Operator": "EqualTo", "Values": [False]},
                {"FieldName": TASK.source_of("dueDate"), "Operator": "LessThanOrEqualTo",
                 "Values": [iso_timestamp(window_end)]},
            ]
            upcoming = []
            for task in self._fetch("fetching upcoming tasks", where=where):
                due = parse_timestamp(task.get("dueDate"))
                if due is not None and due >= now:
                    upcoming.append((due, task))
            # sorted() is stable: equal due dates keep fetch order
            return [task for _, task in sorted(upcoming, key=lambda pair: pair[0])]
        except Exception as e:
            logger.exception("Error fetching upcoming tasks: %s", e)
            return []

    def toggle_complete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        try:
            current = self.get_by_id(record_id)
            if not current:
                logger.error("Task %s not found", record_id)
                return None
            return self.update(record_id, {**current, "completed": not current.get("completed")})
        except Exception as e:
            logger.exception("Error toggling task completion: %s", e)
            return None


task_service = TaskService()
