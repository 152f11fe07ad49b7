from __future__ import annotations

from typing import Any, Dict

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Writes nothing; keeps the final status of each finished task.

    Library callers that only care whether stages failed can read
    ``outcomes`` after an export instead of parsing reporter output.
    """

    def __init__(self) -> None:
        self.outcomes: Dict[str, TaskStatus] = {}

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self.outcomes.pop(task_id, None)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        self.outcomes[task_id] = status

    def status(self, message: str, **fields: Any) -> None:
        pass

    def error(self, message: str, **fields: Any) -> None:
        pass

    def section(self, title: str) -> None:
        pass
