# Rev 0.2.0
"""Lightweight entities aligned with migration 0001 (projects/phases/tasks/subtasks)"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .types import NOT_STARTED, PhaseStatus


@dataclass
class Project:
    id: int | None
    name: str


@dataclass
class Subtask:
    id: int | None
    task_id: int
    name: str
    completed: bool = False
    position: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Subtask":
        return cls(
            id=row.get("id"),
            task_id=int(row["task_id"]),
            name=row.get("name") or "",
            completed=bool(row.get("completed")),
            position=int(row.get("position") or 0),
        )


@dataclass
class Task:
    id: int | None
    phase_id: int
    name: str
    completed: bool = False
    due_date: Optional[str] = None       # ISO YYYY-MM-DD
    position: int = 0
    subtasks: List[Subtask] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        return cls(
            id=row.get("id"),
            phase_id=int(row["phase_id"]),
            name=row.get("name") or "",
            completed=bool(row.get("completed")),
            due_date=row.get("due_date"),
            position=int(row.get("position") or 0),
            subtasks=[Subtask.from_row(s) for s in row.get("subtasks") or []],
        )


@dataclass
class Phase:
    id: int | None
    project_id: int
    name: str
    position: int = 0
    # cached aggregation output; written only by TrackerService.refresh_phase
    progress: int = 0
    status: PhaseStatus = NOT_STARTED
    completed_item_count: int = 0
    total_item_count: int = 0
    tasks: List[Task] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Phase":
        return cls(
            id=row.get("id"),
            project_id=int(row["project_id"]),
            name=row.get("name") or "",
            position=int(row.get("position") or 0),
            progress=int(row.get("progress") or 0),
            status=row.get("status") or NOT_STARTED,
            completed_item_count=int(row.get("completed_item_count") or 0),
            total_item_count=int(row.get("total_item_count") or 0),
            tasks=[Task.from_row(t) for t in row.get("tasks") or []],
        )
