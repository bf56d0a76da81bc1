# Rev 0.2.0

"""Phase/project progress aggregation (Rev 0.2.0)

Item counting for a phase:
- every task is one item, every subtask of that task one more
- a task's own `completed` flag counts on its own; it is never derived
  from its subtasks (a task may be done while subtasks are still open)

Percentages round half-up (12.5 -> 13), not Python's banker's rounding.
Project progress is the plain mean of phase percentages, so each phase
weighs the same regardless of how many items it holds.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence

from phasetrack.models.types import COMPLETED, IN_PROGRESS, NOT_STARTED, PhaseStatus


@dataclass(frozen=True)
class PhaseMetrics:
    progress: int
    status: PhaseStatus
    completed_count: int
    total_count: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "progress": self.progress,
            "status": self.status,
            "completedCount": self.completed_count,
            "totalCount": self.total_count,
        }


def _field(record: Any, name: str, default: Any = None) -> Any:
    # repositories hand out dicts, the UI layer uses dataclasses
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def round_half_up(numerator: int, denominator: int) -> int:
    """Nearest integer to numerator/denominator for non-negative operands, .5 rounds up."""
    return (2 * numerator + denominator) // (2 * denominator)


def classify(completed_count: int, total_count: int) -> PhaseStatus:
    if total_count == 0:
        return NOT_STARTED
    if completed_count == total_count:
        return COMPLETED
    if completed_count > 0:
        return IN_PROGRESS
    return NOT_STARTED


def count_items(tasks: Iterable[Any]) -> tuple[int, int]:
    """Return (completed, total) over tasks and their subtasks."""
    completed = total = 0
    for task in tasks:
        total += 1
        if _field(task, "completed", False):
            completed += 1
        for sub in _field(task, "subtasks", None) or ():
            total += 1
            if _field(sub, "completed", False):
                completed += 1
    return completed, total


def calculate_phase_metrics(tasks: Iterable[Any]) -> PhaseMetrics:
    completed, total = count_items(tasks)
    progress = round_half_up(100 * completed, total) if total > 0 else 0
    return PhaseMetrics(
        progress=progress,
        status=classify(completed, total),
        completed_count=completed,
        total_count=total,
    )


def calculate_project_progress(phases: Sequence[Any]) -> int:
    """Mean of the phases' `progress` values; 0 for a project with no phases."""
    if not phases:
        return 0
    total = sum(int(_field(p, "progress", 0) or 0) for p in phases)
    return round_half_up(total, len(phases))
