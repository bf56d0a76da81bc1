# phasetrack type definitions
# Rev 0.2.0

from __future__ import annotations
from typing import Literal, Tuple

PhaseStatus = Literal["not-started", "in-progress", "completed"]

NOT_STARTED: PhaseStatus = "not-started"
IN_PROGRESS: PhaseStatus = "in-progress"
COMPLETED: PhaseStatus = "completed"

PHASE_STATUSES: Tuple[PhaseStatus, ...] = (NOT_STARTED, IN_PROGRESS, COMPLETED)

STATUS_LABELS = {
    NOT_STARTED: "Not Started",
    IN_PROGRESS: "In Progress",
    COMPLETED: "Completed",
}

# MutationResult.code values
ResultCode = Literal["applied", "not_found", "invalid", "error"]
