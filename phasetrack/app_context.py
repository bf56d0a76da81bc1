# phasetrack application context
# Rev 0.2.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .utils.config import db_path_from, load_settings
from .utils.logging_setup import get_logger
from .repositories.db import Database
from .services.tracker_service import TrackerService


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db_path: Path
    db: Database
    service: TrackerService
    settings: Dict[str, Any]

    @classmethod
    def create(cls, db_path: Optional[Path] = None, settings: Optional[Dict[str, Any]] = None) -> "AppContext":
        """Open the DB, apply pending migrations, wire the service."""
        log = get_logger("AppContext")
        settings = settings if settings is not None else load_settings()
        db_path = Path(db_path) if db_path is not None else db_path_from(settings)
        db = Database(db_path)
        applied = db.run_migrations()
        if applied:
            log.info("Applied migrations: %s", ", ".join(applied))
        service = TrackerService(db)
        log.info("AppContext initialized with DB=%s", db_path)
        return cls(db_path=db_path, db=db, service=service, settings=settings)

    def close(self) -> None:
        self.db.close()
