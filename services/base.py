"""
Batch job primitives for database maintenance.

A Job is one unit of work on a session: when `run()` returns, its changes
are committed; when it raises, the session is rolled back so nothing the
job half-wrote survives, and the error is reported in the JobResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional
import logging
import traceback

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    job_name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def __str__(self):
        mark = "✅" if self.success else "❌"
        line = f"{mark} {self.job_name}"
        if self.duration_seconds:
            line += f" ({self.duration_seconds:.2f}s)"
        if self.error:
            line += f": {self.error}"
        return line


class Job(ABC):
    """Subclasses implement `run(db)` and return whatever the job reports."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"job.{name}")

    @abstractmethod
    def run(self, db: Session) -> Any:
        raise NotImplementedError

    def execute(self, db: Session) -> JobResult:
        result = JobResult(job_name=self.name, success=False, started_at=datetime.utcnow())
        self.logger.info(f"[{self.name}] Starting...")
        try:
            result.data = self.run(db)
            db.commit()
        except Exception as e:
            db.rollback()
            result.error = str(e)
            self.logger.error(f"[{self.name}] Rolled back: {e}\n{traceback.format_exc()}")
        else:
            result.success = True
        result.finished_at = datetime.utcnow()

        if result.success:
            self.logger.info(f"[{self.name}] Committed in {result.duration_seconds:.2f}s")
        return result

    def __repr__(self):
        return f"<Job: {self.name}>"


class JobRunner:
    """Runs jobs in order against one session, each committed on its own."""

    def __init__(self, jobs: List[Job], stop_on_failure: bool = True):
        self.jobs = list(jobs)
        self.stop_on_failure = stop_on_failure
        self.results: List[JobResult] = []

    def execute(self, db: Session) -> List[JobResult]:
        self.results = []
        logger.info(f"🚀 Running {len(self.jobs)} job(s)")

        for job in self.jobs:
            result = job.execute(db)
            self.results.append(result)
            if not result.success and self.stop_on_failure:
                skipped = len(self.jobs) - len(self.results)
                logger.error(f"'{job.name}' failed; skipping {skipped} remaining job(s)")
                break

        failed = sum(1 for r in self.results if not r.success)
        logger.info(f"Jobs finished: {len(self.results) - failed} committed, {failed} rolled back")
        return list(self.results)

    @property
    def success(self) -> bool:
        return len(self.results) == len(self.jobs) and all(r.success for r in self.results)

    def summary(self) -> str:
        return "\n".join(["Job Summary:"] + [f"  {r}" for r in self.results])
