"""
Abstract interfaces for analysis job repositories.

Repositories encapsulate data access for the sanger_viewer package, keeping
UI components decoupled from concrete storage implementations. They only read
finished analyses; alignment and variant calling happen elsewhere.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from sanger_viewer.model.job_results import JobResults


@dataclass(frozen=True)
class JobSummary:
    id: str
    name: str
    status: Optional[str] = None


class AbstractJobRepository(ABC):
    """Base class for all job repositories."""

    @abstractmethod
    def get_job(self, job_id: str) -> JobResults:
        """Fetch and parse a single job by its identifier."""

    @abstractmethod
    def list_jobs(self) -> Iterable[JobSummary]:
        """Return an iterable of all jobs available in the repository."""
