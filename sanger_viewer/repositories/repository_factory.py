"""
Factory for constructing repositories based on configuration.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from sanger_viewer.settings.config import AppConfig

from .base_repository import AbstractJobRepository
from .file_based_repository import FileJobRepository


class RepositoryFactory:
    """Instantiate repository implementations based on ``AppConfig`` settings."""

    def __init__(self, config: AppConfig):
        self.config = config

    def create_repository(self) -> AbstractJobRepository:
        source_type = self.config.data_source.type
        source_config: Dict[str, Any] = self.config.data_source.config

        if source_type == "file":
            jobs_dir = Path(source_config.get("jobs_dir", "jobs")).expanduser()
            return FileJobRepository(jobs_dir=jobs_dir)

        raise ValueError(f"Unsupported repository type '{source_type}'")
