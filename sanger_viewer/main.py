# sanger_viewer/main.py

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt5.QtWidgets import QApplication, QMessageBox

from sanger_viewer.model.analysis_session import AnalysisSession
from sanger_viewer.repositories.file_based_repository import FileJobRepository
from sanger_viewer.repositories.repository_factory import RepositoryFactory
from sanger_viewer.settings.config import AppConfig
from sanger_viewer.widgets.workspace import AnalysisWorkspaceWidget

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sanger chromatogram and alignment viewer")
    parser.add_argument("job", nargs="?", help="Analysis job JSON file, or a job id from the jobs directory")
    parser.add_argument("--jobs-dir", type=Path, help="Directory holding analysis job JSON files")
    parser.add_argument("--config", type=Path, help="User configuration file")
    parser.add_argument("--list", action="store_true", help="List the jobs of the jobs directory and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    kwargs = {}
    if args.config is not None:
        kwargs["user_config_path"] = args.config
    config = AppConfig(**kwargs)
    if args.jobs_dir is not None:
        config.data_source.type = "file"
        config.data_source.config = {**config.data_source.config, "jobs_dir": str(args.jobs_dir)}
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = build_config(args)

    if args.list:
        repository = RepositoryFactory(config).create_repository()
        for summary in repository.list_jobs():
            print(f"{summary.id}\t{summary.status}\t{summary.name}")
        return 0

    app = QApplication(sys.argv[:1])

    session = AnalysisSession()
    workspace = AnalysisWorkspaceWidget(session, config=config)
    workspace.setWindowTitle("Sanger Viewer")
    workspace.resize(1200, 800)

    if args.job:
        job_path = Path(args.job)
        try:
            if job_path.suffix.lower() == ".json" or job_path.exists():
                job = FileJobRepository(job_path.resolve().parent).load_job(job_path)
            else:
                job = RepositoryFactory(config).create_repository().get_job(args.job)
        except (OSError, KeyError, ValueError) as exc:
            logger.error("Could not load job %s: %s", args.job, exc)
            QMessageBox.critical(workspace, "Sanger Viewer", f"Could not load job {args.job}:\n{exc}")
            return 1
        workspace.load_job(job)
        workspace.setWindowTitle(f"Sanger Viewer - {job.name}")

    workspace.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
