"""Download finished jobs and open the downloads folder."""

from __future__ import annotations

import logging
import platform
import subprocess
from pathlib import Path

from .client import APIClient
from .exceptions import JobNotReadyError, YtrssError
from .models import ItemStatus

logger = logging.getLogger(__name__)

_OPEN_COMMANDS = {
    "Linux": "xdg-open",
    "Darwin": "open",
    "Windows": "explorer",
}


def download_job(client: APIClient, job_id: str, downloads_dir: Path) -> Path:
    """Download the audio for a job after checking it finished.

    Raises:
        JobNotReadyError: If the job status is not SUCCESS
    """
    job = client.get_job(job_id)
    if job.status is not ItemStatus.SUCCESS:
        raise JobNotReadyError(job_id, job.status.value)
    return client.download_file(job_id, downloads_dir)


def open_downloads_folder(downloads_dir: Path, system: str | None = None) -> Path:
    """Open the downloads directory in the platform file browser.

    The directory is created if needed so the opener has something to show.

    Returns:
        Absolute path that was opened
    """
    system = system or platform.system()
    opener = _OPEN_COMMANDS.get(system)
    if opener is None:
        raise YtrssError(f"unsupported operating system: {system}")

    target = downloads_dir.resolve()
    target.mkdir(parents=True, exist_ok=True)

    try:
        subprocess.Popen(
            [opener, str(target)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as err:
        raise YtrssError(f"error executing open command: {err}") from err

    logger.info("Opened downloads folder", extra={"extra_context": {"path": str(target)}})
    return target
