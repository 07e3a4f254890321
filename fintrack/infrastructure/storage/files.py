"""Upload storage: local disk for stored files, HTTP for remote locators"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional
from fintrack.domain.exceptions import FileStorageError
from fintrack.infrastructure.clients.remote_files import RemoteFileClient

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http://", "https://")


def is_remote(locator: str) -> bool:
    return locator.lower().startswith(REMOTE_SCHEMES)


class LocalFileStorage:
    """Stores uploads as files under a single directory"""

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir)

    def store(self, content: bytes, suffix: str = ".csv") -> str:
        """Write content to a fresh file and return its path as the locator"""
        self.base_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
        name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{suffix}"
        path = self.base_dir / name
        path.write_bytes(content)
        return str(path)

    def fetch(self, locator: str) -> Optional[bytes]:
        path = Path(locator)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileStorageError(f"Cannot read {locator}: {e}") from e

    def delete(self, locator: str) -> None:
        """Best-effort removal; failures are logged and ignored"""
        try:
            Path(locator).unlink()
        except OSError as e:
            logger.debug("Could not delete %s: %s", locator, e)


class FileStorage:
    """Routes locators: http(s) URLs are fetched remotely, paths go to local disk"""

    def __init__(self, local: LocalFileStorage, remote: Optional[RemoteFileClient] = None):
        self.local = local
        self.remote = remote or RemoteFileClient()

    @classmethod
    def from_settings(cls, settings) -> "FileStorage":
        return cls(
            local=LocalFileStorage(settings.upload_dir),
            remote=RemoteFileClient(timeout=settings.http_timeout_seconds),
        )

    def store(self, content: bytes, suffix: str = ".csv") -> str:
        return self.local.store(content, suffix=suffix)

    def fetch(self, locator: str) -> Optional[bytes]:
        if is_remote(locator):
            return self.remote.fetch(locator)
        return self.local.fetch(locator)

    def is_local(self, locator: str) -> bool:
        return not is_remote(locator)

    def delete(self, locator: str) -> None:
        """Remove a local source file; remote files are left alone"""
        if self.is_local(locator):
            self.local.delete(locator)
