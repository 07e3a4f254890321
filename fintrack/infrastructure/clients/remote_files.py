"""HTTP client for fetching uploaded files held by a remote blob store"""

import httpx
from typing import Optional
from fintrack.domain.exceptions import FileStorageError
from fintrack.config import settings


class RemoteFileClient:
    """Read-only access to files addressed by http(s) URLs"""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def fetch(self, url: str) -> Optional[bytes]:
        """
        Download file content.

        Returns:
            File bytes, or None when the server answers 404/410

        Raises:
            FileStorageError: On timeout, other HTTP errors, or network failure
        """
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True, transport=self.transport) as client:
                response = client.get(url)
                if response.status_code in (404, 410):
                    return None
                response.raise_for_status()
                return response.content

        except httpx.TimeoutException as e:
            raise FileStorageError(f"Remote file fetch timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FileStorageError(f"Remote file fetch error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise FileStorageError(f"Remote file fetch failed: {e}") from e
