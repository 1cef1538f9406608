"""HTTP client that replays queued writes against the field-data API."""
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

import requests
from urllib3.exceptions import NewConnectionError

from plotsync import settings
from plotsync.logging_conf import logger
from plotsync.queue.models import PendingAction, PendingImageUpload


@dataclass
class SubmitResult:
    """Outcome of one submit attempt."""

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    response: Any = None

    @classmethod
    def failed(cls, error: str, status_code: Optional[int] = None) -> "SubmitResult":
        return cls(success=False, status_code=status_code, error=error)


class ApiClient:
    """Submits pending actions and image uploads to the remote API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        connect_retries: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL or "").rstrip("/")
        self.timeout = timeout if timeout is not None else settings.SUBMIT_TIMEOUT
        self.connect_retries = connect_retries if connect_retries is not None else settings.CONNECT_RETRIES
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        token = token or settings.API_TOKEN
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def submit(self, payload: Union[PendingAction, PendingImageUpload]) -> SubmitResult:
        """Send one queued payload; never raises for network or HTTP errors."""
        if isinstance(payload, PendingImageUpload):
            return self.upload_image(payload)
        if isinstance(payload, PendingAction):
            return self.submit_action(payload)
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    def submit_action(self, action: PendingAction) -> SubmitResult:
        logger.info(f"Submitting action: {action.description}")
        return self._post(settings.ACTIONS_ENDPOINT, action.body)

    def upload_image(self, upload: PendingImageUpload) -> SubmitResult:
        logger.info(f"Uploading {upload.image_type.value} image for plot {upload.plot_code}")
        return self._post(settings.IMAGES_ENDPOINT, upload.to_record())

    def is_reachable(self) -> bool:
        """Check whether the API answers its health endpoint."""
        try:
            response = self.session.get(
                f"{self.base_url}{settings.HEALTH_ENDPOINT}",
                timeout=min(self.timeout, 10),
            )
            return response.status_code < 500
        except requests.exceptions.RequestException as e:
            logger.debug(f"API unreachable: {e}")
            return False

    def _post(self, endpoint: str, body: Any, retry_count: int = 0) -> SubmitResult:
        """POST, retrying only failures that happened before any bytes reached the server."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.exceptions.ConnectTimeout as e:
            return self._retry_connect(endpoint, body, retry_count, e)
        except requests.exceptions.Timeout as e:
            # Read timeout: the server may have applied the write, so it is
            # reported as failed and left for the next drain pass.
            logger.warning(f"Submit to {endpoint} timed out after {self.timeout}s")
            return SubmitResult.failed(f"Timeout: {e}")
        except requests.exceptions.ConnectionError as e:
            if _never_sent(e):
                return self._retry_connect(endpoint, body, retry_count, e)
            # Reset after sending: the write may have landed, leave it for the next pass
            logger.warning(f"Connection error on {endpoint}: {e}")
            return SubmitResult.failed(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Submit to {endpoint} failed: {e}")
            return SubmitResult.failed(f"Request error: {e}")

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "unknown")
            logger.warning(f"Rate limited on {endpoint}. Retry after {retry_after}s")
            return SubmitResult.failed(f"Rate limited (Retry-After: {retry_after})", response.status_code)

        if response.status_code >= 400:
            logger.warning(f"Submit to {endpoint} rejected with {response.status_code}")
            return SubmitResult.failed(
                f"HTTP {response.status_code}: {response.text[:500]}",
                response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        return SubmitResult(success=True, status_code=response.status_code, response=data)

    def _retry_connect(self, endpoint: str, body: Any, retry_count: int, error: Exception) -> SubmitResult:
        if retry_count < self.connect_retries:
            wait_time = 2 ** retry_count
            logger.warning(f"Connection error on {endpoint}. Retrying in {wait_time}s...")
            time.sleep(wait_time)
            return self._post(endpoint, body, retry_count + 1)
        logger.error(f"Giving up on {endpoint} after {retry_count + 1} attempts: {error}")
        return SubmitResult.failed(f"Connection error: {error}")


def _never_sent(error: requests.exceptions.ConnectionError) -> bool:
    """True when urllib3 failed to open the connection, so no bytes were sent."""
    reason = error.args[0] if error.args else None
    reason = getattr(reason, "reason", reason)
    return isinstance(reason, NewConnectionError)
