"""Task service REST adapter - HTTP client for task fetching and mutation."""

import logging
from typing import Any

import requests

from duewatch.config import Config, load_config
from duewatch.core.tasks import Task, TaskDraft

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when the task service can't be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(resp: requests.Response) -> str:
    """Best-effort server error text ({"error": true, "message": ...} or plain body)."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or "no response body"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(data)


class RestTaskAdapter:
    """
    Task service adapter.

    Implements TaskRepository protocol. Handles HTTP calls and wire decoding.
    No business logic - just I/O. Failures are raised, never retried.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self.base_url = self.config.api_base_url.rstrip("/")
        self._session = session or requests.Session()

    def _api_request(self, method: str, endpoint: str, payload: dict | None = None) -> Any:
        """Make an API request and return the decoded JSON body (None if empty)."""
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            resp = self._session.request(
                method,
                url,
                json=payload,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Could not reach task service at {url}: {e}") from e

        if not resp.ok:
            raise TransportError(
                f"{method} {endpoint} failed ({resp.status_code}): {_error_message(resp)}",
                status_code=resp.status_code,
            )

        if resp.status_code == 204 or not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{method} {endpoint} returned invalid JSON", status_code=resp.status_code) from e

    def _task_from(self, data: Any, endpoint: str) -> Task:
        if not isinstance(data, dict) or "id" not in data:
            raise TransportError(f"Unexpected task record from {endpoint}: {data!r}")
        return Task.from_api(data)

    def fetch_all_raw(self) -> list[dict]:
        """Raw task records, undecoded."""
        data = self._api_request("GET", "/tasks")
        if not isinstance(data, list):
            raise TransportError(f"Expected a list of tasks, got {type(data).__name__}")
        return data

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks in service order."""
        return [self._task_from(record, "/tasks") for record in self.fetch_all_raw()]

    def create(self, draft: TaskDraft) -> Task:
        """Create a task. The draft is validated before any request is made."""
        payload = draft.to_payload()
        return self._task_from(self._api_request("POST", "/tasks", payload), "/tasks")

    def update(self, task_id: str | int, draft: TaskDraft) -> Task:
        """Replace a task. The service expects the full record."""
        payload = draft.to_payload()
        endpoint = f"/tasks/{task_id}"
        data = self._api_request("PUT", endpoint, payload)
        # The service echoes the body without the id
        if isinstance(data, dict) and "id" not in data:
            data = {**data, "id": task_id}
        return self._task_from(data, endpoint)

    def delete(self, task_id: str | int) -> None:
        """Delete a task."""
        self._api_request("DELETE", f"/tasks/{task_id}")

    def set_completed(self, task_id: str | int, completed: bool) -> Task:
        """Mark a task completed or pending."""
        endpoint = f"/tasks/{task_id}/completion"
        data = self._api_request("PATCH", endpoint, {"completed": completed})
        return self._task_from(data, endpoint)

    def health(self) -> dict:
        """Service health payload."""
        data = self._api_request("GET", "/health")
        return data if isinstance(data, dict) else {"success": bool(data)}
