"""Todoist integration for todoview.

Fetches a full snapshot from the Todoist Sync API: current projects,
sections, items and labels, plus items completed inside the retention window.
Both calls share one wall-clock budget.
"""

import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from todoview.config import TODOIST_API_BASE, Settings
from todoview.models.constants import (
    COMPLETED_ITEMS_LIMIT,
    FETCH_TIMEOUT_SECONDS,
    RETENTION_WINDOW_HOURS,
    SYNC_RESOURCE_TYPES,
)
from todoview.models.todoist import (
    TodoistItem,
    TodoistLabel,
    TodoistProject,
    TodoistSection,
    TodoistSnapshot,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class TodoistError(Exception):
    """Fetching from Todoist failed."""


class TodoistAuthError(TodoistError):
    """Todoist rejected the API token."""


class TodoistTimeoutError(TodoistError):
    """Todoist did not answer inside the fetch budget."""


class TodoistClient:
    """Client for the Todoist Sync API."""

    def __init__(
        self,
        api_token: str,
        api_base: str = TODOIST_API_BASE,
        timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
        completed_limit: int = COMPLETED_ITEMS_LIMIT,
    ):
        """Initialize Todoist client.

        Args:
            api_token: Todoist personal API token
            api_base: Sync API base URL
            timeout_seconds: Wall-clock budget for one full snapshot fetch
            completed_limit: Max completed items requested per fetch
        """
        if not api_token:
            raise ValueError("Todoist API token is required. Set TODOIST_API_TOKEN env var.")

        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.completed_limit = completed_limit
        self.headers = {
            "Authorization": f"Bearer {api_token}",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "TodoistClient":
        return cls(
            api_token=settings.require_todoist_token(),
            api_base=settings.todoist_api_base,
            timeout_seconds=settings.fetch_timeout_seconds,
            completed_limit=settings.completed_items_limit,
        )

    def fetch_snapshot(self, now: Optional[datetime] = None) -> TodoistSnapshot:
        """Fetch a full snapshot.

        A failure of the live-state call is fatal. A failure of the
        completed-items call is not: the snapshot is returned without
        completed items.

        Args:
            now: Reference time for the completed-items window

        Returns:
            TodoistSnapshot

        Raises:
            TodoistError: If the live state cannot be fetched in time
        """
        if now is None:
            now = datetime.now(timezone.utc)
        deadline = time.monotonic() + self.timeout_seconds

        sync_data = self.fetch_sync(deadline)

        try:
            completed_items = self.fetch_completed(now - timedelta(hours=RETENTION_WINDOW_HOURS), deadline)
        except TodoistError as e:
            logger.warning(f"Proceeding without completed items: {e}")
            completed_items = []

        sync_token = sync_data.get("sync_token")
        if not isinstance(sync_token, str):
            sync_token = None

        snapshot = TodoistSnapshot(
            projects=_parse_records(TodoistProject, sync_data.get("projects"), "project"),
            sections=_parse_records(TodoistSection, sync_data.get("sections"), "section"),
            items=_parse_records(TodoistItem, sync_data.get("items"), "item"),
            labels=_parse_records(TodoistLabel, sync_data.get("labels"), "label"),
            completed_items=completed_items,
            sync_token=sync_token,
        )
        logger.debug(
            f"Fetched snapshot: {len(snapshot.projects)} projects, {len(snapshot.sections)} sections, "
            f"{len(snapshot.items)} items, {len(snapshot.completed_items)} completed"
        )
        return snapshot

    def fetch_sync(self, deadline: float) -> Dict[str, Any]:
        """Fetch current projects, sections, items and labels (full sync).

        Raises:
            TodoistError: If the API call fails or times out
        """
        url = f"{self.api_base}/sync"
        data = {
            "sync_token": "*",
            "resource_types": json.dumps(SYNC_RESOURCE_TYPES),
        }
        try:
            response = requests.post(url, headers=self.headers, data=data, timeout=_remaining(deadline))
            _raise_for_status(response)
            sync_data = response.json()
        except requests.Timeout as e:
            raise TodoistTimeoutError("Request timeout - Todoist API took too long to respond") from e
        except requests.RequestException as e:
            raise TodoistError(f"Failed to fetch from Todoist: {e}") from e
        except ValueError as e:
            raise TodoistError(f"Invalid response from Todoist: {e}") from e

        if not isinstance(sync_data, dict):
            raise TodoistError("Invalid response from Todoist: expected a JSON object")
        return sync_data

    def fetch_completed(self, since: datetime, deadline: float) -> List[TodoistItem]:
        """Fetch items completed since a given time.

        Each entry's `item_object` is returned with `checked=True` and the
        entry's `completed_at`. Entries without an item object are skipped.

        Raises:
            TodoistError: If the API call fails or times out
        """
        url = f"{self.api_base}/completed/get_all"
        params = {
            "since": since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
            "annotate_items": "true",
            "limit": self.completed_limit,
        }
        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=_remaining(deadline))
            _raise_for_status(response)
            payload = response.json()
        except requests.Timeout as e:
            raise TodoistTimeoutError("Request timeout - completed items took too long to respond") from e
        except requests.RequestException as e:
            raise TodoistError(f"Failed to fetch completed items: {e}") from e
        except ValueError as e:
            raise TodoistError(f"Invalid completed items response: {e}") from e

        if not isinstance(payload, dict):
            raise TodoistError("Invalid completed items response: expected a JSON object")

        entries = payload.get("items")
        if not isinstance(entries, list):
            entries = []

        records = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            item_object = entry.get("item_object")
            if not isinstance(item_object, dict) or not item_object:
                continue
            records.append({**item_object, "checked": True, "completed_at": entry.get("completed_at")})
        return _parse_records(TodoistItem, records, "completed item")


def _remaining(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise TodoistTimeoutError("Fetch budget exhausted before the request was sent")
    return remaining


def _raise_for_status(response: requests.Response) -> None:
    if response.status_code in (401, 403):
        raise TodoistAuthError(f"Todoist rejected the API token (HTTP {response.status_code})")
    if not response.ok:
        logger.error(f"Todoist API error: {response.status_code} {response.text[:200]}")
    response.raise_for_status()


def _parse_records(model: Type[M], records: Optional[List[dict]], kind: str) -> List[M]:
    """Validate upstream records, skipping malformed ones."""
    parsed: List[M] = []
    if records is not None and not isinstance(records, list):
        logger.warning(f"Ignoring {kind} collection of type {type(records).__name__}")
        return parsed
    for record in records or []:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {kind} {record.get('id') if isinstance(record, dict) else record!r}: {e.error_count()} errors")
    return parsed
