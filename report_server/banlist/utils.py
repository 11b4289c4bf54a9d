"""
Ban-list synchronization for approved reports.

One read-modify-write of the external document per approval, committed against the version
token that was read. Failures are logged and dropped: there is no retry, and the report's
approval is never rolled back. Entries are not deduplicated, so syncing the same report
twice appends it twice.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from report_server.banlist import schemas
from report_server.banlist.store import (
    DocumentNotFound,
    DocumentStoreError,
    GitHubContentsStore,
    VersionedDocumentStore,
)
from report_server.config import Settings, get_settings
from report_server.errors import ConfigurationError, ExternalSyncError

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_ban_entry(report) -> schemas.BanEntry:
    return schemas.BanEntry(
        target_id=report.target,
        reporter_id=report.reporter,
        reason=report.reason,
        context=report.context,
        date_added=utc_now(),
        report_id=report.id,
    )


def parse_ban_list(content: str) -> List[Dict[str, Any]]:
    """Existing entries from the document text; empty when the text or its field is unusable."""
    try:
        data = json.loads(content)
    except ValueError:
        logger.warning("Ban-list document is not valid JSON; starting from an empty list")
        return []

    if not isinstance(data, dict) or not isinstance(data.get("banned_users"), list):
        logger.warning("Ban-list document has no banned_users list; starting from an empty list")
        return []
    return data["banned_users"]


def render_document(banned_users: List[Dict[str, Any]]) -> str:
    document = schemas.BanListDocument(banned_users=banned_users, last_updated=utc_now())
    return json.dumps(document.model_dump(), indent=2)


def append_ban_entry(store: VersionedDocumentStore, path: str, report) -> schemas.BanEntry:
    """Read, append one entry and commit with the read version. Raises ExternalSyncError."""
    try:
        try:
            current = store.get(path)
            banned_users = parse_ban_list(current.content)
            version = current.version
        except DocumentNotFound:
            logger.info("Ban-list document %s not found, creating it", path)
            banned_users, version = [], None

        entry = build_ban_entry(report)
        banned_users.append(entry.model_dump())

        store.put(
            path,
            render_document(banned_users),
            expected_version=version,
            message=f"Add banned user {report.target} - Report {report.id}",
        )
    except (DocumentStoreError, httpx.HTTPError) as e:
        raise ExternalSyncError(f"{type(e).__name__}: {e}") from e

    return entry


def sync_ban(report, settings: Optional[Settings] = None, store: Optional[VersionedDocumentStore] = None) -> None:
    """Add an approved report's target to the external ban list. Best effort, never raises."""
    settings = settings or get_settings()
    if not settings.ban_list_enabled:
        logger.info("GitHub integration disabled; report %s not added to the ban list", report.id)
        return

    owned = store is None
    if owned:
        if not settings.github_token:
            logger.warning("%s", ConfigurationError("GITHUB_TOKEN is not set; ban-list sync skipped"))
            return
        store = GitHubContentsStore.from_settings(settings)

    try:
        entry = append_ban_entry(store, settings.github_file_path, report)
        logger.info("Added %s to the ban list (report %s)", entry.target_id, entry.report_id)
    except ExternalSyncError as e:
        logger.error("GitHub integration error for report %s: %s", report.id, e)
    finally:
        if owned:
            store.close()
