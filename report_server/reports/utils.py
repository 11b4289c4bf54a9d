"""
Report store and lifecycle: submission, validation and the pending -> actioned transition.
Reports live in memory only; a restart starts from an empty store.
"""

import logging
import math
import secrets
import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from fastapi import BackgroundTasks

from report_server.banlist import utils as banlist_utils
from report_server.config import Settings
from report_server.errors import InvalidActionError, NotFoundError, ValidationError
from report_server.notifications import utils as notification_utils
from report_server.reports import schemas

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: target, reporter, context, reason"
INVALID_TYPES_MESSAGE = (
    "Invalid field types: target and reporter must be valid numbers, context and reason must be strings"
)

Number = Union[int, float]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_report_id() -> str:
    """16 lowercase hex chars from 8 random bytes. Not checked against existing ids."""
    return secrets.token_hex(8)


# ────────────────────────────────
# Store
# ────────────────────────────────
class ReportStore:
    """
    Owns the pending and actioned collections.
    Every read and write goes through one lock, so a report is always in exactly one list.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: List[schemas.Report] = []
        self._actioned: List[schemas.Report] = []

    def add(self, report: schemas.Report) -> int:
        """Append to pending and return the new pending count."""
        with self._lock:
            self._pending.append(report)
            return len(self._pending)

    def snapshot(self) -> Tuple[List[schemas.Report], List[schemas.Report]]:
        with self._lock:
            return list(self._pending), list(self._actioned)

    def pending(self) -> List[schemas.Report]:
        with self._lock:
            return list(self._pending)

    def actioned(self) -> List[schemas.Report]:
        with self._lock:
            return list(self._actioned)

    def transition(self, report_id: str, status: schemas.ReportStatus) -> Optional[schemas.Report]:
        """
        Move a pending report to actioned with a terminal status.
        Returns None when the id is not pending (unknown or already actioned).
        """
        with self._lock:
            for index, report in enumerate(self._pending):
                if report.id == report_id:
                    break
            else:
                return None

            actioned = report.model_copy(update={"status": status, "actioned_at": utc_now()})
            del self._pending[index]
            self._actioned.append(actioned)
            return actioned


# ────────────────────────────────
# Validation
# ────────────────────────────────
def coerce_user_id(value) -> Optional[Number]:
    """Return a finite number for value, or None if it does not coerce to one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def validate_submission(payload: schemas.ReportCreate) -> Tuple[Number, Number, str, str]:
    """Check a raw submission and return (target, reporter, context, reason), trimmed and coerced."""
    if payload.target is None or payload.reporter is None or not payload.context:
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    target = coerce_user_id(payload.target)
    reporter = coerce_user_id(payload.reporter)
    reason = payload.reason if payload.reason is not None else ""

    if target is None or reporter is None or not isinstance(payload.context, str) or not isinstance(reason, str):
        raise ValidationError(INVALID_TYPES_MESSAGE)

    context = payload.context.strip()
    if not context:
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    return target, reporter, context, reason.strip()


# ────────────────────────────────
# Lifecycle
# ────────────────────────────────
def submit_report(
    store: ReportStore,
    payload: schemas.ReportCreate,
    source_address: Optional[str],
    background_tasks: BackgroundTasks,
    settings: Settings,
) -> schemas.Report:
    """Validate, store as pending and schedule the submission notification."""
    target, reporter, context, reason = validate_submission(payload)

    report = schemas.Report(
        id=generate_report_id(),
        target=target,
        reporter=reporter,
        context=context,
        reason=reason,
        timestamp=utc_now(),
        source_address=source_address,
        status=schemas.ReportStatus.pending,
    )
    pending_count = store.add(report)
    logger.info("Report %s submitted against %s by %s (%d pending)", report.id, target, reporter, pending_count)

    background_tasks.add_task(
        notification_utils.notify,
        notification_utils.report_submitted_message(pending_count, settings.dashboard_url),
        notification_utils.Channel.reports,
        settings,
    )
    return report


def action_report(
    store: ReportStore,
    report_id: Optional[str],
    decision: Optional[str],
    background_tasks: BackgroundTasks,
    settings: Settings,
) -> schemas.Report:
    """
    Approve or deny a pending report.
    Approval also schedules the ban-list sync; denial never touches the ban list.
    """
    if not report_id or decision not in (schemas.ReportStatus.approved.value, schemas.ReportStatus.denied.value):
        raise InvalidActionError("Invalid action or report ID!")

    status = schemas.ReportStatus(decision)
    report = store.transition(report_id, status)
    if report is None:
        raise NotFoundError("Report not found!")

    logger.info("Report %s %s", report.id, status.value)

    background_tasks.add_task(
        notification_utils.notify,
        notification_utils.report_actioned_message(report, settings.profile_url_base),
        notification_utils.Channel.actions,
        settings,
    )
    if status is schemas.ReportStatus.approved:
        background_tasks.add_task(banlist_utils.sync_ban, report, settings)

    return report
