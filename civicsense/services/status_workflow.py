"""
Status Workflow Engine - report lifecycle transitions.

DESIGN PRINCIPLES:
- Only the five lifecycle statuses are accepted
- Every change is recorded as an entry in the report's `updates` log
- By default any status may follow any other; with STRICT_STATUS_WORKFLOW
  enabled statuses only move forward and `closed` is terminal
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging

from civicsense.core.exceptions import ValidationError
from civicsense.core.settings import settings
from civicsense.models.report import ReportStatus, REPORT_STATUSES
from civicsense.utils.firestore_helpers import utc_now

logger = logging.getLogger(__name__)


class StatusWorkflowEngine:
    """
    State machine for report status transitions.
    """

    # Workflow order used by strict mode
    STATUS_ORDER: List[ReportStatus] = [
        ReportStatus.REPORTED,
        ReportStatus.IN_REVIEW,
        ReportStatus.IN_PROGRESS,
        ReportStatus.RESOLVED,
        ReportStatus.CLOSED,
    ]

    def __init__(self, strict: Optional[bool] = None):
        self._strict = strict

    @property
    def strict(self) -> bool:
        return settings.STRICT_STATUS_WORKFLOW if self._strict is None else self._strict

    @staticmethod
    def validate_status(status: Optional[str]) -> ReportStatus:
        """
        Validate that a status value belongs to the lifecycle enum.

        Raises:
            ValidationError: If status is missing or unknown
        """
        if not status:
            raise ValidationError("Status is required")
        try:
            return ReportStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(REPORT_STATUSES)}")

    def get_allowed_transitions(self, current_status: str) -> List[str]:
        """
        Get list of allowed next statuses from current status.

        Args:
            current_status: Current status string

        Returns:
            List of allowed next status strings
        """
        try:
            current = ReportStatus(current_status)
        except ValueError:
            return list(REPORT_STATUSES)

        if not self.strict:
            return [s.value for s in ReportStatus if s != current]

        if current == ReportStatus.CLOSED:
            return []
        position = self.STATUS_ORDER.index(current)
        return [s.value for s in self.STATUS_ORDER[position + 1:]]

    def is_valid_transition(self, from_status: str, to_status: str) -> bool:
        # Same status is always valid (no-op)
        if from_status == to_status:
            return True
        return to_status in self.get_allowed_transitions(from_status)

    @staticmethod
    def build_status_message(old_status: str, new_status: str, note: Optional[str] = None) -> str:
        message = f"Status changed from {old_status} to {new_status}"
        if note:
            message = f"{message}: {note}"
        return message

    def create_update_entry(
        self,
        old_status: str,
        new_status: str,
        changed_by: str,
        note: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Dict:
        """
        Create a status entry for the report's `updates` log.
        """
        return {
            "type": "status",
            "message": self.build_status_message(old_status, new_status, note),
            "created_by": changed_by,
            "created_at": timestamp or utc_now(),
            "old_status": old_status,
            "new_status": new_status,
            "note": note or None,
        }

    def validate_and_transition(
        self,
        current_status: str,
        new_status: Optional[str],
        changed_by: str,
        note: Optional[str] = None,
    ) -> Dict:
        """
        Validate transition and create the log entry.

        Returns:
            Dict with from/to status and the update entry

        Raises:
            ValidationError: If the status is unknown or the transition is not allowed
        """
        target = self.validate_status(new_status).value

        if not self.is_valid_transition(current_status, target):
            allowed = self.get_allowed_transitions(current_status)
            raise ValidationError(
                f"Invalid status transition: {current_status} → {target}. "
                f"Allowed transitions from {current_status}: {allowed}"
            )

        return {
            "from_status": current_status,
            "to_status": target,
            "update_entry": self.create_update_entry(current_status, target, changed_by, note),
        }
