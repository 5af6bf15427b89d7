"""
Report service - Business logic for citizen report handling.
Handles store CRUD operations for reports.

DESIGN NOTE:
- Reports are stored in the "reports" collection, one document per report
- AI analysis runs AFTER the report is stored and never blocks creation
- Notifications are fire-and-forget; delivery failures never reach callers
- Anonymous reports never expose contact info outside the admin API
"""

from datetime import datetime
from typing import Dict, List, Optional
import json
import logging
import random

from civicsense.config.firebase import get_db
from civicsense.core.exceptions import NotFoundError, ValidationError
from civicsense.core.settings import settings
from civicsense.models.report import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    REPORT_CATEGORIES,
    REPORT_PRIORITIES,
    ReportCategory,
    ReportPriority,
    ReportStatus,
)
from civicsense.services.ai_plugin import get_ai_registry
from civicsense.services.notification_service import get_notification_service
from civicsense.services.status_workflow import StatusWorkflowEngine
from civicsense.utils.firestore_helpers import snapshot_to_dict, to_datetime, utc_now, where_filter
from civicsense.utils.security import is_valid_email

logger = logging.getLogger(__name__)

REPORTS_COLLECTION = "reports"
TRACKING_ID_ATTEMPTS = 10
IMAGE_MIME_PREFIX = "image/"


def generate_tracking_id(now: Optional[datetime] = None) -> str:
    """Build a tracking ID of the form RPT-YYYYMMDD-NNNN."""
    now = now or utc_now()
    return f"RPT-{now:%Y%m%d}-{random.randint(0, 9998):04d}"


def report_title(tracking_id: str) -> str:
    return f"Issue Report #{tracking_id.split('-')[-1]}"


def parse_location(location) -> Optional[Dict]:
    """
    Parse and validate a location payload.

    Accepts a dict or a JSON string with numeric lat/lng and an optional
    address. Coordinates are rounded to 6 decimals.

    Raises:
        ValidationError: If the payload cannot be parsed or is out of range
    """
    if not location:
        return None

    if isinstance(location, str):
        try:
            location = json.loads(location)
        except ValueError:
            logger.warning(f"Failed to parse location: {location}")
            raise ValidationError("Invalid location format: location data could not be processed")

    if not isinstance(location, dict):
        raise ValidationError("Invalid location format: location data could not be processed")

    lat, lng = location.get("lat"), location.get("lng")
    if isinstance(lat, bool) or isinstance(lng, bool) or not isinstance(lat, (int, float)) \
            or not isinstance(lng, (int, float)):
        raise ValidationError("Invalid location data: please provide valid latitude and longitude coordinates")
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise ValidationError("Invalid location data: please provide valid latitude and longitude coordinates")

    address = location.get("address")
    if address is not None and not isinstance(address, str):
        raise ValidationError("Invalid location data: address must be text")

    return {
        "lat": round(float(lat), 6),
        "lng": round(float(lng), 6),
        "address": (address or "").strip() or None,
    }


def validate_description(description: Optional[str]) -> str:
    text = (description or "").strip()
    if not text:
        raise ValidationError("Description is required")
    if len(text) < DESCRIPTION_MIN_LENGTH:
        raise ValidationError(
            f"Description too short: please provide at least {DESCRIPTION_MIN_LENGTH} characters"
        )
    if len(text) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description too long: please limit your description to {DESCRIPTION_MAX_LENGTH} characters"
        )
    return text


def mask_anonymous(report: Dict) -> Dict:
    """Hide reporter identity on anonymous reports."""
    masked = dict(report)
    if masked.get("anonymous"):
        masked["contact_info"] = None
        masked["created_by"] = "anonymous"
    return masked


def to_public_report(report: Dict) -> Dict:
    """Project a stored report to the public list shape."""
    anonymous = bool(report.get("anonymous"))
    location = report.get("location")
    media = report.get("media")
    return {
        "id": report["id"],
        "title": report_title(report["tracking_id"]),
        "description": report.get("description"),
        "status": report.get("status"),
        "severity": report.get("priority"),
        "created_at": report.get("created_at"),
        "updated_at": report.get("updated_at"),
        "tracking_id": report["tracking_id"],
        "contact_info": None if anonymous else report.get("contact_info"),
        "created_by": "anonymous" if anonymous else report.get("created_by"),
        "location": {
            "lat": location.get("lat"),
            "lng": location.get("lng"),
            "address": location.get("address"),
        } if location else None,
        "media_url": media.get("url") if media else None,
    }


def has_coordinates(report: Dict) -> bool:
    location = report.get("location") or {}
    return location.get("lat") is not None and location.get("lng") is not None


def _sort_reports(reports: List[Dict], sort_by: str, descending: bool) -> List[Dict]:
    """
    Sort reports by any field; reports missing the field always go last.
    """
    present = [r for r in reports if r.get(sort_by) is not None]
    missing = [r for r in reports if r.get(sort_by) is None]

    def key(report):
        value = report[sort_by]
        return to_datetime(value) if sort_by.endswith("_at") else value

    try:
        present.sort(key=key, reverse=descending)
    except TypeError:
        present.sort(key=lambda r: str(r[sort_by]), reverse=descending)
    return present + missing


class ReportService:
    """
    Report lifecycle operations: intake, lookup, listing and status changes.
    """

    def __init__(self, workflow: Optional[StatusWorkflowEngine] = None):
        self.workflow = workflow or StatusWorkflowEngine()

    @property
    def collection(self):
        return get_db().collection(REPORTS_COLLECTION)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def _unique_tracking_id(self) -> str:
        for _ in range(TRACKING_ID_ATTEMPTS):
            candidate = generate_tracking_id()
            existing = where_filter(self.collection, "tracking_id", "==", candidate).limit(1).get()
            if not existing:
                return candidate
            logger.warning(f"Tracking ID collision on {candidate}, regenerating")
        raise RuntimeError("Could not generate a unique tracking ID")

    def create_report(
        self,
        description: Optional[str],
        contact_info: Optional[str] = None,
        anonymous: bool = False,
        use_location: bool = False,
        location=None,
        media: Optional[Dict] = None,
    ) -> Dict:
        """
        Validate and store a new citizen report.

        Flow:
        1. Validate description, contact info and location
        2. Store the report (MUST succeed)
        3. Best-effort AI analysis of attached images
        4. Fan out notifications

        Args:
            description: Free-text description of the issue
            contact_info: Optional reporter email
            anonymous: Hide reporter identity from public views
            use_location: Whether `location` should be honoured
            location: Dict or JSON string with lat/lng/address
            media: Stored media info from the media service

        Returns:
            Creation response with tracking ID and report summary

        Raises:
            ValidationError: If any field is invalid
        """
        text = validate_description(description)

        contact = (contact_info or "").strip() or None
        if contact and not is_valid_email(contact):
            raise ValidationError("Invalid email format: please provide a valid email address")

        parsed_location = parse_location(location) if use_location else None

        now = utc_now()
        tracking_id = self._unique_tracking_id()
        doc_ref = self.collection.document()
        report = {
            "tracking_id": tracking_id,
            "description": text,
            "contact_info": contact,
            "anonymous": anonymous,
            "use_location": use_location,
            "location": parsed_location,
            "media": media,
            "status": ReportStatus.REPORTED.value,
            "priority": ReportPriority.MEDIUM.value,
            "category": ReportCategory.OTHER.value,
            "created_by": "anonymous" if anonymous else (contact or "unknown"),
            "assigned_to": None,
            "ai_analysis": None,
            "updates": [],
            "created_at": now,
            "updated_at": now,
            "resolved_at": None,
        }

        try:
            doc_ref.set(report)
        except Exception as e:
            logger.error(f"Failed to save report {tracking_id}: {e}", exc_info=True)
            raise
        report["id"] = doc_ref.id
        logger.info(f"📝 New report saved: {tracking_id}")
        if parsed_location:
            logger.info(f"📍 Location: {parsed_location['lat']}, {parsed_location['lng']}")
        if media:
            logger.info(f"📎 Media attached: {media.get('filename')}")

        if media and settings.AI_ENABLED and str(media.get("mimetype", "")).startswith(IMAGE_MIME_PREFIX):
            report = self._run_ai_analysis(report)

        self._notify_created(report)

        return {
            "success": True,
            "tracking_id": tracking_id,
            "id": report["id"],
            "message": "Report submitted successfully",
            "report": {
                "tracking_id": tracking_id,
                "title": report_title(tracking_id),
                "status": report["status"],
                "created_at": report["created_at"],
                "has_location": parsed_location is not None,
                "has_media": media is not None,
            },
        }

    def _run_ai_analysis(self, report: Dict) -> Dict:
        """AI analysis is advisory; any failure leaves the report untouched."""
        try:
            registry = get_ai_registry()
            media_url = report["media"]["url"]
            analysis = registry.analyze_image(media_url).to_dict()
            description = registry.generate_description(media_url, report["description"])
            if not description.error:
                analysis.update(description.data)
            return self.apply_ai_analysis(report, analysis)
        except Exception as e:
            logger.warning(f"⚠️ AI analysis failed for {report['tracking_id']}: {e}")
            return report

    def _notify_created(self, report: Dict):
        notifications = get_notification_service()
        tracking_id = report["tracking_id"]
        notifications.send_in_app("report.created", {
            "tracking_id": tracking_id,
            "description": report["description"],
            "location": report["location"],
            "anonymous": report["anonymous"],
        })
        notifications.notify_reporter(
            report,
            subject=f"Report Submitted - {tracking_id}",
            message=(
                f"Your report {tracking_id} has been submitted successfully. "
                f"We'll keep you updated on the progress."
            ),
            data={"tracking_id": tracking_id},
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_report(self, report_id: str) -> Optional[Dict]:
        return snapshot_to_dict(self.collection.document(report_id).get())

    def get_report_by_tracking_id(self, tracking_id: str) -> Optional[Dict]:
        docs = where_filter(self.collection, "tracking_id", "==", tracking_id).limit(1).get()
        return snapshot_to_dict(docs[0]) if docs else None

    def find_report(self, id_or_tracking_id: str) -> Optional[Dict]:
        """Look up a report by document ID, then by tracking ID."""
        return self.get_report(id_or_tracking_id) or self.get_report_by_tracking_id(id_or_tracking_id)

    def require_report(self, id_or_tracking_id: str) -> Dict:
        report = self.find_report(id_or_tracking_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report

    def get_public_report(self, tracking_id: str) -> Dict:
        report = self.get_report_by_tracking_id(tracking_id)
        if report is None:
            raise NotFoundError("Report not found")
        return mask_anonymous(report)

    def list_reports(self) -> List[Dict]:
        return [snapshot_to_dict(doc) for doc in self.collection.stream()]

    def count_reports(self) -> int:
        return sum(1 for _ in self.collection.stream())

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _query(self, **equals):
        query = self.collection
        for field, value in equals.items():
            if value:
                query = where_filter(query, field, "==", value)
        return [snapshot_to_dict(doc) for doc in query.stream()]

    def list_public_reports(
        self,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        format: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict]:
        """
        Public report list, newest first.

        Args:
            status: Filter by status
            severity: Filter by priority
            format: "map" keeps only reports with coordinates
            limit: Maximum number of reports (ignored unless positive)
        """
        reports = self._query(status=status, priority=severity)
        if format == "map":
            reports = [r for r in reports if has_coordinates(r)]
        reports = _sort_reports(reports, "created_at", descending=True)
        if limit and limit > 0:
            reports = reports[:limit]
        return [to_public_report(r) for r in reports]

    def list_admin_reports(
        self,
        format: Optional[str] = None,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        assigned_to: Optional[str] = None,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Dict:
        """
        Full report records for the admin dashboard, with pagination.

        Returns:
            {"reports": [...], "pagination": {total, offset, limit, has_more}}
        """
        reports = self._query(
            status=status,
            priority=severity,
            assigned_to=assigned_to,
            category=category,
        )
        if format == "map":
            reports = [r for r in reports if has_coordinates(r)]

        reports = _sort_reports(reports, sort_by or "created_at", descending=sort_order != "asc")

        total = len(reports)
        offset = max(offset or 0, 0)
        limit = limit if limit and limit > 0 else total
        page = reports[offset:offset + limit]

        for report in page:
            report["title"] = report_title(report["tracking_id"])
            report["media_url"] = (report.get("media") or {}).get("url")

        return {
            "reports": page,
            "pagination": {
                "total": total,
                "offset": offset,
                "limit": limit,
                "has_more": offset + len(page) < total,
            },
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply_ai_analysis(self, report: Dict, analysis: Dict) -> Dict:
        """
        Merge an AI analysis into a report and persist it.

        AI suggestions only replace defaults: category "other" adopts the
        detected issue type and priority "medium" adopts the detected severity.
        """
        merged = dict(report.get("ai_analysis") or {})
        merged.update(analysis)
        merged["processed_at"] = utc_now()

        changes = {"ai_analysis": merged, "updated_at": utc_now()}
        issue_type = merged.get("issue_type")
        severity = merged.get("severity")
        if report.get("category") == ReportCategory.OTHER.value and issue_type in REPORT_CATEGORIES:
            changes["category"] = issue_type
        if report.get("priority") == ReportPriority.MEDIUM.value and severity in REPORT_PRIORITIES:
            changes["priority"] = severity
        short_description = merged.get("short_description") or merged.get("short_desc")
        if short_description:
            changes["ai_generated_description"] = short_description

        self.collection.document(report["id"]).update(changes)
        logger.info(
            f"🤖 AI analysis applied to {report['tracking_id']} "
            f"({merged.get('provider', 'unknown')}, confidence {merged.get('confidence')})"
        )
        updated = dict(report)
        updated.update(changes)
        return updated

    def update_status(
        self,
        id_or_tracking_id: str,
        new_status: Optional[str],
        note: Optional[str] = None,
        updated_by: str = "system",
    ) -> Dict:
        """
        Change a report's status and record it in the update log.

        Raises:
            ValidationError: Unknown status or disallowed transition
            NotFoundError: Report does not exist
        """
        self.workflow.validate_status(new_status)
        report = self.require_report(id_or_tracking_id)
        old_status = report.get("status")

        transition = self.workflow.validate_and_transition(old_status, new_status, updated_by, note)
        entry = transition["update_entry"]
        now = entry["created_at"]

        changes = {
            "status": transition["to_status"],
            "updated_at": now,
            "updates": list(report.get("updates") or []) + [entry],
        }
        if transition["to_status"] == ReportStatus.RESOLVED.value:
            changes["resolved_at"] = now

        self.collection.document(report["id"]).update(changes)
        report.update(changes)
        logger.info(f"🔄 Report {report['tracking_id']} status updated to {new_status} by {updated_by}")

        self._notify_status_changed(report, old_status, transition["to_status"], note, updated_by)
        return report

    def _notify_status_changed(self, report: Dict, old_status: str, new_status: str,
                               note: Optional[str], updated_by: str):
        notifications = get_notification_service()
        tracking_id = report["tracking_id"]
        data = {
            "tracking_id": tracking_id,
            "old_status": old_status,
            "new_status": new_status,
            "note": note,
            "updated_by": updated_by,
        }
        notifications.send_in_app("report.status_changed", data)

        if report.get("anonymous") or not report.get("contact_info"):
            return
        email_body = f"Your report status has been updated to: {new_status}"
        whatsapp_message = f"Update on your report {tracking_id}: Status changed to {new_status}"
        if note:
            email_body = f"{email_body}. Note: {note}"
            whatsapp_message = f"{whatsapp_message}. {note}"
        notifications.queue_email(report["contact_info"], f"Report Update - {tracking_id}", email_body, data)
        notifications.queue_whatsapp(report["contact_info"], whatsapp_message, data)

    def get_allowed_transitions(self, id_or_tracking_id: str) -> Dict:
        report = self.require_report(id_or_tracking_id)
        current = report.get("status")
        return {
            "id": report["id"],
            "tracking_id": report["tracking_id"],
            "current_status": current,
            "allowed_transitions": self.workflow.get_allowed_transitions(current),
            "strict": self.workflow.strict,
        }


# Global service instance (singleton)
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get or create the global report service instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
