"""
Notification Service - in-app events plus queued email/WhatsApp notices.

DESIGN NOTE:
- This is NOT a delivery system. Email and WhatsApp entries are queued and
  logged only; nothing is sent.
- In-app events are appended to an in-process list for dashboards/tests.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging
import uuid

from civicsense.utils.security import mask_contact

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Fire-and-forget notification fan-out.

    Callers never wait on delivery and never see failures from this service.
    """

    STATUS_QUEUED = "queued"

    def __init__(self):
        self.events: List[Dict] = []
        self.email_queue: List[Dict] = []
        self.whatsapp_queue: List[Dict] = []

    def send_in_app(self, event_type: str, data: Dict) -> Dict:
        """
        Record an in-app notification.

        Args:
            event_type: Event name, e.g. "report.created"
            data: Event payload

        Returns:
            The recorded event
        """
        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self.events.append(event)
        logger.info(f"🔔 In-app notification: {event_type} {data.get('tracking_id', '')}".rstrip())
        return event

    def queue_email(self, to: str, subject: str, body: str, data: Optional[Dict] = None) -> Dict:
        notification = self._build_entry(to, data, subject=subject, body=body)
        self.email_queue.append(notification)
        logger.info(f"📧 Email queued for {mask_contact(to)}: {subject}")
        # TODO: hand the queue to an SMTP/SendGrid worker once one is provisioned
        return notification

    def queue_whatsapp(self, to: str, message: str, data: Optional[Dict] = None) -> Dict:
        notification = self._build_entry(to, data, message=message)
        self.whatsapp_queue.append(notification)
        logger.info(f"💬 WhatsApp queued for {mask_contact(to)}")
        return notification

    def notify_reporter(self, report: Dict, subject: str, message: str, data: Optional[Dict] = None):
        """
        Queue email and WhatsApp notices to the reporter.

        Anonymous reports and reports without contact info are skipped.
        """
        if report.get("anonymous") or not report.get("contact_info"):
            return
        contact = report["contact_info"]
        self.queue_email(contact, subject, message, data)
        self.queue_whatsapp(contact, message, data)

    def get_queue_status(self) -> Dict:
        return {
            "email": {
                "queued": sum(1 for n in self.email_queue if n["status"] == self.STATUS_QUEUED),
                "total": len(self.email_queue),
            },
            "whatsapp": {
                "queued": sum(1 for n in self.whatsapp_queue if n["status"] == self.STATUS_QUEUED),
                "total": len(self.whatsapp_queue),
            },
            "in_app": {
                "total": len(self.events),
            },
        }

    def process_queues(self):
        """Log queue sizes; delivery is not implemented."""
        logger.info(
            f"Processing notification queues: email={len(self.email_queue)}, "
            f"whatsapp={len(self.whatsapp_queue)}"
        )

    def reset(self):
        self.events.clear()
        self.email_queue.clear()
        self.whatsapp_queue.clear()

    def _build_entry(self, to: str, data: Optional[Dict], **fields) -> Dict:
        entry = {
            "id": uuid.uuid4().hex,
            "to": to,
            "data": data or {},
            "created_at": datetime.now(timezone.utc).isoformat(),
            "status": self.STATUS_QUEUED,
        }
        entry.update(fields)
        return entry


# Global service instance (singleton)
_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get or create the global notification service instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
