"""
Notification endpoints - queue status for monitoring.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from civicsense.services.notification_service import get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/status")
async def notification_status():
    """Sizes of the in-app event list and the email/WhatsApp queues."""
    return {
        "status": "OK",
        "queues": get_notification_service().get_queue_status(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
