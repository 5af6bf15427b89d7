"""
Analytics Service - aggregate report data for the admin dashboard
(category counts, resolution times, hot spots, weekly summary, heatmap).

All aggregation happens in Python over the streamed report collection.
"""

from calendar import monthrange
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
import json
import logging

from civicsense.core.exceptions import ValidationError
from civicsense.models.report import ReportPriority, ReportStatus
from civicsense.services.ai_plugin import get_ai_registry
from civicsense.services.report_service import get_report_service, has_coordinates
from civicsense.utils.firestore_helpers import to_datetime, utc_now

logger = logging.getLogger(__name__)

PERIODS = ("week", "month")

# Heatmap point weight by report priority
PRIORITY_INTENSITY = {
    ReportPriority.LOW.value: 0.25,
    ReportPriority.MEDIUM.value: 0.5,
    ReportPriority.HIGH.value: 0.75,
    ReportPriority.URGENT.value: 1.0,
}


def period_start(now: datetime, period: str) -> datetime:
    """
    Start of the analytics window ending at `now`.

    "week" is the last 7 days; "month" goes back one calendar month,
    clamping the day (e.g. Mar 31 -> Feb 28).
    """
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, monthrange(year, month)[1])
        return now.replace(year=year, month=month, day=day)
    raise ValidationError(f"Invalid period. Must be one of: {', '.join(PERIODS)}")


def parse_date(value: str, field: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValidationError(f"Invalid '{field}' date. Expected YYYY-MM-DD")


def calculate_bounds(points: List[Dict]) -> Optional[Dict]:
    if not points:
        return None
    lats = [p["lat"] for p in points]
    lngs = [p["lng"] for p in points]
    return {
        "north": max(lats),
        "south": min(lats),
        "east": max(lngs),
        "west": min(lngs),
    }


class AnalyticsService:
    """Service for dashboard analytics."""

    def _reports(self) -> List[Dict]:
        return get_report_service().list_reports()

    def _in_window(self, start: datetime, end: datetime) -> List[Dict]:
        selected = []
        for report in self._reports():
            created_at = to_datetime(report.get("created_at"))
            if created_at is not None and start <= created_at <= end:
                selected.append(report)
        return selected

    def most_common(self, period: str = "week") -> Dict:
        """Top 10 categories by report count in the period."""
        now = utc_now()
        start = period_start(now, period)
        reports = self._in_window(start, now)

        counts = Counter(r.get("category") or "other" for r in reports)
        data = [{"category": c, "count": n} for c, n in counts.most_common(10)]

        return {
            "period": period,
            "date_range": {"from": start, "to": now},
            "data": data,
            "total": len(reports),
        }

    def average_resolution_time(self, period: str = "month") -> Dict:
        """
        Mean time from creation to resolution for reports resolved in the period.

        Resolution time uses resolved_at, falling back to updated_at for
        records created before resolved_at was tracked.
        """
        now = utc_now()
        start = period_start(now, period)
        resolved = [
            r for r in self._in_window(start, now)
            if r.get("status") == ReportStatus.RESOLVED.value
        ]

        durations = []
        for report in resolved:
            created_at = to_datetime(report.get("created_at"))
            finished_at = to_datetime(report.get("resolved_at")) or to_datetime(report.get("updated_at"))
            if created_at and finished_at:
                durations.append((finished_at - created_at).total_seconds() * 1000)

        average_ms = sum(durations) / len(durations) if durations else 0
        return {
            "period": period,
            "date_range": {"from": start, "to": now},
            "average_resolution_time": average_ms,
            "average_resolution_time_hours": round(average_ms / (1000 * 60 * 60), 1),
            "resolved_count": len(resolved),
            "unit": "hours",
        }

    def top_locations(self, limit: int = 10) -> Dict:
        with_address = [
            r for r in self._reports()
            if isinstance((r.get("location") or {}).get("address"), str)
            and r["location"]["address"].strip()
        ]
        counts = Counter(r["location"]["address"] for r in with_address)
        return {
            "data": [{"address": a, "count": n} for a, n in counts.most_common(limit)],
            "total": len(with_address),
            "limit": limit,
        }

    def _summary_data(self, reports: List[Dict]) -> Dict:
        return {
            "total_reports": len(reports),
            "status_breakdown": dict(Counter(r.get("status") for r in reports)),
            "category_breakdown": dict(Counter(r.get("category") or "other" for r in reports)),
            "priority_breakdown": dict(Counter(r.get("priority") for r in reports)),
            "resolved_count": sum(1 for r in reports if r.get("status") == ReportStatus.RESOLVED.value),
        }

    @staticmethod
    def _templated_summary(date_from: str, date_to: str, data: Dict) -> str:
        top_categories = sorted(data["category_breakdown"].items(), key=lambda item: item[1], reverse=True)[:3]
        categories = ", ".join(f"{category} ({count})" for category, count in top_categories) or "none"
        in_progress = data["status_breakdown"].get(ReportStatus.IN_PROGRESS.value, 0)
        return (
            f"Weekly Civic Issues Summary ({date_from} to {date_to})\n\n"
            f"This week we processed {data['total_reports']} reports across various categories.\n\n"
            f"Key Highlights:\n"
            f"• {data['resolved_count']} reports were successfully resolved\n"
            f"• Most common issue types: {categories}\n"
            f"• Current status distribution shows {in_progress} reports in progress\n\n"
            f"Areas for attention:\n"
            f"• Continue monitoring high-priority issues\n"
            f"• Maintain resolution efficiency for community satisfaction\n\n"
            f"Overall, the team maintained good response times and community engagement levels."
        )

    def _summary_text(self, date_from: str, date_to: str, data: Dict) -> Tuple[str, bool]:
        """
        Returns:
            (summary text, whether a real AI provider wrote it)
        """
        registry = get_ai_registry()
        if registry.real_provider_configured:
            prompt = (
                "Generate a weekly summary report for civic issues management:\n"
                f"Period: {date_from} to {date_to}\n"
                f"Total Reports: {data['total_reports']}\n"
                f"Status Breakdown: {json.dumps(data['status_breakdown'])}\n"
                f"Category Breakdown: {json.dumps(data['category_breakdown'])}\n"
                f"Priority Breakdown: {json.dumps(data['priority_breakdown'])}\n"
                f"Resolved Reports: {data['resolved_count']}\n\n"
                "Please provide a concise, professional summary highlighting key trends, "
                "achievements, and areas of concern."
            )
            response = registry.generate_text(prompt)
            if response.provider != "mock":
                return response.data["text"], True
            logger.warning("⚠️ AI summary unavailable, using templated summary")
        return self._templated_summary(date_from, date_to, data), False

    def weekly_summary(self, date_from: Optional[str], date_to: Optional[str]) -> Dict:
        """
        Breakdown of reports created between two dates (inclusive).

        Raises:
            ValidationError: Missing or malformed dates
        """
        if not date_from or not date_to:
            raise ValidationError("Both 'from' and 'to' date parameters are required")

        start = parse_date(date_from, "from")
        end = parse_date(date_to, "to") + timedelta(days=1) - timedelta(microseconds=1)
        data = self._summary_data(self._in_window(start, end))
        summary, ai_generated = self._summary_text(date_from, date_to, data)

        return {
            "date_range": {"from": date_from, "to": date_to},
            "summary": summary,
            "data": data,
            "generated_at": utc_now(),
            "ai_generated": ai_generated,
        }

    def heatmap_data(self) -> Dict:
        points = [
            {
                "lat": r["location"]["lat"],
                "lng": r["location"]["lng"],
                "intensity": PRIORITY_INTENSITY.get(r.get("priority"), PRIORITY_INTENSITY["medium"]),
                "status": r.get("status"),
                "priority": r.get("priority"),
                "category": r.get("category") or "other",
            }
            for r in self._reports()
            if has_coordinates(r)
        ]
        return {
            "data": points,
            "total": len(points),
            "bounds": calculate_bounds(points),
        }


# Global service instance (singleton)
_analytics_service: Optional[AnalyticsService] = None


def get_analytics_service() -> AnalyticsService:
    """Get or create the global analytics service instance."""
    global _analytics_service
    if _analytics_service is None:
        _analytics_service = AnalyticsService()
    return _analytics_service
