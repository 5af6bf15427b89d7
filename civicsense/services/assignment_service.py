"""
Assignment service - team-capacity-aware report assignment.

DESIGN NOTE:
- A team may hold at most `capacity` assignments (current_load <= capacity)
- A report is assigned to at most one team; reassignment releases the old
  team's slot before taking a new one
- Counters are updated imperatively with no transaction around them;
  concurrent assignments to the same team can overshoot capacity
"""

from typing import Dict, List, Optional
import logging

from civicsense.core.exceptions import CapacityExceededError, NotFoundError, ValidationError
from civicsense.models.report import ReportPriority
from civicsense.services.notification_service import get_notification_service
from civicsense.services.report_service import ReportService, get_report_service
from civicsense.services.team_service import TeamService, get_team_service
from civicsense.utils.firestore_helpers import utc_now

logger = logging.getLogger(__name__)


def _check_capacity(team: Dict, requested: int):
    available = (team.get("capacity") or 0) - (team.get("current_load") or 0)
    if requested > available:
        raise CapacityExceededError(
            f"Team capacity exceeded. Available: {available}, Requested: {requested}"
        )


def _team_summary(team: Dict) -> Dict:
    return {
        "id": team["id"],
        "name": team.get("name"),
        "current_load": team["current_load"],
        "capacity": team["capacity"],
        "available_capacity": team["capacity"] - team["current_load"],
        "assigned_reports": team["assigned_reports"],
    }


class AssignmentService:

    def __init__(self, reports: Optional[ReportService] = None, teams: Optional[TeamService] = None):
        self._reports = reports
        self._teams = teams

    @property
    def reports(self) -> ReportService:
        return self._reports or get_report_service()

    @property
    def teams(self) -> TeamService:
        return self._teams or get_team_service()

    def _release_slot(self, team_id: str, report_id: str) -> bool:
        """
        Drop a report from a team's assignments.

        Returns:
            True if the team held an assignment for the report
        """
        team = self.teams.find_active_team(team_id)
        if team is None:
            return False
        assigned = list(team.get("assigned_reports") or [])
        remaining = [a for a in assigned if a.get("report_id") != report_id]
        if len(remaining) == len(assigned):
            return False
        load = max(0, (team.get("current_load") or 0) - 1)
        self.teams.save_assignments(team_id, remaining, load)
        logger.info(f"↩️ Released slot for report {report_id} on team {team.get('name')}")
        return True

    def _record_assignment(self, report: Dict, team: Dict, assigned_by: str,
                           priority: Optional[str] = None) -> Dict:
        """Point the report at the team and log the assignment update."""
        now = utc_now()
        entry = {
            "type": "assignment",
            "message": f"Report assigned to team {team.get('name') or team['id']}",
            "created_by": assigned_by,
            "created_at": now,
        }
        changes = {
            "assigned_to": team["id"],
            "updated_at": now,
            "updates": list(report.get("updates") or []) + [entry],
        }
        if priority:
            changes["priority"] = priority
        self.reports.collection.document(report["id"]).update(changes)
        report.update(changes)
        return report

    def assign_report(
        self,
        report_id: str,
        team_id: Optional[str],
        assigned_by: str,
        priority: Optional[str] = None,
    ) -> Dict:
        """
        Assign a single report to a team.

        Args:
            report_id: Report document ID or tracking ID
            team_id: Target team ID
            assigned_by: Username recorded on the update entry
            priority: Optional new report priority

        Returns:
            {"message", "report": {...}, "team": {...}}

        Raises:
            ValidationError: Missing team ID or report already on this team
            NotFoundError: Unknown team or report
            CapacityExceededError: Team is full
        """
        if not team_id:
            raise ValidationError("Team ID is required")

        team = self.teams.require_team(team_id)
        report = self.reports.require_report(report_id)

        previous_team = report.get("assigned_to")
        if previous_team == team["id"]:
            raise ValidationError("Report is already assigned to this team")

        _check_capacity(team, 1)

        if previous_team:
            self._release_slot(previous_team, report["id"])

        assignment_priority = priority or report.get("priority") or ReportPriority.MEDIUM.value
        self._record_assignment(report, team, assigned_by, priority)

        team["assigned_reports"] = list(team.get("assigned_reports") or []) + [{
            "report_id": report["id"],
            "assigned_at": utc_now(),
            "priority": assignment_priority,
        }]
        team["current_load"] = (team.get("current_load") or 0) + 1
        self.teams.save_assignments(team["id"], team["assigned_reports"], team["current_load"])

        logger.info(f"📌 Report {report['tracking_id']} assigned to team {team['name']} by {assigned_by}")

        get_notification_service().send_in_app("report.assigned", {
            "tracking_id": report["tracking_id"],
            "team_id": team["id"],
            "team_name": team.get("name"),
            "previous_team_id": previous_team,
            "assigned_by": assigned_by,
        })

        return {
            "message": "Report assigned successfully",
            "report": {
                "id": report["id"],
                "tracking_id": report["tracking_id"],
                "assigned_to": report["assigned_to"],
                "priority": report.get("priority"),
                "updated_at": report["updated_at"],
            },
            "team": _team_summary(team),
        }

    def assign_reports_to_team(
        self,
        team_id: str,
        report_ids: Optional[List[str]],
        priority: str = ReportPriority.MEDIUM.value,
        assigned_by: str = "system",
    ) -> Dict:
        """
        Assign several reports to one team.

        Every report is resolved and the capacity of the whole batch checked
        before anything is written.
        """
        if not report_ids:
            raise ValidationError("Report IDs array is required")

        team = self.teams.require_team(team_id)

        reports = []
        seen = set()
        for report_id in report_ids:
            report = self.reports.find_report(str(report_id))
            if report is None:
                raise NotFoundError(f"Report not found: {report_id}")
            if report["id"] in seen:
                continue
            if report.get("assigned_to") == team["id"]:
                raise ValidationError(f"Report {report['tracking_id']} is already assigned to this team")
            seen.add(report["id"])
            reports.append(report)

        _check_capacity(team, len(reports))

        now = utc_now()
        assigned = list(team.get("assigned_reports") or [])
        for report in reports:
            if report.get("assigned_to"):
                self._release_slot(report["assigned_to"], report["id"])
            self._record_assignment(report, team, assigned_by)
            assigned.append({"report_id": report["id"], "assigned_at": now, "priority": priority})

        team["assigned_reports"] = assigned
        team["current_load"] = (team.get("current_load") or 0) + len(reports)
        self.teams.save_assignments(team["id"], assigned, team["current_load"])

        tracking_ids = [r["tracking_id"] for r in reports]
        logger.info(f"📌 Reports assigned to team {team['name']}: {', '.join(tracking_ids)}")
        get_notification_service().send_in_app("team.reports_assigned", {
            "team_id": team["id"],
            "tracking_ids": tracking_ids,
            "assigned_by": assigned_by,
        })

        return {
            "message": f"{len(reports)} report(s) assigned successfully",
            "team": _team_summary(team),
        }

    def unassign_report(self, team_id: str, report_id: Optional[str], unassigned_by: str = "system") -> Dict:
        """
        Remove a report from a team.

        Raises:
            ValidationError: Missing report ID
            NotFoundError: Unknown team or no such assignment
        """
        if not report_id:
            raise ValidationError("Report ID is required")

        team = self.teams.require_team(team_id)
        report = self.reports.find_report(str(report_id))
        resolved_id = report["id"] if report else str(report_id)

        assigned = list(team.get("assigned_reports") or [])
        remaining = [a for a in assigned if a.get("report_id") != resolved_id]
        if len(remaining) == len(assigned):
            raise NotFoundError("Report assignment not found")

        team["assigned_reports"] = remaining
        team["current_load"] = max(0, (team.get("current_load") or 0) - 1)
        self.teams.save_assignments(team["id"], remaining, team["current_load"])

        if report and report.get("assigned_to") == team["id"]:
            now = utc_now()
            self.reports.collection.document(report["id"]).update({
                "assigned_to": None,
                "updated_at": now,
                "updates": list(report.get("updates") or []) + [{
                    "type": "unassignment",
                    "message": f"Report unassigned from team {team.get('name') or team['id']}",
                    "created_by": unassigned_by,
                    "created_at": now,
                }],
            })

        logger.info(f"↩️ Report {resolved_id} unassigned from team {team['name']}")

        summary = _team_summary(team)
        summary.pop("assigned_reports")
        return {"message": "Report unassigned successfully", "team": summary}


# Global service instance (singleton)
_assignment_service: Optional[AssignmentService] = None


def get_assignment_service() -> AssignmentService:
    """Get or create the global assignment service instance."""
    global _assignment_service
    if _assignment_service is None:
        _assignment_service = AssignmentService()
    return _assignment_service
