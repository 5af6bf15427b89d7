"""
Team service - municipal work units that reports are assigned to.

DESIGN NOTE:
- Teams live in the "teams" collection
- Deleting a team is a soft delete (is_active = false); inactive teams are
  invisible to every lookup
- Capacity fields (available_capacity, utilization_rate, can_take_assignment)
  are computed on read and never stored
"""

from typing import Dict, List, Optional
import logging

from civicsense.config.firebase import get_db
from civicsense.core.exceptions import NotFoundError, ValidationError
from civicsense.models.team import TeamCreate, TeamUpdate
from civicsense.utils.firestore_helpers import snapshot_to_dict, utc_now, where_filter

logger = logging.getLogger(__name__)

TEAMS_COLLECTION = "teams"


def with_capacity_stats(team: Dict) -> Dict:
    """Add computed capacity fields to a team record."""
    capacity = team.get("capacity") or 0
    load = team.get("current_load") or 0
    enriched = dict(team)
    enriched["available_capacity"] = capacity - load
    enriched["utilization_rate"] = round(load / capacity * 100) if capacity else 0
    enriched["can_take_assignment"] = load < capacity
    return enriched


class TeamService:

    @property
    def collection(self):
        return get_db().collection(TEAMS_COLLECTION)

    def find_active_team(self, team_id: str) -> Optional[Dict]:
        team = snapshot_to_dict(self.collection.document(team_id).get())
        if team is None or not team.get("is_active", True):
            return None
        return team

    def require_team(self, team_id: str) -> Dict:
        """
        Raises:
            NotFoundError: If the team does not exist or is inactive
        """
        team = self.find_active_team(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    def list_teams(
        self,
        department: Optional[str] = None,
        specialty: Optional[str] = None,
        available: bool = False,
    ) -> List[Dict]:
        """
        List active teams with computed capacity fields.

        Args:
            department: Only teams of this department
            specialty: Only teams listing this specialty
            available: Only teams that can take another assignment
        """
        query = where_filter(self.collection, "is_active", "==", True)
        if department:
            query = where_filter(query, "department", "==", department)
        teams = [snapshot_to_dict(doc) for doc in query.stream()]

        if specialty:
            teams = [t for t in teams if specialty in (t.get("specialties") or [])]
        if available:
            teams = [t for t in teams if (t.get("current_load") or 0) < (t.get("capacity") or 0)]

        teams.sort(key=lambda t: t.get("name") or "")
        return [with_capacity_stats(t) for t in teams]

    def get_team(self, team_id: str) -> Dict:
        return with_capacity_stats(self.require_team(team_id))

    def create_team(self, payload: TeamCreate) -> Dict:
        """
        Create a team; name and department are required.

        Raises:
            ValidationError: If name or department is missing
        """
        name = (payload.name or "").strip()
        if not name or payload.department is None:
            raise ValidationError("Name and department are required")

        now = utc_now()
        doc_ref = self.collection.document()
        team = {
            "name": name,
            "description": (payload.description or "").strip(),
            "department": payload.department.value,
            "members": [m.model_dump(mode="json") for m in payload.members],
            "specialties": [s.value for s in payload.specialties],
            "capacity": payload.capacity,
            "current_load": 0,
            "assigned_reports": [],
            "is_active": True,
            "contact_info": payload.contact_info.model_dump(mode="json"),
            "working_hours": payload.working_hours.model_dump(mode="json"),
            "created_at": now,
            "updated_at": now,
        }
        doc_ref.set(team)
        team["id"] = doc_ref.id

        logger.info(f"👥 New team created: {name} (ID: {doc_ref.id})")
        return with_capacity_stats(team)

    def update_team(self, team_id: str, payload: TeamUpdate) -> Dict:
        """Apply the fields present in the request to an active team."""
        team = self.require_team(team_id)

        changes = payload.model_dump(mode="json", exclude_unset=True)
        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("Name is required")
        changes = {k: v for k, v in changes.items() if v is not None}
        changes["updated_at"] = utc_now()

        self.collection.document(team_id).update(changes)
        team.update(changes)

        logger.info(f"👥 Team updated: {team['name']} (ID: {team_id})")
        return with_capacity_stats(team)

    def delete_team(self, team_id: str) -> Dict:
        """Soft delete: the team record stays but is marked inactive."""
        team = snapshot_to_dict(self.collection.document(team_id).get())
        if team is None:
            raise NotFoundError("Team not found")

        self.collection.document(team_id).update({"is_active": False, "updated_at": utc_now()})
        logger.info(f"👥 Team deleted: {team.get('name')} (ID: {team_id})")
        return {"message": "Team deleted successfully"}

    def save_assignments(self, team_id: str, assigned_reports: List[Dict], current_load: int):
        self.collection.document(team_id).update({
            "assigned_reports": assigned_reports,
            "current_load": current_load,
            "updated_at": utc_now(),
        })


# Global service instance (singleton)
_team_service: Optional[TeamService] = None


def get_team_service() -> TeamService:
    """Get or create the global team service instance."""
    global _team_service
    if _team_service is None:
        _team_service = TeamService()
    return _team_service
