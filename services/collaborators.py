"""Contracts for the record store and rent advisor the scorers depend on."""

from abc import ABC, abstractmethod
from typing import Optional

from models import OrgSnapshot, RentSuggestion


class SnapshotProvider(ABC):
    """Source of point-in-time organization snapshots."""

    @abstractmethod
    def get_org_snapshot(self, organization_id: str) -> OrgSnapshot:
        """Return every record belonging to the organization, and no others."""


class RentAdvisor(ABC):
    """Source of market rent recommendations."""

    @abstractmethod
    def suggest_rent(self, property_id: str, organization_id: str) -> Optional[RentSuggestion]:
        """Return a recommendation, or None when there is nothing to suggest."""


class InMemorySnapshotProvider(SnapshotProvider):
    """Serve snapshots that were assembled by the caller."""

    def __init__(self, snapshots: Optional[dict[str, OrgSnapshot]] = None):
        self.snapshots = dict(snapshots or {})

    def add(self, snapshot: OrgSnapshot) -> None:
        self.snapshots[snapshot.organization_id] = snapshot

    def get_org_snapshot(self, organization_id: str) -> OrgSnapshot:
        if organization_id not in self.snapshots:
            raise LookupError(f"No snapshot for organization {organization_id}")
        return self.snapshots[organization_id]
