"""Orgs module - org listing, default org resolution and refresh guarding."""

from logbridge.orgs.models import OrgCategory, OrgContext, OrgGroups, categorize, group_orgs
from logbridge.orgs.ops import OrgOps
from logbridge.orgs.refresh import RefreshCoordinator, RefreshOutcome

__all__ = [
    "OrgCategory",
    "OrgContext",
    "OrgGroups",
    "OrgOps",
    "RefreshCoordinator",
    "RefreshOutcome",
    "categorize",
    "group_orgs",
]
