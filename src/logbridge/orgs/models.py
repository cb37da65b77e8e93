"""Org models and categorization of the CLI's org listing."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from logbridge.config.constants import ACCEPTED_CONNECTION_STATES


class OrgCategory(str, Enum):
    DEVHUB = "devhub"
    SANDBOX = "sandbox"
    SCRATCH = "scratch"
    STANDARD = "standard"
    OTHER = "other"


# Listing groups that imply a category when the org carries no flags.
# The catch-all "other" group implies nothing.
_GROUP_CATEGORIES = {
    "devHubs": OrgCategory.DEVHUB,
    "sandboxes": OrgCategory.SANDBOX,
    "scratchOrgs": OrgCategory.SCRATCH,
    "nonScratchOrgs": OrgCategory.STANDARD,
}


class OrgContext(BaseModel):
    """One authorized org."""

    username: str
    alias: str | None = None
    instance_url: str = ""
    is_default: bool = False
    category: OrgCategory = OrgCategory.OTHER
    connected_status: str = ""

    @property
    def display_name(self) -> str:
        return self.alias or self.username

    @classmethod
    def from_record(cls, record: dict[str, Any], category: OrgCategory) -> OrgContext:
        return cls(
            username=str(record.get("username") or ""),
            alias=record.get("alias") or None,
            instance_url=str(record.get("instanceUrl") or ""),
            is_default=bool(record.get("isDefaultUsername") or record.get("isDefault")),
            category=category,
            connected_status=_connection_state(record),
        )


class OrgGroups(BaseModel):
    """Orgs partitioned by category; every org appears in exactly one list."""

    devhub: list[OrgContext] = Field(default_factory=list)
    sandbox: list[OrgContext] = Field(default_factory=list)
    scratch: list[OrgContext] = Field(default_factory=list)
    standard: list[OrgContext] = Field(default_factory=list)
    other: list[OrgContext] = Field(default_factory=list)

    def bucket(self, category: OrgCategory) -> list[OrgContext]:
        return getattr(self, category.value)

    def all(self) -> list[OrgContext]:
        return [org for category in OrgCategory for org in self.bucket(category)]

    def default(self) -> OrgContext | None:
        return next((org for org in self.all() if org.is_default), None)

    def find(self, name: str) -> OrgContext | None:
        """Look an org up by alias or username."""
        return next((org for org in self.all() if name in (org.alias, org.username)), None)


def _connection_state(record: dict[str, Any]) -> str:
    # Scratch orgs report "status" instead of "connectedStatus"
    return str(record.get("connectedStatus") or record.get("status") or "")


def is_connected(record: dict[str, Any]) -> bool:
    """True if the org's connection state is usable (case-insensitive)."""
    if record.get("isExpired"):
        return False
    return _connection_state(record).lower() in ACCEPTED_CONNECTION_STATES


def categorize(record: dict[str, Any], group: str | None = None) -> OrgCategory:
    """Category from the org's own flags, else from the listing group it came from.

    An unflagged org outside the specific groups is standard when the record
    identifies an instance, and other when it does not.
    """
    if record.get("isDevHub"):
        return OrgCategory.DEVHUB
    if record.get("isScratch"):
        return OrgCategory.SCRATCH
    if record.get("isSandbox") or ".sandbox." in str(record.get("instanceUrl") or ""):
        return OrgCategory.SANDBOX
    if group in _GROUP_CATEGORIES:
        return _GROUP_CATEGORIES[group]
    if record.get("instanceUrl") or record.get("orgId"):
        return OrgCategory.STANDARD
    return OrgCategory.OTHER


def group_orgs(result: Any) -> OrgGroups:
    """Categorize the ``result`` of an org listing.

    Accepts the grouped mapping (``{"other": [...], "devHubs": [...]}``) or a
    flat list. Orgs listed under several groups are kept once, taken from the
    most specific group; orgs whose connection state is not accepted are
    dropped.
    """
    if isinstance(result, list):
        sources: list[tuple[str | None, Any]] = [(None, result)]
    elif isinstance(result, dict):
        # The CLI lists "other" first; it repeats orgs that have a specific group
        sources = sorted(result.items(), key=lambda item: item[0] not in _GROUP_CATEGORIES)
    else:
        sources = []

    groups = OrgGroups()
    seen: set[str] = set()
    for group, items in sources:
        if not isinstance(items, list):
            continue
        for record in items:
            if not isinstance(record, dict) or not record.get("username"):
                continue
            username = str(record["username"])
            if username in seen or not is_connected(record):
                continue
            seen.add(username)
            category = categorize(record, group)
            groups.bucket(category).append(OrgContext.from_record(record, category))
    return groups
