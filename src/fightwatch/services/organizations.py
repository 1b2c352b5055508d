"""
Organization lookup and seeding.

Every sync anchors to one organization row. If it is missing, nothing
downstream can be attached correctly, so the sync aborts with a failed
result instead of processing anything.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from fightwatch.config import settings
from fightwatch.db.models import Organization

logger = logging.getLogger(__name__)


class OrganizationNotFoundError(Exception):
    """The organization a sync anchors to does not exist."""

    def __init__(self, short_name: str):
        self.short_name = short_name
        super().__init__(f"{short_name} organization not found")


@dataclass(frozen=True)
class OrganizationSeed:
    name: str
    short_name: str
    website: str


DEFAULT_ORGANIZATIONS: tuple[OrganizationSeed, ...] = (
    OrganizationSeed("Ultimate Fighting Championship", "UFC", "https://www.ufc.com"),
    OrganizationSeed("Bellator MMA", "BELLATOR", "https://www.bellator.com"),
)


def require_organization(db: Session, short_name: Optional[str] = None) -> Organization:
    """
    Fetch the organization by short name.

    Raises:
        OrganizationNotFoundError: No organization with that short name
    """
    short_name = short_name or settings.organization_short_name
    organization = db.query(Organization).filter(
        Organization.short_name == short_name
    ).first()
    if organization is None:
        raise OrganizationNotFoundError(short_name)
    return organization


def ensure_organizations(
    db: Session,
    seeds: tuple[OrganizationSeed, ...] = DEFAULT_ORGANIZATIONS,
) -> list[Organization]:
    """
    Create any missing organizations; existing rows are left untouched.

    Doesn't commit - the caller owns the transaction.

    Returns:
        The organizations, in seed order
    """
    organizations = []
    for seed in seeds:
        organization = db.query(Organization).filter(
            Organization.short_name == seed.short_name
        ).first()
        if organization is None:
            organization = Organization(
                name=seed.name,
                short_name=seed.short_name,
                website=seed.website,
                active=True,
            )
            db.add(organization)
            db.flush()
            logger.info("Created organization %s (%s)", seed.name, seed.short_name)
        organizations.append(organization)
    return organizations
