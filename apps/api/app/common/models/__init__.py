"""Models package - exports all models.

Existing imports like:
    from app.common.models import Member, Family, Base
resolve here.

Models are organized into:
- base: Base class, metadata, and enums
- registry: Registry domain models (members, families, groups, memberships)
"""

from __future__ import annotations

# Export Base and metadata first (required by other models)
from app.common.models.base import (
    Base,
    metadata,
    NAMING_CONVENTION,
    # Enums
    MemberRole,
    BloodGroup,
    GroupType,
    GroupMembershipStatus,
    GroupMembershipRole,
    ImportStatus,
)

# Export Registry models
from app.common.models.registry import (
    Member,
    Family,
    Group,
    GroupMembership,
)

__all__ = [
    # Base
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    # Enums
    "MemberRole",
    "BloodGroup",
    "GroupType",
    "GroupMembershipStatus",
    "GroupMembershipRole",
    "ImportStatus",
    # Registry models
    "Member",
    "Family",
    "Group",
    "GroupMembership",
]
