"""Base classes and enums shared across all models."""

from __future__ import annotations

from sqlalchemy import Enum, MetaData
from sqlalchemy.orm import DeclarativeBase


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata


# Registry Enums
MemberRole = Enum("admin", "member", "group_leader", name="member_role")
BloodGroup = Enum(
    "A+", "B+", "AB+", "O+", "A-", "B-", "AB-", "O-", name="blood_group"
)
GroupType = Enum(
    "sunday_school", "choir", "youth", "senior_youth", "ministry", "other",
    name="group_type",
)
GroupMembershipStatus = Enum(
    "pending", "approved", "rejected", "inactive", name="group_membership_status"
)
GroupMembershipRole = Enum(
    "member", "assistant_leader", name="group_membership_role"
)

# Import Enums
ImportStatus = Enum(
    "pending", "processing", "completed", "failed", name="import_status"
)
