"""Entity resolution for member import rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.models import Family, Group, GroupMembership, Member
from app.imports.coercers import MemberRow, coerce_date
from app.imports.validators import ImportErrorEntry

logger = logging.getLogger(__name__)


class RowProcessingError(Exception):
    """A storage step failed for one row; the row is reported and skipped."""


@dataclass
class ProcessResult:
    """Result of processing a row."""

    member_id: UUID
    created: bool
    family_id: Optional[UUID] = None
    warnings: list[ImportErrorEntry] = field(default_factory=list)


@dataclass
class ImportContext:
    """
    Lookups shared by every row of one import run.

    ``families`` only holds ids from committed rows; ids discovered while a
    row is in flight sit in ``staged_families`` until ``commit_row``.
    """

    groups: dict[str, UUID] = field(default_factory=dict)
    families: dict[str, UUID] = field(default_factory=dict)
    staged_families: dict[str, UUID] = field(default_factory=dict)

    def lookup_family(self, name: str) -> Optional[UUID]:
        key = name.lower()
        return self.staged_families.get(key) or self.families.get(key)

    def stage_family(self, name: str, family_id: UUID) -> None:
        self.staged_families[name.lower()] = family_id

    def commit_row(self) -> None:
        self.families.update(self.staged_families)
        self.staged_families.clear()

    def discard_row(self) -> None:
        self.staged_families.clear()


def load_groups(db: Session) -> dict[str, UUID]:
    """Load every group as ``lower(name) -> id``."""
    groups: dict[str, UUID] = {}
    for group_id, name in db.execute(select(Group.id, Group.name)).all():
        groups.setdefault(name.strip().lower(), group_id)
    return groups


class MemberProcessor:
    """Create or update the member a row describes."""

    @staticmethod
    def find_existing(db: Session, row: MemberRow) -> Optional[Member]:
        """First member whose email or phone matches the row."""
        return db.execute(
            select(Member)
            .where(or_(Member.email == row.email, Member.phone == row.phone))
            .order_by(Member.created_at)
            .limit(1)
        ).scalar_one_or_none()

    @staticmethod
    def _apply(member: Member, row: MemberRow) -> None:
        dob = coerce_date(row.date_of_birth) if row.date_of_birth else None
        member.first_name = row.first_name
        member.last_name = row.last_name
        member.phone = row.phone
        member.date_of_birth = dob.coerced_value if dob and dob.success else None
        member.gender = row.gender or None
        member.blood_group = row.blood_group or None
        member.address = row.address or None
        member.emergency_contact_name = row.emergency_contact_name or None
        member.emergency_contact_phone = row.emergency_contact_phone or None
        member.role = row.role or "member"

    @staticmethod
    def resolve(db: Session, row: MemberRow) -> tuple[Member, bool]:
        """
        Update the matching member in place or insert a new one.

        Email is never changed on an existing member.

        Returns:
            Tuple of (member, created)

        Raises:
            RowProcessingError: If the write fails
        """
        existing = MemberProcessor.find_existing(db, row)

        if existing is not None:
            try:
                MemberProcessor._apply(existing, row)
                db.flush()
            except SQLAlchemyError as e:
                raise RowProcessingError(f"Failed to update member: {e}") from e
            return existing, False

        try:
            member = Member(email=row.email)
            MemberProcessor._apply(member, row)
            db.add(member)
            db.flush()
        except SQLAlchemyError as e:
            raise RowProcessingError(f"Failed to create member: {e}") from e
        return member, True


class FamilyProcessor:
    """Find or create the row's family and link the member to it."""

    @staticmethod
    def find_existing(db: Session, family_name: str) -> Optional[Family]:
        """Case-insensitive family lookup by name."""
        return db.execute(
            select(Family)
            .where(func.lower(Family.family_name) == family_name.lower())
            .order_by(Family.created_at)
            .limit(1)
        ).scalar_one_or_none()

    @staticmethod
    def resolve(
        db: Session, row: MemberRow, member: Member, context: ImportContext
    ) -> UUID:
        """
        Link ``member`` to the row's family, creating the family if needed.

        Raises:
            RowProcessingError: If the family cannot be created
        """
        family_id = context.lookup_family(row.family_name)

        if family_id is None:
            existing = FamilyProcessor.find_existing(db, row.family_name)
            if existing is not None:
                family_id = existing.id
            else:
                try:
                    family = Family(
                        family_name=row.family_name,
                        address=row.address or None,
                        phone=row.phone,
                    )
                    db.add(family)
                    db.flush()
                except SQLAlchemyError as e:
                    raise RowProcessingError(f"Failed to create family: {e}") from e
                family_id = family.id
            context.stage_family(row.family_name, family_id)

        member.family_id = family_id
        if row.head_of_family:
            db.get(Family, family_id).head_of_family_id = member.id
        db.flush()
        return family_id


class GroupMembershipProcessor:
    """Request membership of every known group the row lists."""

    @staticmethod
    def apply(
        db: Session, row: MemberRow, member: Member, context: ImportContext
    ) -> list[ImportErrorEntry]:
        """
        Upsert a pending membership per listed group.

        Returns:
            Warning entries for group names that do not exist
        """
        warnings: list[ImportErrorEntry] = []

        for name in row.group_names:
            group_id = context.groups.get(name)
            if group_id is None:
                warnings.append(
                    ImportErrorEntry(
                        row_number=row.row_number,
                        message=f"Unknown group '{name}' ignored",
                        data={"group": name, "email": row.email},
                    )
                )
                continue

            membership = db.execute(
                select(GroupMembership).where(
                    GroupMembership.group_id == group_id,
                    GroupMembership.member_id == member.id,
                )
            ).scalar_one_or_none()

            if membership is None:
                db.add(
                    GroupMembership(
                        group_id=group_id,
                        member_id=member.id,
                        status="pending",
                        role="member",
                    )
                )
            else:
                membership.status = "pending"
                membership.role = "member"
            db.flush()

        return warnings


def process_member_row(
    db: Session, row: MemberRow, context: ImportContext
) -> ProcessResult:
    """
    Apply one validated row: member, then family, then group memberships.

    Nothing is committed here; the caller owns the transaction.

    Raises:
        RowProcessingError: For member/family storage failures
    """
    member, created = MemberProcessor.resolve(db, row)
    family_id = FamilyProcessor.resolve(db, row, member, context)
    warnings = GroupMembershipProcessor.apply(db, row, member, context)
    return ProcessResult(
        member_id=member.id,
        created=created,
        family_id=family_id,
        warnings=warnings,
    )
