"""registry and import schema

Revision ID: 20261016090000
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261016090000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

member_role = postgresql.ENUM("admin", "member", "group_leader", name="member_role")
blood_group = postgresql.ENUM(
    "A+", "B+", "AB+", "O+", "A-", "B-", "AB-", "O-", name="blood_group"
)
group_type = postgresql.ENUM(
    "sunday_school", "choir", "youth", "senior_youth", "ministry", "other",
    name="group_type",
)
group_membership_status = postgresql.ENUM(
    "pending", "approved", "rejected", "inactive", name="group_membership_status"
)
group_membership_role = postgresql.ENUM(
    "member", "assistant_leader", name="group_membership_role"
)
import_status = postgresql.ENUM(
    "pending", "processing", "completed", "failed", name="import_status"
)

ENUMS = (
    member_role,
    blood_group,
    group_type,
    group_membership_status,
    group_membership_role,
    import_status,
)


def upgrade() -> None:
    """Create registry and import tables."""
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # members.family_id FK is added after families exists
    op.create_table(
        "members",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("blood_group", postgresql.ENUM(name="blood_group", create_type=False), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=100), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=32), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(name="member_role", create_type=False),
            nullable=False,
            server_default="member",
        ),
        sa.Column("family_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_members")),
        sa.UniqueConstraint("email", name=op.f("uq_members_email")),
    )
    op.create_index(op.f("ix_members_phone"), "members", ["phone"], unique=False)
    op.create_index(op.f("ix_members_family_id"), "members", ["family_id"], unique=False)
    op.create_index(op.f("ix_members_role"), "members", ["role"], unique=False)

    op.create_table(
        "families",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("family_name", sa.String(length=100), nullable=False),
        sa.Column("head_of_family_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_families")),
        sa.ForeignKeyConstraint(
            ["head_of_family_id"],
            ["members.id"],
            name=op.f("fk_families_head_of_family_id_members"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        op.f("ix_families_head_of_family_id"), "families", ["head_of_family_id"], unique=False
    )
    # Family lookups during import are case-insensitive
    op.create_index(
        "ix_families_family_name_lower",
        "families",
        [sa.text("lower(family_name)")],
        unique=False,
    )

    op.create_foreign_key(
        op.f("fk_members_family_id_families"),
        "members",
        "families",
        ["family_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "groups",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "group_type",
            postgresql.ENUM(name="group_type", create_type=False),
            nullable=False,
            server_default="other",
        ),
        sa.Column("leader_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_groups")),
        sa.ForeignKeyConstraint(
            ["leader_id"],
            ["members.id"],
            name=op.f("fk_groups_leader_id_members"),
            ondelete="SET NULL",
        ),
    )

    op.create_table(
        "group_memberships",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(name="group_membership_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "role",
            postgresql.ENUM(name="group_membership_role", create_type=False),
            nullable=False,
            server_default="member",
        ),
        sa.Column("requested_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_group_memberships")),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["groups.id"],
            name=op.f("fk_group_memberships_group_id_groups"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["members.id"],
            name=op.f("fk_group_memberships_member_id_members"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "group_id", "member_id", name="uq_group_memberships_group_member"
        ),
    )
    op.create_index(
        op.f("ix_group_memberships_group_id"), "group_memberships", ["group_id"], unique=False
    )
    op.create_index(
        op.f("ix_group_memberships_member_id"), "group_memberships", ["member_id"], unique=False
    )

    op.create_table(
        "import_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("file_format", sa.String(length=20), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column(
            "status",
            postgresql.ENUM(name="import_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("total_records", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processed_records", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("successful_records", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_records", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_log", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("warning_log", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("cancel_requested", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("started_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_import_jobs")),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["members.id"],
            name=op.f("fk_import_jobs_created_by_members"),
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_import_jobs_status"), "import_jobs", ["status"], unique=False)
    op.create_index(op.f("ix_import_jobs_created_by"), "import_jobs", ["created_by"], unique=False)
    op.create_index(op.f("ix_import_jobs_created_at"), "import_jobs", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop registry and import tables."""
    op.drop_index(op.f("ix_import_jobs_created_at"), table_name="import_jobs")
    op.drop_index(op.f("ix_import_jobs_created_by"), table_name="import_jobs")
    op.drop_index(op.f("ix_import_jobs_status"), table_name="import_jobs")
    op.drop_table("import_jobs")
    op.drop_index(op.f("ix_group_memberships_member_id"), table_name="group_memberships")
    op.drop_index(op.f("ix_group_memberships_group_id"), table_name="group_memberships")
    op.drop_table("group_memberships")
    op.drop_table("groups")
    op.drop_constraint(op.f("fk_members_family_id_families"), "members", type_="foreignkey")
    op.drop_index("ix_families_family_name_lower", table_name="families")
    op.drop_index(op.f("ix_families_head_of_family_id"), table_name="families")
    op.drop_table("families")
    op.drop_index(op.f("ix_members_role"), table_name="members")
    op.drop_index(op.f("ix_members_family_id"), table_name="members")
    op.drop_index(op.f("ix_members_phone"), table_name="members")
    op.drop_table("members")

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
