"""create phase engine tables: projects, readiness, transitions, configuration, collaborators

Revision ID: 3f6c2a9d1b7e
Revises:
Create Date: 2026-10-19 09:12:44.104211

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f6c2a9d1b7e"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phase", sa.String(length=20), nullable=False, server_default="prep"),
        sa.Column("phase_updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("rehearsal_start_date", sa.Date(), nullable=True),
        sa.Column("show_end_date", sa.Date(), nullable=True),
        sa.Column("auto_transitions_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_phase"), "projects", ["phase"], unique=False)

    op.create_table(
        "project_readiness",
        sa.Column("project_id", sa.Uuid(), nullable=False),
        *[
            column
            for category in ("locations", "roles", "team", "talent")
            for column in (
                sa.Column(f"{category}_finalized", sa.Boolean(), nullable=False, server_default=sa.false()),
                sa.Column(f"{category}_finalized_at", sa.DateTime(timezone=True), nullable=True),
                sa.Column(f"{category}_finalized_by", sa.String(length=255), nullable=True),
                sa.Column(f"{category}_status", sa.String(length=20), nullable=False, server_default="none"),
            )
        ],
        sa.Column("overall_status", sa.String(length=20), nullable=False, server_default="getting-started"),
        *[
            sa.Column(name, sa.Integer(), nullable=False, server_default="0")
            for name in (
                "custom_location_count",
                "custom_role_count",
                "staff_assigned",
                "talent_assigned",
                "supervisor_count",
                "escort_count",
                "coordinator_count",
            )
        ],
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("project_id"),
    )

    op.create_table(
        "phase_transitions",
        sa.Column("seq", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("from_phase", sa.String(length=20), nullable=False),
        sa.Column("to_phase", sa.String(length=20), nullable=True),
        sa.Column("triggered_by", sa.String(length=20), nullable=False),
        sa.Column("outcome", sa.String(length=20), nullable=False),
        sa.Column("blockers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=True),
        sa.Column("correlation_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("seq"),
        sa.UniqueConstraint("id"),
    )
    op.create_index(op.f("ix_phase_transitions_project_id"), "phase_transitions", ["project_id"], unique=False)
    op.create_index(op.f("ix_phase_transitions_created_at"), "phase_transitions", ["created_at"], unique=False)

    op.create_table(
        "phase_configurations",
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("auto_transitions_enabled", sa.Boolean(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("rehearsal_start_date", sa.Date(), nullable=True),
        sa.Column("show_end_date", sa.Date(), nullable=True),
        sa.Column("rehearsal_grace_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("post_show_grace_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("project_id"),
    )

    # Collaborator tables (read-only to the phase engine)
    op.create_table(
        "project_locations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_project_locations_project_id"), "project_locations", ["project_id"], unique=False)

    op.create_table(
        "project_role_templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_project_role_templates_project_id"), "project_role_templates", ["project_id"], unique=False
    )

    op.create_table(
        "team_assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_team_assignments_project_id"), "team_assignments", ["project_id"], unique=False)

    op.create_table(
        "talent_project_assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("talent_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_talent_project_assignments_project_id"), "talent_project_assignments", ["project_id"], unique=False
    )

    op.create_table(
        "timecards",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_timecards_project_id"), "timecards", ["project_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "timecards",
        "talent_project_assignments",
        "team_assignments",
        "project_role_templates",
        "project_locations",
        "phase_configurations",
        "phase_transitions",
        "project_readiness",
    ):
        op.drop_table(table)
    op.drop_index(op.f("ix_projects_phase"), table_name="projects")
    op.drop_table("projects")
