"""initial_schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2025-11-03 10:12:41.203318

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

job_status = sa.Enum("QUEUED", "PROCESSING", "COMPLETED", "FAILED", name="jobstatus")


def upgrade() -> None:
    """Create users, generation_jobs, resources and api_usage_logs."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("is_pro", sa.Boolean(), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("api_requests_this_month", sa.Integer(), nullable=False),
        sa.Column("api_requests_period", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "generation_jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.String(length=255), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("objects_count", sa.Integer(), nullable=False),
        sa.Column("status", job_status, nullable=False),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("error", sa.String(length=1000), nullable=True),
        sa.Column("error_history", sa.JSON(), nullable=True),
        sa.Column("provider_used", sa.String(length=100), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("job_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("processing_time_ms", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_generation_jobs_user_id"), "generation_jobs", ["user_id"])
    op.create_index(op.f("ix_generation_jobs_project_id"), "generation_jobs", ["project_id"])
    op.create_index(op.f("ix_generation_jobs_status"), "generation_jobs", ["status"])
    op.create_index(op.f("ix_generation_jobs_created_at"), "generation_jobs", ["created_at"])

    op.create_table(
        "resources",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("live", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_resources_project_id"), "resources", ["project_id"])
    op.create_index(op.f("ix_resources_user_id"), "resources", ["user_id"])

    op.create_table(
        "api_usage_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("resource_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_api_usage_logs_resource_id"), "api_usage_logs", ["resource_id"])
    op.create_index(op.f("ix_api_usage_logs_user_id"), "api_usage_logs", ["user_id"])
    op.create_index(op.f("ix_api_usage_logs_created_at"), "api_usage_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("api_usage_logs")
    op.drop_table("resources")
    op.drop_table("generation_jobs")
    op.drop_table("users")
    job_status.drop(op.get_bind(), checkfirst=True)
