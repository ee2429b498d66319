"""Create profiles, usage credits and processing jobs."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("subscription_tier", sa.String(length=32), nullable=False, server_default="free"),
        sa.Column(
            "first_item_pass_used", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("user_id", name="pk_profiles"),
    )

    op.create_table(
        "usage_credits",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("price_checks_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("optimizations_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("vintography_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credits_limit", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("vintography_used >= 0", name="ck_usage_credits_vintography_used"),
        sa.PrimaryKeyConstraint("user_id", name="pk_usage_credits"),
    )

    op.create_table(
        "processing_job",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("operation", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("selfie_url", sa.String(length=1024), nullable=True),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column("uses_first_item_pass", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("credits_deducted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("result_url", sa.String(length=1024), nullable=True),
        sa.Column("failure_reason", sa.String(length=64), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status IN ('processing', 'completed', 'failed')",
            name="ck_processing_job_status",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_processing_job"),
    )
    op.create_index("ix_processing_job_user_id", "processing_job", ["user_id"])
    op.create_index(
        "ix_processing_job_user_created", "processing_job", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_processing_job_user_created", table_name="processing_job")
    op.drop_index("ix_processing_job_user_id", table_name="processing_job")
    op.drop_table("processing_job")
    op.drop_table("usage_credits")
    op.drop_table("profiles")
