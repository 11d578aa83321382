"""Create initial tables

Revision ID: 001_initial
Revises:
Create Date: 2025-06-02

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _relation_table(name: str, constraint: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "artifact_id", sa.String(36), sa.ForeignKey("artifacts.id"), nullable=False
        ),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("artifact_id", "user_id", name=constraint),
    )
    op.create_index(f"ix_{name}_artifact_id", name, ["artifact_id"])
    op.create_index(f"ix_{name}_user_id", name, ["user_id"])


def upgrade() -> None:
    # Identity
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("token", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # Catalog
    op.create_table(
        "artifacts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("artifact_url", sa.String(2000), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("first_prompt", sa.Text, nullable=True),
        sa.Column("screenshot_url", sa.String(2000), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_artifacts_user_id", "artifacts", ["user_id"])
    op.create_index("ix_artifacts_created_at", "artifacts", ["created_at"])

    op.create_table(
        "artifact_subjects",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "artifact_id", sa.String(36), sa.ForeignKey("artifacts.id"), nullable=False
        ),
        sa.Column("subject", sa.String(64), nullable=False),
        sa.UniqueConstraint("artifact_id", "subject", name="uq_artifact_subject"),
    )
    op.create_index(
        "ix_artifact_subjects_artifact_id", "artifact_subjects", ["artifact_id"]
    )

    op.create_table(
        "artifact_key_stages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "artifact_id", sa.String(36), sa.ForeignKey("artifacts.id"), nullable=False
        ),
        sa.Column("key_stage", sa.String(8), nullable=False),
        sa.UniqueConstraint("artifact_id", "key_stage", name="uq_artifact_key_stage"),
    )
    op.create_index(
        "ix_artifact_key_stages_artifact_id", "artifact_key_stages", ["artifact_id"]
    )

    _relation_table("votes", "uq_vote_artifact_user")
    _relation_table("favorites", "uq_favorite_artifact_user")


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table("favorites")
    op.drop_table("votes")
    op.drop_table("artifact_key_stages")
    op.drop_table("artifact_subjects")
    op.drop_table("artifacts")
    op.drop_table("sessions")
    op.drop_table("users")
