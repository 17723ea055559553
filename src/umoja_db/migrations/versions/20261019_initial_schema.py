"""Initial schema — users, profiles, assessment catalog, sessions, results.

Creates every table used by the backend:

  - ``users`` (identity-provider subject -> internal row)
  - ``child_profiles`` / ``guardian_profiles`` / ``child_guardian_relationships``
  - ``emergency_contacts``
  - ``assessment_buckets`` / ``assessment_questions`` (static catalog)
  - ``assessment_sessions`` / ``assessment_responses`` (attempts)
  - ``user_assessment_results`` (cached LLM analysis, one row per user)

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
    ]


def _user_fk(name: str = "user_id", **kwargs) -> sa.Column:
    return sa.Column(
        name, UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, **kwargs,
    )


def upgrade() -> None:
    # --- Accounts ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("external_id", sa.Text, nullable=False, unique=True),
        sa.Column("email", sa.Text, nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="child"),
        *_timestamps(),
        sa.CheckConstraint("role IN ('child', 'guardian')", name="ck_user_role"),
    )

    op.create_table(
        "child_profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=False),
        sa.Column("gender", sa.Text),
        sa.Column("grade", sa.Text),
        sa.Column("school_name", sa.Text),
        sa.Column("physician_name", sa.Text),
        sa.Column("physician_phone", sa.Text),
        sa.Column("health_notes", sa.Text),
        sa.Column("consent_given", sa.Boolean, nullable=False,
                  server_default=sa.false()),
        sa.Column("profile_completed", sa.Boolean, nullable=False,
                  server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index(
        "ix_child_identity", "child_profiles",
        ["first_name", "last_name", "date_of_birth"],
    )

    op.create_table(
        "guardian_profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("relationship_to_child", sa.Text),
        *_timestamps(),
    )

    op.create_table(
        "child_guardian_relationships",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("child_profile_id", UUID(as_uuid=True),
                  sa.ForeignKey("child_profiles.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("guardian_profile_id", UUID(as_uuid=True),
                  sa.ForeignKey("guardian_profiles.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("relationship_type", sa.Text, nullable=False,
                  server_default="parent"),
        sa.Column("is_primary_guardian", sa.Boolean, nullable=False,
                  server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("child_profile_id", "guardian_profile_id",
                            name="uq_child_guardian"),
    )
    op.create_index(
        "ix_child_guardian_relationships_guardian_profile_id",
        "child_guardian_relationships", ["guardian_profile_id"],
    )
    # At most one primary guardian per child
    op.create_index(
        "ix_one_primary_guardian", "child_guardian_relationships",
        ["child_profile_id"], unique=True,
        postgresql_where=sa.text("is_primary_guardian"),
    )

    op.create_table(
        "emergency_contacts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("child_profile_id", UUID(as_uuid=True),
                  sa.ForeignKey("child_profiles.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        sa.Column("full_name", sa.Text, nullable=False),
        sa.Column("relationship", sa.Text),
        sa.Column("phone_number", sa.Text, nullable=False),
        sa.Column("can_pick_up", sa.Boolean, nullable=False,
                  server_default=sa.false()),
        sa.Column("is_primary", sa.Boolean, nullable=False,
                  server_default=sa.false()),
        *_timestamps(),
    )

    # --- Assessment catalog ---
    op.create_table(
        "assessment_buckets",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("purpose", sa.Text),
        sa.Column("age_band", sa.String(8), nullable=False, index=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
        sa.UniqueConstraint("name", "age_band", name="uq_bucket_name_band"),
        sa.CheckConstraint("age_band IN ('K-2', '3-5', 'MS', 'HS+')",
                           name="ck_bucket_age_band"),
    )

    op.create_table(
        "assessment_questions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("bucket_id", UUID(as_uuid=True),
                  sa.ForeignKey("assessment_buckets.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("question_text", sa.Text, nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("response_options", JSONB),
        sa.Column("section", sa.Text),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("is_required", sa.Boolean, nullable=False,
                  server_default=sa.true()),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
        sa.CheckConstraint(
            "question_type IN ('multiple_choice', 'likert_scale', "
            "'open_ended', 'image_selection')",
            name="ck_question_type",
        ),
    )
    op.create_index(
        "ix_question_bucket_order", "assessment_questions",
        ["bucket_id", "order_index"],
    )

    # --- Attempts ---
    op.create_table(
        "assessment_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("bucket_id", UUID(as_uuid=True),
                  sa.ForeignKey("assessment_buckets.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("status", sa.String(20), nullable=False,
                  server_default="in_progress"),
        sa.Column("total_questions", sa.Integer, nullable=False,
                  server_default="0"),
        sa.Column("answered_questions", sa.Integer, nullable=False,
                  server_default="0"),
        sa.Column("started_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
        sa.Column("completed_at", TIMESTAMP(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('in_progress', 'completed', 'abandoned')",
            name="ck_session_status",
        ),
        sa.CheckConstraint("answered_questions >= 0",
                           name="ck_answered_non_negative"),
        sa.CheckConstraint(
            "status != 'completed' OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
    )
    op.create_index(
        "ix_session_user_bucket", "assessment_sessions",
        ["user_id", "bucket_id", "status"],
    )

    op.create_table(
        "assessment_responses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("session_id", UUID(as_uuid=True),
                  sa.ForeignKey("assessment_sessions.id", ondelete="CASCADE"),
                  nullable=False),
        sa.Column("question_id", UUID(as_uuid=True),
                  sa.ForeignKey("assessment_questions.id", ondelete="CASCADE"),
                  nullable=False),
        _user_fk(index=True),
        sa.Column("response_value", sa.Text),
        sa.Column("response_numeric", sa.Float),
        sa.Column("response_json", JSONB),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False,
                  server_default=sa.text("now()")),
        sa.UniqueConstraint("session_id", "question_id",
                            name="uq_session_question"),
        sa.CheckConstraint(
            "num_nonnulls(response_value, response_numeric, response_json) = 1",
            name="ck_single_response_value",
        ),
    )

    # --- Cached analysis ---
    op.create_table(
        "user_assessment_results",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("personality_summary", sa.Text, nullable=False),
        sa.Column("learning_style", JSONB, nullable=False),
        sa.Column("trait_scores", JSONB, nullable=False),
        sa.Column("strengths", JSONB, nullable=False),
        sa.Column("areas_for_growth", JSONB, nullable=False),
        sa.Column("pod_recommendation", sa.Text, nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("user_assessment_results")
    op.drop_table("assessment_responses")
    op.drop_index("ix_session_user_bucket", table_name="assessment_sessions")
    op.drop_table("assessment_sessions")
    op.drop_index("ix_question_bucket_order", table_name="assessment_questions")
    op.drop_table("assessment_questions")
    op.drop_table("assessment_buckets")
    op.drop_table("emergency_contacts")
    op.drop_index("ix_one_primary_guardian",
                  table_name="child_guardian_relationships")
    op.drop_index("ix_child_guardian_relationships_guardian_profile_id",
                  table_name="child_guardian_relationships")
    op.drop_table("child_guardian_relationships")
    op.drop_table("guardian_profiles")
    op.drop_index("ix_child_identity", table_name="child_profiles")
    op.drop_table("child_profiles")
    op.drop_table("users")
