"""Initial district schema.

- districts, clusters, schools
- users
- data_requests, request_assignees
- visit_sessions, location_samples, field_visits

Also adds the functional upper(school_name) index used by school-level
request visibility.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1d9e7a5b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.UUID(), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # gen_random_uuid() lives in pgcrypto before Postgres 13
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # Organisation hierarchy
    op.create_table(
        "districts",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        *_timestamp_columns(),
        sa.UniqueConstraint("code", name="uq_districts_code"),
    )
    op.create_table(
        "clusters",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("district_id", sa.UUID(), nullable=False),
        *_timestamp_columns(),
        sa.UniqueConstraint("code", name="uq_clusters_code"),
    )
    op.create_index("ix_clusters_district_id", "clusters", ["district_id"])
    op.create_table(
        "schools",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("emis_number", sa.Text(), nullable=True),
        sa.Column("cluster_id", sa.UUID(), nullable=False),
        sa.Column("district_id", sa.UUID(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("total_students", sa.Integer(), server_default="0", nullable=False),
        sa.Column("present_students", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_teachers", sa.Integer(), server_default="0", nullable=False),
        sa.Column("present_teachers", sa.Integer(), server_default="0", nullable=False),
        *_timestamp_columns(),
        sa.UniqueConstraint("code", name="uq_schools_code"),
    )
    op.create_index("ix_schools_cluster_id", "schools", ["cluster_id"])
    op.create_index("ix_schools_district_id", "schools", ["district_id"])

    # Users
    op.create_table(
        "users",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone_number", sa.Text(), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column("school_id", sa.UUID(), nullable=True),
        sa.Column("school_name", sa.Text(), nullable=True),
        sa.Column("cluster_id", sa.UUID(), nullable=True),
        sa.Column("district_id", sa.UUID(), nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint("phone_number", name="uq_users_phone_number"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    # Data requests
    op.create_table(
        "data_requests",
        _id_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("created_by_name", sa.Text(), nullable=False),
        sa.Column("created_by_role", sa.Text(), nullable=False),
        sa.Column("created_by_school_id", sa.UUID(), nullable=True),
        sa.Column("created_by_cluster_id", sa.UUID(), nullable=True),
        sa.Column("created_by_district_id", sa.UUID(), nullable=True),
        sa.Column("priority", sa.Text(), server_default=sa.text("'medium'"), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column("is_archived", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fields", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        *_timestamp_columns(),
    )
    op.create_index("ix_data_requests_created_by", "data_requests", ["created_by"])
    op.create_index(
        "ix_data_requests_active",
        "data_requests",
        ["created_at"],
        postgresql_where=sa.text("is_archived = false"),
    )

    op.create_table(
        "request_assignees",
        _id_column(),
        sa.Column("request_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("user_name", sa.Text(), nullable=False),
        sa.Column("user_role", sa.Text(), nullable=False),
        sa.Column("school_id", sa.UUID(), nullable=True),
        sa.Column("school_name", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("field_responses", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["request_id"], ["data_requests.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_request_assignees_request_id", "request_assignees", ["request_id"])
    op.create_index("ix_request_assignees_user_id", "request_assignees", ["user_id"])
    op.execute(
        "CREATE INDEX ix_request_assignees_upper_school_name "
        "ON request_assignees (upper(school_name));"
    )

    # Field visits and GPS tracking
    op.create_table(
        "visit_sessions",
        _id_column(),
        sa.Column("aeo_id", sa.UUID(), nullable=False),
        sa.Column("aeo_name", sa.Text(), nullable=False),
        sa.Column("school_id", sa.UUID(), nullable=True),
        sa.Column("school_name", sa.Text(), nullable=False),
        sa.Column("start_timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("start_latitude", sa.Float(), nullable=True),
        sa.Column("start_longitude", sa.Float(), nullable=True),
        sa.Column("start_location_source", sa.Text(), server_default=sa.text("'manual'"), nullable=False),
        sa.Column("end_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_latitude", sa.Float(), nullable=True),
        sa.Column("end_longitude", sa.Float(), nullable=True),
        sa.Column("end_location_source", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'in_progress'"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("visit_id", sa.UUID(), nullable=True),
        sa.Column("visit_type", sa.Text(), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_visit_sessions_aeo_id", "visit_sessions", ["aeo_id"])

    op.create_table(
        "location_samples",
        _id_column(),
        sa.Column("entity_id", sa.UUID(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("accuracy", sa.Float(), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_location_samples_entity_id", "location_samples", ["entity_id"])
    op.create_index("ix_location_samples_user_id", "location_samples", ["user_id"])

    op.create_table(
        "field_visits",
        _id_column(),
        sa.Column("visit_type", sa.Text(), nullable=False),
        sa.Column("aeo_id", sa.UUID(), nullable=False),
        sa.Column("aeo_name", sa.Text(), nullable=False),
        sa.Column("school_id", sa.UUID(), nullable=True),
        sa.Column("school_name", sa.Text(), nullable=True),
        sa.Column("visit_date", sa.Date(), nullable=False),
        sa.Column("session_id", sa.UUID(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("form_data", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_field_visits_visit_type", "field_visits", ["visit_type"])
    op.create_index("ix_field_visits_aeo_id", "field_visits", ["aeo_id"])
    op.create_index("ix_field_visits_school_id", "field_visits", ["school_id"])


def downgrade() -> None:
    op.drop_table("field_visits")
    op.drop_table("location_samples")
    op.drop_table("visit_sessions")
    op.execute("DROP INDEX IF EXISTS ix_request_assignees_upper_school_name;")
    op.drop_table("request_assignees")
    op.drop_table("data_requests")
    op.drop_table("users")
    op.drop_table("schools")
    op.drop_table("clusters")
    op.drop_table("districts")
