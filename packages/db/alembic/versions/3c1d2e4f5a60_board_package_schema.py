# This project was developed with assistance from AI tools.
"""board package schema

Revision ID: 3c1d2e4f5a60
Revises:
Create Date: 2026-10-18

"""

import sqlalchemy as sa
from alembic import op

revision = "3c1d2e4f5a60"
down_revision = None
branch_labels = None
depends_on = None

TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION activity_log_prevent_mutation()
RETURNS TRIGGER AS $$
BEGIN
    RAISE EXCEPTION 'activity_log is append-only: % denied for row %', TG_OP, OLD.id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

TRIGGER_UPDATE = """
CREATE TRIGGER activity_log_no_update
    BEFORE UPDATE ON activity_log
    FOR EACH ROW
    EXECUTE FUNCTION activity_log_prevent_mutation();
"""

TRIGGER_DELETE = """
CREATE TRIGGER activity_log_no_delete
    BEFORE DELETE ON activity_log
    FOR EACH ROW
    EXECUTE FUNCTION activity_log_prevent_mutation();
"""


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _app_fk():
    return sa.Column(
        "application_id",
        sa.Integer(),
        sa.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transaction_type", sa.String(50), nullable=False),
        sa.Column("building_name", sa.String(255), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="IN_PROGRESS"),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("broker_id", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "completion_percentage BETWEEN 0 AND 100", name="ck_applications_completion_range",
        ),
        sa.CheckConstraint(
            "status = 'IN_PROGRESS' OR is_locked", name="ck_applications_locked_after_submit",
        ),
        sa.CheckConstraint(
            "status = 'IN_PROGRESS' OR submitted_at IS NOT NULL", name="ck_applications_submitted_at",
        ),
    )
    op.create_index("ix_applications_created_by", "applications", ["created_by"])
    op.create_index("ix_applications_broker_id", "applications", ["broker_id"])

    op.create_table(
        "application_sections",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("section_key", sa.String(50), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("application_id", "section_key", name="uq_app_section"),
    )

    op.create_table(
        "people",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("user_id", sa.String(255), nullable=True, index=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "financial_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("entry_type", sa.String(50), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("institution", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "employment_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("employer", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("employment_status", sa.String(20), nullable=False),
        sa.Column("pay_cadence", sa.String(20), nullable=False, server_default="ANNUAL"),
        sa.Column("annual_income", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_self_employed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_employment_dates",
        ),
    )

    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("filename", sa.String(500), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="UPLOADED"),
        sa.Column("uploaded_by", sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "disclosures",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("disclosure_type", sa.String(50), nullable=False),
        sa.Column("acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_by", sa.String(255), nullable=True),
        sa.UniqueConstraint("application_id", "disclosure_type", name="uq_app_disclosure"),
    )

    op.create_table(
        "rfis",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("section_key", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        sa.Column("assignee_role", sa.String(50), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("resolved_by", sa.String(255), nullable=True),
        *_timestamps(),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "rfi_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "rfi_id", sa.Integer(), sa.ForeignKey("rfis.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("author_id", sa.String(255), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=True),
        sa.Column("author_role", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "decision_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _app_fk(),
        sa.Column("decision", sa.String(20), nullable=False),
        sa.Column("reason_codes", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("conditions", sa.Text(), nullable=True),
        sa.Column("uses_consumer_report", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("adverse_action_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("adverse_action_notice", sa.Text(), nullable=True),
        sa.Column("decided_by", sa.String(255), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("application_id", name="uq_decision_application"),
        sa.CheckConstraint(
            "NOT adverse_action_required OR coalesce(btrim(adverse_action_notice), '') <> ''",
            name="ck_decision_adverse_action_notice",
        ),
    )

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("prev_hash", sa.String(64), nullable=True),
        sa.Column("application_id", sa.Integer(), nullable=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("user_role", sa.String(50), nullable=True),
        sa.Column("action", sa.String(50), nullable=False, index=True),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=True),
    )

    op.execute(TRIGGER_FUNCTION)
    op.execute(TRIGGER_UPDATE)
    op.execute(TRIGGER_DELETE)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS activity_log_no_delete ON activity_log")
    op.execute("DROP TRIGGER IF EXISTS activity_log_no_update ON activity_log")
    op.execute("DROP FUNCTION IF EXISTS activity_log_prevent_mutation()")
    op.drop_table("activity_log")
    op.drop_table("decision_records")
    op.drop_table("rfi_messages")
    op.drop_table("rfis")
    op.drop_table("disclosures")
    op.drop_table("documents")
    op.drop_table("participants")
    op.drop_table("employment_records")
    op.drop_table("financial_entries")
    op.drop_table("people")
    op.drop_table("application_sections")
    op.drop_index("ix_applications_broker_id", table_name="applications")
    op.drop_index("ix_applications_created_by", table_name="applications")
    op.drop_table("applications")
