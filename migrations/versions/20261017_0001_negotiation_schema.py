"""negotiation schema: profiles, projects, bids, contracts, notifications, messages

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None

ACCEPTED_ONLY = sa.text("status = 'Accepted'")
ACTIVE_ONLY = sa.text("status IN ('Pending', 'Countered', 'Accepted')")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "freelancers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    # contract_id gets its foreign key once contracts exists.
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("freelancer_id", sa.Integer(), nullable=True),
        sa.Column("contract_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=False),
        sa.Column("deadline", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="Open"),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"]),
        sa.ForeignKeyConstraint(["freelancer_id"], ["freelancers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_projects_status", "projects", ["status"])
    op.create_index("idx_projects_client", "projects", ["client_id"])

    op.create_table(
        "bids",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("freelancer_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("delivery_time", sa.Integer(), nullable=False),
        sa.Column("proposal", sa.Text(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="Pending"),
        sa.Column("counter_amount", sa.Float(), nullable=True),
        sa.Column("counter_delivery_time", sa.Integer(), nullable=True),
        sa.Column("counter_message", sa.Text(), nullable=True),
        sa.Column("counter_date", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("milestones", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["freelancer_id"], ["freelancers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_bids_project", "bids", ["project_id"])
    op.create_index("idx_bids_freelancer", "bids", ["freelancer_id"])
    op.create_index("idx_bids_status", "bids", ["status"])
    op.create_index(
        "uq_bids_project_accepted",
        "bids",
        ["project_id"],
        unique=True,
        sqlite_where=ACCEPTED_ONLY,
        postgresql_where=ACCEPTED_ONLY,
    )
    op.create_index(
        "uq_bids_project_freelancer_active",
        "bids",
        ["project_id", "freelancer_id"],
        unique=True,
        sqlite_where=ACTIVE_ONLY,
        postgresql_where=ACTIVE_ONLY,
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("freelancer_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("terms", sa.Text(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_terms", sa.Text(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("deliverables", sa.JSON(), nullable=True),
        sa.Column("client_signed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_signed_at", sa.DateTime(), nullable=True),
        sa.Column("client_signed_ip", sa.String(), nullable=True),
        sa.Column("freelancer_signed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("freelancer_signed_at", sa.DateTime(), nullable=True),
        sa.Column("freelancer_signed_ip", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="Draft"),
        sa.Column("termination_reason", sa.Text(), nullable=True),
        sa.Column("termination_date", sa.DateTime(), nullable=True),
        sa.Column("content_hash", sa.String(), nullable=True),
        sa.Column("versions", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"]),
        sa.ForeignKeyConstraint(["freelancer_id"], ["freelancers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", name="uq_contracts_project_id"),
    )
    op.create_index("idx_contracts_status", "contracts", ["status"])

    with op.batch_alter_table("projects") as batch_op:
        batch_op.create_foreign_key("fk_projects_contract_id", "contracts", ["contract_id"], ["id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_messages_pair", "messages", ["sender_id", "receiver_id"])
    op.create_index("idx_messages_project", "messages", ["project_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("bid_id", sa.Integer(), nullable=True),
        sa.Column("contract_id", sa.Integer(), nullable=True),
        sa.Column("action_link", sa.String(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("email_delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sms_delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["bid_id"], ["bids.id"]),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notifications_recipient_read", "notifications", ["recipient_id", "read"])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("in_app_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sms_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("disabled_in_app_types", sa.JSON(), nullable=True),
        sa.Column("disabled_email_types", sa.JSON(), nullable=True),
        sa.Column("enabled_sms_types", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_index("idx_notifications_recipient_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_messages_project", table_name="messages")
    op.drop_index("idx_messages_pair", table_name="messages")
    op.drop_table("messages")
    with op.batch_alter_table("projects") as batch_op:
        batch_op.drop_constraint("fk_projects_contract_id", type_="foreignkey")
    op.drop_index("idx_contracts_status", table_name="contracts")
    op.drop_table("contracts")
    op.drop_index("uq_bids_project_freelancer_active", table_name="bids")
    op.drop_index("uq_bids_project_accepted", table_name="bids")
    op.drop_index("idx_bids_status", table_name="bids")
    op.drop_index("idx_bids_freelancer", table_name="bids")
    op.drop_index("idx_bids_project", table_name="bids")
    op.drop_table("bids")
    op.drop_index("idx_projects_client", table_name="projects")
    op.drop_index("idx_projects_status", table_name="projects")
    op.drop_table("projects")
    op.drop_table("freelancers")
    op.drop_table("clients")
    op.drop_table("users")
