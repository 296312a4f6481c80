"""create rules, rule executions and action target tables

Revision ID: 20261017_01
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rules",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default="info"),
        sa.Column("trigger_type", sa.String(length=32), nullable=False),
        sa.Column("trigger_config", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("conditions", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("cooldown_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("max_fires_per_day", sa.Integer(), nullable=True),
        sa.Column("actions", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("explanation_template", sa.Text(), nullable=True),
        sa.Column("escalation_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("escalation_after_minutes", sa.Integer(), nullable=True),
        sa.Column("escalation_action", sa.JSON(), nullable=True),
        sa.Column("excluded_rooms", sa.JSON(), nullable=True),
        sa.Column("excluded_times", sa.JSON(), nullable=True),
        sa.Column("last_fired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_escalated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("times_fired", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("times_fired_today", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_reset_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rules_user_enabled", "rules", ["user_id", "is_enabled"])
    op.create_index("ix_rules_user_trigger", "rules", ["user_id", "trigger_type"])

    op.create_table(
        "rule_executions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "rule_id",
            sa.String(length=36),
            sa.ForeignKey("rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("triggered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trigger_data", sa.JSON(), nullable=True),
        sa.Column("conditions_evaluated", sa.JSON(), nullable=True),
        sa.Column("all_conditions_met", sa.Boolean(), nullable=False),
        sa.Column("actions_executed", sa.JSON(), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("execution_status", sa.String(length=32), nullable=False, server_default="success"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("is_escalation", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rule_executions_user_time", "rule_executions", ["user_id", "triggered_at"])
    op.create_index("ix_rule_executions_rule_time", "rule_executions", ["rule_id", "triggered_at"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("room", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])

    op.create_table(
        "goals",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("target_value", sa.Float(), nullable=True),
        sa.Column("current_value", sa.Float(), nullable=True, server_default="0"),
        sa.Column("unit", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"])

    op.create_table(
        "user_context",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("current_room", sa.String(length=128), nullable=True),
        sa.Column("current_activity", sa.String(length=128), nullable=True),
        sa.Column("active_task_id", sa.String(length=36), nullable=True),
        sa.Column("idle_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("user_context")
    op.drop_index("ix_goals_user_id", table_name="goals")
    op.drop_table("goals")
    op.drop_index("ix_tasks_user_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_rule_executions_rule_time", table_name="rule_executions")
    op.drop_index("ix_rule_executions_user_time", table_name="rule_executions")
    op.drop_table("rule_executions")
    op.drop_index("ix_rules_user_trigger", table_name="rules")
    op.drop_index("ix_rules_user_enabled", table_name="rules")
    op.drop_table("rules")
