"""push tables

Aboneler, bildirim geçmişi, A/B kampanyaları, otomasyon akışları ve gönderim işaretleri.
Yeni ortamlarda init_db() aynı tabloları create_all ile de oluşturur; bu revizyon
yönetilen veritabanları (Postgres) için.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel  # noqa: F401


revision: str = "0001_push_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "push_subscribers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("endpoint", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("p256dh", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("auth", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_agent", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_push_subscribers_endpoint", "push_subscribers", ["endpoint"], unique=True)
    op.create_index("ix_push_subscribers_created_at", "push_subscribers", ["created_at"])

    op.create_table(
        "push_notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("body", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("total_subscribers", sa.Integer(), nullable=False),
        sa.Column("total_sent", sa.Integer(), nullable=False),
        sa.Column("total_failed", sa.Integer(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_push_notifications_sent_at", "push_notifications", ["sent_at"])

    op.create_table(
        "push_ab_campaigns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("variant_a_title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("variant_a_body", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("variant_a_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("variant_a_percentage", sa.Integer(), nullable=False),
        sa.Column("variant_b_title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("variant_b_body", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("variant_b_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("variant_b_percentage", sa.Integer(), nullable=False),
        sa.Column("status", sa.Enum("DRAFT", "COMPLETED", name="campaignstatus"), nullable=False),
        sa.Column("variant_a_sent", sa.Integer(), nullable=False),
        sa.Column("variant_b_sent", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_push_ab_campaigns_status", "push_ab_campaigns", ["status"])

    op.create_table(
        "push_automation_flows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("trigger_delay_hours", sa.Integer(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("body", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("status", sa.Enum("ACTIVE", "PAUSED", "DELETED", name="flowstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_push_automation_flows_status", "push_automation_flows", ["status"])

    op.create_table(
        "push_automation_sent",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("flow_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["flow_id"], ["push_automation_flows.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("flow_id", "subscriber_id", name="uq_automation_sent_flow_subscriber"),
    )
    op.create_index("ix_push_automation_sent_flow_id", "push_automation_sent", ["flow_id"])
    op.create_index("ix_push_automation_sent_subscriber_id", "push_automation_sent", ["subscriber_id"])


def downgrade() -> None:
    op.drop_table("push_automation_sent")
    op.drop_table("push_automation_flows")
    op.drop_table("push_ab_campaigns")
    op.drop_table("push_notifications")
    op.drop_table("push_subscribers")
    sa.Enum(name="flowstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="campaignstatus").drop(op.get_bind(), checkfirst=True)
