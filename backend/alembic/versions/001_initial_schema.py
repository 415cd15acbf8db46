"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

This migration creates the complete EstateDesk database schema:
- Extensions: uuid-ossp
- Enums: user_role, sender_type, delivery_status
- Tables: users, contacts, investment_calculations, investor_questionnaires,
  videos, video_feedbacks, ai_messages
- Triggers: updated_at auto-update function and triggers
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UPDATED_AT_TABLES = [
    "users",
    "contacts",
    "investment_calculations",
    "investor_questionnaires",
    "videos",
    "video_feedbacks",
]


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    ]


def upgrade() -> None:
    # ==========================================================================
    # EXTENSIONS
    # ==========================================================================
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ==========================================================================
    # ENUMS
    # ==========================================================================
    postgresql.ENUM("USER", "ADMIN", name="user_role").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM("AI", "USER", name="sender_type").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM(
        "PENDING", "DELIVERED", "FAILED", "SKIPPED",
        name="delivery_status",
    ).create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("role", postgresql.ENUM(name="user_role", create_type=False), nullable=False, server_default="USER"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # ==========================================================================
    # CONTACTS TABLE
    # ==========================================================================
    op.create_table(
        "contacts",
        _uuid_pk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("pipeline_stage", sa.String(100), nullable=True),
        sa.Column("pin", sa.String(20), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_contacts_created_by", "contacts", ["created_by"])
    op.create_index("idx_contacts_owner_phone", "contacts", ["created_by", "phone_number"])

    # ==========================================================================
    # INVESTMENT_CALCULATIONS TABLE
    # ==========================================================================
    op.create_table(
        "investment_calculations",
        _uuid_pk(),
        sa.Column("property_type", sa.String(255), nullable=True),
        sa.Column("market_area", sa.String(255), nullable=True),
        sa.Column("investment_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("hold_period", sa.Integer(), nullable=True),
        sa.Column("annual_return_rate", sa.Float(), nullable=True),
        sa.Column("property_management_fee", sa.Float(), nullable=True),
        sa.Column("vacancy_rate", sa.Float(), nullable=True),
        sa.Column("monthly_cash_flow", sa.Numeric(14, 2), nullable=True),
        sa.Column("annual_cash_flow", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_return", sa.Numeric(14, 2), nullable=True),
        sa.Column("roi", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_calculations_created_by", "investment_calculations", ["created_by"])
    op.create_index("idx_calculations_contact", "investment_calculations", ["contact_id"])

    # ==========================================================================
    # INVESTOR_QUESTIONNAIRES TABLE
    # ==========================================================================
    op.create_table(
        "investor_questionnaires",
        _uuid_pk(),
        sa.Column("is_accredited_investor", sa.Boolean(), nullable=True),
        sa.Column("has_invested_before", sa.Boolean(), nullable=True),
        sa.Column("looking_timeframe", sa.String(255), nullable=True),
        sa.Column("primary_investment_goal", sa.String(255), nullable=True),
        sa.Column("investment_timeline", sa.String(255), nullable=True),
        sa.Column("capital_to_invest", sa.String(255), nullable=True),
        sa.Column("use_financing", sa.Boolean(), nullable=True),
        sa.Column("markets_interested", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("property_types_interested", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("investment_timeframe", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_questionnaires_created_by", "investor_questionnaires", ["created_by"])
    op.create_index("idx_questionnaires_contact", "investor_questionnaires", ["contact_id"])

    # ==========================================================================
    # VIDEOS TABLE
    # ==========================================================================
    op.create_table(
        "videos",
        _uuid_pk(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_videos_created_by", "videos", ["created_by"])

    # ==========================================================================
    # VIDEO_FEEDBACKS TABLE
    # ==========================================================================
    op.create_table(
        "video_feedbacks",
        _uuid_pk(),
        sa.Column("video_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("responses", postgresql.JSONB(), nullable=False),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        # Videos with feedback cannot be deleted
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_video_feedbacks_video", "video_feedbacks", ["video_id"])
    op.create_index("idx_video_feedbacks_contact", "video_feedbacks", ["contact_id"])

    # ==========================================================================
    # AI_MESSAGES TABLE
    # ==========================================================================
    op.create_table(
        "ai_messages",
        _uuid_pk(),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("sender_type", postgresql.ENUM(name="sender_type", create_type=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("delivery_status", postgresql.ENUM(name="delivery_status", create_type=False), nullable=True),
        sa.Column("delivery_attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_delivery_error", sa.Text(), nullable=True),
        sa.Column("next_attempt_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("delivered_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_ai_messages_conversation", "ai_messages", ["user_id", "contact_id", "created_at"])
    op.create_index("idx_ai_messages_delivery", "ai_messages", ["delivery_status", "next_attempt_at"])

    # ==========================================================================
    # UPDATED_AT TRIGGER FUNCTION
    # ==========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in UPDATED_AT_TABLES:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in UPDATED_AT_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    # Drop tables in reverse dependency order
    op.drop_table("ai_messages")
    op.drop_table("video_feedbacks")
    op.drop_table("videos")
    op.drop_table("investor_questionnaires")
    op.drop_table("investment_calculations")
    op.drop_table("contacts")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS delivery_status")
    op.execute("DROP TYPE IF EXISTS sender_type")
    op.execute("DROP TYPE IF EXISTS user_role")
