"""initialize database: conversations, message_events, channel_instances

Revision ID: initialize_database
Revises:
Create Date: 2026-10-19 09:00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "initialize_database"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: conversation state, ledger and channel credentials."""
    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_key", sa.String(64), nullable=False),
        sa.Column("state", sa.String(32), nullable=False),
        sa.Column("patient_display_name", sa.String(255), nullable=True),
        sa.Column("channel_instance_id", sa.String(64), nullable=True),
        sa.Column(
            "last_activity_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_conversations_conversation_key",
        "conversations",
        ["conversation_key"],
        unique=True,
    )
    op.create_index(
        "ix_conversations_last_activity_at",
        "conversations",
        ["last_activity_at"],
        unique=False,
    )

    op.create_table(
        "message_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("conversation_key", sa.String(64), nullable=False),
        sa.Column("channel_instance_id", sa.String(64), nullable=True),
        sa.Column("patient_display_name", sa.String(255), nullable=True),
        sa.Column("patient_text", sa.Text(), nullable=True),
        sa.Column("assistant_text", sa.Text(), nullable=True),
        sa.Column("agent_text", sa.Text(), nullable=True),
        sa.Column("sender", sa.String(16), nullable=False),
        sa.Column("state_at_event", sa.String(32), nullable=False),
        sa.Column("platform_message_id", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(CASE WHEN patient_text IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN assistant_text IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN agent_text IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_message_events_one_payload",
        ),
    )
    op.create_index(
        "ix_message_events_conversation_key_created",
        "message_events",
        ["conversation_key", "created_at", "id"],
        unique=False,
    )
    op.create_index(
        "ix_message_events_channel_instance_id",
        "message_events",
        ["channel_instance_id"],
        unique=False,
    )

    op.create_table(
        "channel_instances",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("encrypted_token", sa.LargeBinary(), nullable=True),
        sa.Column("source_number", sa.String(32), nullable=True),
        sa.Column("app_name", sa.String(128), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("channel_instances")
    op.drop_index(
        "ix_message_events_channel_instance_id", table_name="message_events"
    )
    op.drop_index(
        "ix_message_events_conversation_key_created", table_name="message_events"
    )
    op.drop_table("message_events")
    op.drop_index("ix_conversations_last_activity_at", table_name="conversations")
    op.drop_index("ix_conversations_conversation_key", table_name="conversations")
    op.drop_table("conversations")
