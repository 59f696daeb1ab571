"""create folders and notes

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "folders",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_folders_owner_id", "folders", ["owner_id"])

    op.create_table(
        "notes",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("owner_id", sa.String(255), nullable=False),
        sa.Column(
            "folder_id",
            sa.UUID(as_uuid=True),
            sa.ForeignKey("folders.uuid", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notes_owner_id", "notes", ["owner_id"])
    op.create_index("ix_notes_folder_id", "notes", ["folder_id"])
    op.create_index("ix_notes_owner_id_updated_at", "notes", ["owner_id", "updated_at"])


def downgrade():
    op.drop_index("ix_notes_owner_id_updated_at", table_name="notes")
    op.drop_index("ix_notes_folder_id", table_name="notes")
    op.drop_index("ix_notes_owner_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_folders_owner_id", table_name="folders")
    op.drop_table("folders")
