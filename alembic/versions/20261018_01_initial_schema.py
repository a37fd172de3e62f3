"""Temp-file registry and image allocations."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "temp_file",
        sa.Column("path", sa.String(length=512), primary_key=True),
        sa.Column(
            "tracked_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_table(
        "image_alloc",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("fingerprint", sa.String(length=64), nullable=False),
        sa.Column("md5", sa.String(length=32)),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_image_alloc_fingerprint", "image_alloc", ["fingerprint"])


def downgrade() -> None:
    op.drop_index("ix_image_alloc_fingerprint", table_name="image_alloc")
    op.drop_table("image_alloc")
    op.drop_table("temp_file")
