"""
001_initial_schema.py — Initial database schema.

Creates:
  - papers, notes   (one table per resource kind, same shape)
  - user_roles      (admin flag for moderation)

`file_path` is written once on upload; nothing updates it afterwards.
Downgrade drops all tables.
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None       # first migration
branch_labels = None
depends_on = None


def _resource_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id",          sa.UUID(),    primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id",     sa.UUID(),    nullable=False),
        sa.Column("title",       sa.Text(),    nullable=False),
        sa.Column("description", sa.Text(),    nullable=True),
        sa.Column("subject",     sa.Text(),    nullable=False),
        sa.Column("level",       sa.Text(),    nullable=False),
        sa.Column("file_path",   sa.Text(),    nullable=False),
        sa.Column("file_size",   sa.BigInteger(), nullable=True),
        sa.Column("status",      sa.Text(),    nullable=False, server_default="pending"),
        sa.Column("downloads",   sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at",  sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at",  sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name=f"ck_{name}_status"),
        sa.CheckConstraint("downloads >= 0", name=f"ck_{name}_downloads"),
    )
    op.create_index(f"idx_{name}_user",   name, ["user_id"])
    op.create_index(f"idx_{name}_status", name, ["status"])


def upgrade() -> None:
    # ── pgcrypto for gen_random_uuid() ────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    _resource_table("papers")
    _resource_table("notes")

    # ── user_roles ────────────────────────────────────────────────────────────
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("role",    sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "role"),
    )


def downgrade() -> None:
    op.drop_table("user_roles")
    op.drop_table("notes")
    op.drop_table("papers")
