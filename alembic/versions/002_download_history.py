"""
alembic/versions/002_download_history.py

Per-user download history, appended by POST /records/{bucket}/{id}/downloads
when the caller is signed in. Title/subject/level are copied so the history
still reads sensibly after the item is removed.

To apply: alembic upgrade head
To revert: alembic downgrade -1
"""
from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "download_history",
        sa.Column("id",           sa.UUID(), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id",      sa.UUID(), nullable=False),
        sa.Column("item_id",      sa.UUID(), nullable=False),
        sa.Column("item_type",    sa.Text(), nullable=False),
        sa.Column("item_title",   sa.Text(), nullable=True),
        sa.Column("item_subject", sa.Text(), nullable=True),
        sa.Column("item_level",   sa.Text(), nullable=True),
        sa.Column("created_at",   sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint("item_type IN ('paper', 'note')", name="ck_download_history_type"),
    )
    op.create_index("idx_download_history_user", "download_history", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_table("download_history")
