"""Uploads secret code, expiry and comments

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "uploads" not in table_names:
        op.create_table(
            "uploads",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("tags", sa.Text(), nullable=True),
            sa.Column("filename", sa.String(length=255), nullable=False),
            sa.Column("original_name", sa.String(length=255), nullable=False),
            sa.Column("uploader_name", sa.Text(), nullable=False),
            sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("upload_date", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
            sa.Column("secret_code", sa.String(length=16), nullable=True),
            sa.Column("expires_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("filename"),
        )
    else:
        # Databases created before ownership codes and auto-delete existed.
        existing_columns = {column["name"] for column in inspector.get_columns("uploads")}
        with op.batch_alter_table("uploads") as batch_op:
            if "secret_code" not in existing_columns:
                batch_op.add_column(sa.Column("secret_code", sa.String(length=16), nullable=True))
            if "expires_at" not in existing_columns:
                batch_op.add_column(sa.Column("expires_at", sa.DateTime(), nullable=True))

    existing_indexes = {index.get("name") for index in sa.inspect(bind).get_indexes("uploads")}
    if "ix_uploads_upload_date" not in existing_indexes:
        op.create_index("ix_uploads_upload_date", "uploads", ["upload_date"], unique=False)
    if "ix_uploads_expires_at" not in existing_indexes:
        op.create_index("ix_uploads_expires_at", "uploads", ["expires_at"], unique=False)

    if "comments" not in table_names:
        op.create_table(
            "comments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("upload_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=True),
            sa.Column("comment", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
            sa.ForeignKeyConstraint(["upload_id"], ["uploads.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_comments_upload_id", "comments", ["upload_id"], unique=False)


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())

    if "comments" in table_names:
        op.drop_index("ix_comments_upload_id", table_name="comments")
        op.drop_table("comments")

    if "uploads" in table_names:
        existing_indexes = {index.get("name") for index in inspector.get_indexes("uploads")}
        for index_name in ("ix_uploads_expires_at", "ix_uploads_upload_date"):
            if index_name in existing_indexes:
                op.drop_index(index_name, table_name="uploads")
        existing_columns = {column["name"] for column in inspector.get_columns("uploads")}
        with op.batch_alter_table("uploads") as batch_op:
            for column_name in ("expires_at", "secret_code"):
                if column_name in existing_columns:
                    batch_op.drop_column(column_name)
