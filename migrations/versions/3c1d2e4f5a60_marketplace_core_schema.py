"""marketplace core schema

Revision ID: 3c1d2e4f5a60
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3c1d2e4f5a60"
down_revision = None
branch_labels = None
depends_on = None


def _create_indexes(table_name: str, indexes) -> None:
    for name, columns, unique in indexes:
        op.create_index(name, table_name, columns, unique=unique)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("username", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=64), nullable=True),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="USER"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "users",
        (
            ("ix_users_email", ["email"], True),
            ("ix_users_username", ["username"], True),
            ("ix_users_role", ["role"], False),
        ),
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("size", sa.String(length=50), nullable=True),
        sa.Column("brand", sa.String(length=100), nullable=True),
        sa.Column("condition", sa.String(length=16), nullable=False),
        sa.Column("images", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "listings",
        (
            ("ix_listings_user_id", ["user_id"], False),
            ("ix_listings_category", ["category"], False),
            ("ix_listings_size", ["size"], False),
            ("ix_listings_status", ["status"], False),
            ("ix_listings_created_at", ["created_at"], False),
        ),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("buyer_id", sa.Integer(), nullable=False),
        sa.Column("seller_id", sa.Integer(), nullable=False),
        sa.Column("shipping_method", sa.String(length=16), nullable=False),
        sa.Column("shipping_address", sa.String(length=500), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("payment_status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.ForeignKeyConstraint(["buyer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["seller_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "orders",
        (
            ("ix_orders_listing_id", ["listing_id"], False),
            ("ix_orders_buyer_id", ["buyer_id"], False),
            ("ix_orders_seller_id", ["seller_id"], False),
            ("ix_orders_status", ["status"], False),
            ("ix_orders_payment_status", ["payment_status"], False),
            ("ix_orders_created_at", ["created_at"], False),
        ),
    )

    op.create_table(
        "order_transitions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("from_status", sa.String(length=16), nullable=False),
        sa.Column("to_status", sa.String(length=16), nullable=False),
        sa.Column("from_payment_status", sa.String(length=16), nullable=False),
        sa.Column("to_payment_status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_transitions_order_id", "order_transitions", ["order_id"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("reviewer_id", sa.Integer(), nullable=False),
        sa.Column("reviewee_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["reviewer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewee_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "reviews",
        (
            ("ix_reviews_order_id", ["order_id"], True),
            ("ix_reviews_reviewer_id", ["reviewer_id"], False),
            ("ix_reviews_reviewee_id", ["reviewee_id"], False),
            ("ix_reviews_created_at", ["created_at"], False),
        ),
    )

    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "conversations",
        (
            ("ix_conversations_listing_id", ["listing_id"], False),
            ("ix_conversations_updated_at", ["updated_at"], False),
        ),
    )

    op.create_table(
        "conversation_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
    )
    _create_indexes(
        "conversation_participants",
        (
            ("ix_conversation_participants_conversation_id", ["conversation_id"], False),
            ("ix_conversation_participants_user_id", ["user_id"], False),
        ),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "messages",
        (
            ("ix_messages_conversation_id", ["conversation_id"], False),
            ("ix_messages_sender_id", ["sender_id"], False),
            ("ix_messages_created_at", ["created_at"], False),
        ),
    )

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    _create_indexes(
        "password_reset_tokens",
        (
            ("ix_password_reset_tokens_user_id", ["user_id"], False),
            ("ix_password_reset_tokens_token_hash", ["token_hash"], True),
            ("ix_password_reset_tokens_expires_at", ["expires_at"], False),
        ),
    )


def downgrade() -> None:
    for table_name in (
        "password_reset_tokens",
        "messages",
        "conversation_participants",
        "conversations",
        "reviews",
        "order_transitions",
        "orders",
        "listings",
        "users",
    ):
        op.drop_table(table_name)
