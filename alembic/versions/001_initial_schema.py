"""Initial schema: origin config, registrations, linkage, purchases, statistics, staging.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "allowed_origins",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", sa.String(100), nullable=False, unique=True),
        sa.Column("origin", sa.Text, nullable=False, server_default=""),
        sa.Column("return_urls", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "application_api_keys",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", sa.String(100), nullable=False, unique=True),
        sa.Column("api_secret", sa.String(200), nullable=False, unique=True),
    )

    op.create_table(
        "user_registrations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("application_id", sa.String(100), nullable=False, index=True),
        sa.Column("frontend_user_id", sa.String(100), nullable=False, index=True),
        sa.Column("wallet_user_id", sa.String(100), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "origin", "application_id", "frontend_user_id", "wallet_user_id",
            name="uq_user_registration",
        ),
    )

    op.create_table(
        "linkage_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("subject_kind", sa.String(20), nullable=False),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("referer", sa.String(500), nullable=False, server_default=""),
        sa.Column("application_id", sa.String(100), nullable=False),
        sa.Column("subject_id", sa.String(100), nullable=False),
        sa.Column("wallet_user_id", sa.String(100), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "subject_kind", "origin", "referer", "application_id", "subject_id",
            name="uq_linkage_scope",
        ),
    )
    op.create_index(
        "ix_linkage_subject", "linkage_records", ["application_id", "subject_id"],
    )

    op.create_table(
        "linkage_payloads",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "linkage_id", UUID(as_uuid=True),
            sa.ForeignKey("linkage_records.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("payload_type", sa.String(30), nullable=False),
        sa.Column("payload_id", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "linkage_id", "payload_type", "payload_id", name="uq_linkage_payload",
        ),
    )

    op.create_table(
        "purchased_vanity_addresses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("application_id", sa.String(100), nullable=False, index=True),
        sa.Column("account", sa.String(64), nullable=False, index=True),
        sa.Column("vanity_address", sa.String(64), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
        sa.UniqueConstraint(
            "origin", "application_id", "account", "vanity_address",
            name="uq_purchased_vanity",
        ),
    )

    op.create_table(
        "statistic_counters",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("application_id", sa.String(100), nullable=False),
        sa.Column("stat_type", sa.String(30), nullable=False, server_default="transactions"),
        sa.Column("stat_key", sa.String(50), nullable=False),
        sa.Column("counter", sa.Integer, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "origin", "application_id", "stat_type", "stat_key",
            name="uq_statistic_counter",
        ),
    )

    op.create_table(
        "saved_search_terms",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", sa.String(100), nullable=False, index=True),
        sa.Column("wallet_user_id", sa.String(100), nullable=False, index=True),
        sa.Column("search_term", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "application_id", "wallet_user_id", "search_term",
            name="uq_saved_search_term",
        ),
    )

    op.create_table(
        "temp_info",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("info_key", sa.String(200), nullable=False, unique=True),
        sa.Column("document", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("temp_info")
    op.drop_table("saved_search_terms")
    op.drop_table("statistic_counters")
    op.drop_table("purchased_vanity_addresses")
    op.drop_table("linkage_payloads")
    op.drop_index("ix_linkage_subject", table_name="linkage_records")
    op.drop_table("linkage_records")
    op.drop_table("user_registrations")
    op.drop_table("application_api_keys")
    op.drop_table("allowed_origins")
