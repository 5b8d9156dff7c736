"""Route segment versions and port catalog.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Adds searoute_segments (one row per saved version, at most one active row
per segment) and the read-only ports catalog.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "searoute_segments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("segment_id", sa.String(255), nullable=False),
        # Origin port snapshot
        sa.Column("origin_port_id", sa.String(100), nullable=False),
        sa.Column("origin_port_code", sa.String(50), nullable=False, server_default=""),
        sa.Column("origin_port_name", sa.String(255), nullable=False),
        sa.Column("origin_port_latitude", sa.Float(), nullable=False),
        sa.Column("origin_port_longitude", sa.Float(), nullable=False),
        # Destination port snapshot
        sa.Column("destination_port_id", sa.String(100), nullable=False),
        sa.Column("destination_port_code", sa.String(50), nullable=False, server_default=""),
        sa.Column("destination_port_name", sa.String(255), nullable=False),
        sa.Column("destination_port_latitude", sa.Float(), nullable=False),
        sa.Column("destination_port_longitude", sa.Float(), nullable=False),
        # Geometry
        sa.Column("route_coordinates", sa.JSON(), nullable=False),
        sa.Column("route_coordinates_count", sa.Integer(), nullable=False),
        sa.Column("route_type", sa.String(20), nullable=False),
        sa.Column("distance_nautical_miles", sa.Float(), nullable=False),
        sa.Column("distance_kilometers", sa.Float(), nullable=False),
        # Versioning
        sa.Column("created_by", sa.String(255), nullable=False, server_default="system"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
    )

    op.create_index("ix_searoute_segments_segment_id", "searoute_segments", ["segment_id"])
    op.create_index(
        "ix_searoute_segments_segment_version", "searoute_segments",
        ["segment_id", "version"], unique=True,
    )
    op.create_index(
        "ix_searoute_segments_ports", "searoute_segments",
        ["origin_port_id", "destination_port_id"],
    )
    op.create_index(
        "uq_searoute_segments_active", "searoute_segments", ["segment_id"],
        unique=True,
        sqlite_where=sa.text("is_active = 1"),
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "ports",
        sa.Column("port_id", sa.String(100), primary_key=True),
        sa.Column("port_code", sa.String(50), nullable=True),
        sa.Column("port_name", sa.String(255), nullable=False),
        sa.Column("port_country_code", sa.String(10), nullable=True),
        sa.Column("port_country_name", sa.String(255), nullable=True),
        sa.Column("port_state_code", sa.String(50), nullable=True),
        sa.Column("port_state_name", sa.String(255), nullable=True),
        sa.Column("port_latitude", sa.Float(), nullable=False),
        sa.Column("port_longitude", sa.Float(), nullable=False),
        sa.Column("port_status", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_index("ix_ports_port_name", "ports", ["port_name"])
    op.create_index("ix_ports_port_status", "ports", ["port_status"])


def downgrade() -> None:
    op.drop_index("ix_ports_port_status", table_name="ports")
    op.drop_index("ix_ports_port_name", table_name="ports")
    op.drop_table("ports")
    op.drop_index("uq_searoute_segments_active", table_name="searoute_segments")
    op.drop_index("ix_searoute_segments_ports", table_name="searoute_segments")
    op.drop_index("ix_searoute_segments_segment_version", table_name="searoute_segments")
    op.drop_index("ix_searoute_segments_segment_id", table_name="searoute_segments")
    op.drop_table("searoute_segments")
