"""
SQLAlchemy models for SEALANE database.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    Index,
    JSON,
    text,
)
from datetime import datetime, timezone

from api.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SearouteSegment(Base):
    """
    One saved version of a route between two ports.

    Rows are append-only: a save inserts a new version and flips the previous
    active row to inactive in the same transaction.
    """

    __tablename__ = "searoute_segments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    segment_id = Column(String(255), nullable=False, index=True)

    origin_port_id = Column(String(100), nullable=False)
    origin_port_code = Column(String(50), nullable=False, default="")
    origin_port_name = Column(String(255), nullable=False)
    origin_port_latitude = Column(Float, nullable=False)
    origin_port_longitude = Column(Float, nullable=False)

    destination_port_id = Column(String(100), nullable=False)
    destination_port_code = Column(String(50), nullable=False, default="")
    destination_port_name = Column(String(255), nullable=False)
    destination_port_latitude = Column(Float, nullable=False)
    destination_port_longitude = Column(Float, nullable=False)

    route_coordinates = Column(JSON, nullable=False)  # [[lat, lng], ...]
    route_coordinates_count = Column(Integer, nullable=False)
    route_type = Column(String(20), nullable=False)
    distance_nautical_miles = Column(Float, nullable=False)
    distance_kilometers = Column(Float, nullable=False)

    created_by = Column(String(255), nullable=False, default="system")
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    extra_metadata = Column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("ix_searoute_segments_segment_version", "segment_id", "version", unique=True),
        Index("ix_searoute_segments_ports", "origin_port_id", "destination_port_id"),
        Index(
            "uq_searoute_segments_active",
            "segment_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self):
        return (
            f"<SearouteSegment(segment_id='{self.segment_id}', version={self.version}, "
            f"active={self.is_active})>"
        )


class Port(Base):
    """Port catalog entry (reference data, read-only for the core)."""

    __tablename__ = "ports"

    port_id = Column(String(100), primary_key=True)
    port_code = Column(String(50), nullable=True)
    port_name = Column(String(255), nullable=False, index=True)
    port_country_code = Column(String(10), nullable=True)
    port_country_name = Column(String(255), nullable=True)
    port_state_code = Column(String(50), nullable=True)
    port_state_name = Column(String(255), nullable=True)
    port_latitude = Column(Float, nullable=False)
    port_longitude = Column(Float, nullable=False)
    port_status = Column(Boolean, nullable=False, default=True, index=True)

    def to_dict(self) -> dict:
        return {
            "port_id": self.port_id,
            "port_code": self.port_code,
            "port_name": self.port_name,
            "port_country_code": self.port_country_code,
            "port_country_name": self.port_country_name,
            "port_state_code": self.port_state_code,
            "port_state_name": self.port_state_name,
            "port_latitude": self.port_latitude,
            "port_longitude": self.port_longitude,
        }

    def __repr__(self):
        return f"<Port(port_id='{self.port_id}', name='{self.port_name}')>"
