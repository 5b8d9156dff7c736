"""
Versioned persistence for saved route segments.

Every save appends a new row for the segment and deactivates the previous
active one inside a single transaction:

1. read the active row (createdAt fallback)
2. read max(version) over all rows, active or not
3. read the first-ever row (authoritative createdAt)
4. resolve createdAt
5. deactivate the active row
6. insert the new active row with version = max + 1

createdAt resolution order: caller-supplied metadata.createdAt, first
version's column, first version's metadata.createdAt, active version's
column then metadata, and finally the save time. updatedAt is always the
save time.

A partial unique index on (segment_id) WHERE is_active backs the
"one active row" rule at the database level. Reads still reconcile a
segment with history but no active row by taking the highest version.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models import SearouteSegment, utcnow
from src.errors import InputError, PersistenceError
from src.routes.geodesy import Distance, total_distance, validate_coordinate

logger = logging.getLogger(__name__)


class RouteType(str, Enum):
    GENERATED = "generated"
    MANUAL = "manual"
    EDITED = "edited"


@dataclass(frozen=True)
class PortSnapshot:
    """Port details copied into the segment row at save time."""
    id: str
    name: str
    lat: float
    lng: float
    code: Optional[str] = None

    def to_dict(self) -> dict:
        return {"code": self.code or "", "name": self.name, "lat": self.lat, "lng": self.lng}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored or caller-supplied timestamp to naive UTC.

    Accepts datetimes, ISO-8601 strings (with or without 'Z') and
    'YYYY-MM-DD HH:MM:SS'. Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with 'Z' suffix."""
    return value.isoformat() + "Z"


@dataclass(frozen=True)
class SegmentCandidate:
    """
    A validated segment ready to be written.

    Build with SegmentCandidate.create(); instances are immutable so a failed
    save can be retried with exactly the same input.
    """
    origin_port_id: str
    destination_port_id: str
    origin_port: PortSnapshot
    destination_port: PortSnapshot
    route_coordinates: Tuple[Tuple[float, float], ...]
    route_type: RouteType
    distance: Distance
    created_by: str = "system"
    created_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def segment_id(self) -> str:
        return f"{self.origin_port_id}-{self.destination_port_id}"

    @classmethod
    def create(
        cls,
        origin_port_id: str,
        destination_port_id: str,
        origin_port: Any,
        destination_port: Any,
        route_coordinates: Optional[Sequence[Sequence[float]]],
        route_type: Any = RouteType.MANUAL,
        created_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "SegmentCandidate":
        """
        Validate raw save input.

        Raises:
            InputError: naming the first violated field
        """
        if not origin_port_id:
            raise InputError("Origin port ID is required", field="originPortId")
        if not destination_port_id:
            raise InputError("Destination port ID is required", field="destinationPortId")
        if origin_port_id == destination_port_id:
            raise InputError(
                "Origin and destination ports cannot be the same", field="destinationPortId"
            )

        origin = _port_snapshot(origin_port, origin_port_id, "originPort")
        destination = _port_snapshot(destination_port, destination_port_id, "destinationPort")

        if not route_coordinates or len(route_coordinates) < 2:
            raise InputError("At least 2 route coordinates are required", field="routeCoordinates")
        coords = []
        for i, point in enumerate(route_coordinates):
            try:
                lat, lng = float(point[0]), float(point[1])
            except (TypeError, ValueError, IndexError):
                raise InputError(f"Coordinate {i} is not a [lat, lng] pair", field="routeCoordinates")
            validate_coordinate(lat, lng, field="routeCoordinates")
            coords.append((lat, lng))

        try:
            kind = RouteType(route_type)
        except ValueError:
            raise InputError(f"Unknown route type: {route_type}", field="routeType")

        metadata = dict(metadata or {})
        created_at = None
        if metadata.get("createdAt"):
            created_at = parse_timestamp(metadata["createdAt"])
            if created_at is None:
                raise InputError("metadata.createdAt is not a valid timestamp", field="metadata.createdAt")

        return cls(
            origin_port_id=str(origin_port_id),
            destination_port_id=str(destination_port_id),
            origin_port=origin,
            destination_port=destination,
            route_coordinates=tuple(coords),
            route_type=kind,
            distance=total_distance(coords),
            created_by=created_by or "system",
            created_at=created_at,
            metadata=metadata,
        )


def _port_snapshot(value: Any, port_id: str, field_name: str) -> PortSnapshot:
    if isinstance(value, PortSnapshot):
        return value
    if not value:
        raise InputError(f"{field_name} is required", field=field_name)
    if not isinstance(value, dict):
        raise InputError(f"{field_name} must be an object", field=field_name)
    try:
        lat = float(value["lat"])
        lng = float(value["lng"])
        name = value["name"]
    except (KeyError, TypeError, ValueError):
        raise InputError(f"{field_name} needs name, lat and lng", field=field_name)
    validate_coordinate(lat, lng, field=field_name)
    return PortSnapshot(id=str(value.get("id") or port_id), name=name, lat=lat, lng=lng,
                        code=value.get("code"))


@dataclass(frozen=True)
class SaveResult:
    segment_id: str
    version: int
    created_at: datetime
    updated_at: datetime


def _metadata_created_at(row: Optional[SearouteSegment]) -> Optional[datetime]:
    if row is None or not isinstance(row.extra_metadata, dict):
        return None
    return parse_timestamp(row.extra_metadata.get("createdAt"))


def resolve_created_at(
    requested: Optional[datetime],
    first: Optional[SearouteSegment],
    active: Optional[SearouteSegment],
    now: datetime,
) -> datetime:
    """Apply the createdAt precedence rules for a new version."""
    if requested is not None:
        return requested
    if first is not None:
        original = parse_timestamp(first.created_at) or _metadata_created_at(first)
        if original is not None:
            return original
    if active is not None:
        fallback = parse_timestamp(active.created_at) or _metadata_created_at(active)
        if fallback is not None:
            return fallback
    return now


class SegmentVersionStore:
    """
    Append-only version store over the searoute_segments table.

    Usage:
        store = SegmentVersionStore(db, cache=get_route_cache())
        candidate = SegmentCandidate.create(...)
        result = store.save(candidate)
        print(result.version, result.created_at)
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[Any] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.cache = cache
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _query(self, segment_id: str):
        return self.db.query(SearouteSegment).filter(SearouteSegment.segment_id == segment_id)

    def _active_row(self, segment_id: str) -> Optional[SearouteSegment]:
        return (
            self._query(segment_id)
            .filter(SearouteSegment.is_active.is_(True))
            .order_by(SearouteSegment.updated_at.desc())
            .first()
        )

    def max_version(self, segment_id: str) -> int:
        value = (
            self.db.query(func.max(SearouteSegment.version))
            .filter(SearouteSegment.segment_id == segment_id)
            .scalar()
        )
        return int(value or 0)

    def first_version(self, segment_id: str) -> Optional[SearouteSegment]:
        return self._query(segment_id).order_by(SearouteSegment.version.asc()).first()

    def get_active(self, segment_id: str) -> Optional[SearouteSegment]:
        """
        The authoritative version of a segment.

        With no active row but existing history, the highest version (then
        latest updated_at) wins.
        """
        active = self._active_row(segment_id)
        if active is not None:
            return active

        latest = (
            self._query(segment_id)
            .order_by(SearouteSegment.version.desc(), SearouteSegment.updated_at.desc())
            .first()
        )
        if latest is not None:
            logger.warning(
                f"Segment {segment_id} has no active version; using version {latest.version}"
            )
        return latest

    def get_by_ports(self, origin_port_id: str, destination_port_id: str) -> Optional[SearouteSegment]:
        return self.get_active(f"{origin_port_id}-{destination_port_id}")

    def history(self, segment_id: str) -> List[SearouteSegment]:
        """All versions, newest first."""
        return self._query(segment_id).order_by(SearouteSegment.version.desc()).all()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, candidate: SegmentCandidate, segment_id: Optional[str] = None) -> SaveResult:
        """
        Persist a candidate as the new active version.

        Raises:
            InputError: segment_id does not match the candidate's ports
            PersistenceError: the write failed; the previous active version
                is untouched
        """
        if segment_id is not None and segment_id != candidate.segment_id:
            raise InputError(
                f"Segment id {segment_id} does not match ports {candidate.segment_id}",
                field="segmentId",
            )
        segment_id = candidate.segment_id
        now = self.clock()

        try:
            active = self._active_row(segment_id)
            version = self.max_version(segment_id) + 1
            first = self.first_version(segment_id)
            created_at = resolve_created_at(candidate.created_at, first, active, now)

            if active is not None:
                (
                    self._query(segment_id)
                    .filter(SearouteSegment.is_active.is_(True))
                    .update({SearouteSegment.is_active: False}, synchronize_session=False)
                )

            metadata = dict(candidate.metadata)
            metadata["createdAt"] = format_timestamp(created_at)
            metadata["savedAt"] = format_timestamp(now)

            row = SearouteSegment(
                segment_id=segment_id,
                origin_port_id=candidate.origin_port_id,
                origin_port_code=candidate.origin_port.code or "",
                origin_port_name=candidate.origin_port.name,
                origin_port_latitude=candidate.origin_port.lat,
                origin_port_longitude=candidate.origin_port.lng,
                destination_port_id=candidate.destination_port_id,
                destination_port_code=candidate.destination_port.code or "",
                destination_port_name=candidate.destination_port.name,
                destination_port_latitude=candidate.destination_port.lat,
                destination_port_longitude=candidate.destination_port.lng,
                route_coordinates=[list(c) for c in candidate.route_coordinates],
                route_coordinates_count=len(candidate.route_coordinates),
                route_type=candidate.route_type.value,
                distance_nautical_miles=candidate.distance.nautical_miles,
                distance_kilometers=candidate.distance.kilometers,
                created_by=candidate.created_by,
                is_active=True,
                version=version,
                created_at=created_at,
                updated_at=now,
                extra_metadata=metadata,
            )
            self.db.add(row)
            self.db.flush()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save segment {segment_id}: {e}")
            raise PersistenceError(str(e)) from e

        logger.info(f"Saved segment {segment_id} version {version}")

        if self.cache is not None:
            try:
                self.cache.invalidate_segment(segment_id)
            except Exception as e:
                logger.warning(f"Cache invalidation failed for segment {segment_id}, save kept: {e}")

        return SaveResult(segment_id=segment_id, version=version, created_at=created_at, updated_at=now)

    def retry(self, candidate: SegmentCandidate) -> SaveResult:
        """Save a previously validated candidate again after a PersistenceError."""
        logger.info(f"Retrying save for segment {candidate.segment_id}")
        return self.save(candidate)


def serialize_segment(row: SearouteSegment) -> dict:
    """Row to the API's segment shape."""
    return {
        "segmentId": row.segment_id,
        "originPortId": row.origin_port_id,
        "destinationPortId": row.destination_port_id,
        "originPort": {
            "code": row.origin_port_code,
            "name": row.origin_port_name,
            "lat": row.origin_port_latitude,
            "lng": row.origin_port_longitude,
        },
        "destinationPort": {
            "code": row.destination_port_code,
            "name": row.destination_port_name,
            "lat": row.destination_port_latitude,
            "lng": row.destination_port_longitude,
        },
        "routeCoordinates": row.route_coordinates or [],
        "routeCoordinatesCount": row.route_coordinates_count,
        "routeType": row.route_type,
        "distanceNauticalMiles": row.distance_nautical_miles,
        "distanceKilometers": row.distance_kilometers,
        "createdAt": format_timestamp(row.created_at),
        "updatedAt": format_timestamp(row.updated_at),
        "createdBy": row.created_by,
        "isActive": bool(row.is_active),
        "version": row.version,
        "metadata": row.extra_metadata or {},
    }
