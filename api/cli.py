#!/usr/bin/env python3
"""
SEALANE API CLI Tool.

Command-line interface for administrative tasks:
- Database initialization
- Port catalog seeding
- Route synthesis between catalog ports
- Segment version history

Usage:
    python -m api.cli init-db
    python -m api.cli seed-ports [--file ports.json]
    python -m api.cli synthesize --origin MIA --destination NAS
    python -m api.cli history --segment-id MIA-NAS
"""
import argparse
import json
import sys
from typing import List, Optional

# A few well-known ports for local development
SAMPLE_PORTS = [
    {"port_id": "MIA", "port_code": "USMIA", "port_name": "Miami", "port_country_code": "US",
     "port_latitude": 25.7617, "port_longitude": -80.1918},
    {"port_id": "NAS", "port_code": "BSNAS", "port_name": "Nassau", "port_country_code": "BS",
     "port_latitude": 25.0343, "port_longitude": -77.3554},
    {"port_id": "SJU", "port_code": "PRSJU", "port_name": "San Juan", "port_country_code": "PR",
     "port_latitude": 18.4655, "port_longitude": -66.1057},
    {"port_id": "NYC", "port_code": "USNYC", "port_name": "New York", "port_country_code": "US",
     "port_latitude": 40.6840, "port_longitude": -74.0062},
    {"port_id": "LAX", "port_code": "USLAX", "port_name": "Los Angeles", "port_country_code": "US",
     "port_latitude": 33.7405, "port_longitude": -118.2720},
    {"port_id": "SOU", "port_code": "GBSOU", "port_name": "Southampton", "port_country_code": "GB",
     "port_latitude": 50.8998, "port_longitude": -1.4044},
    {"port_id": "BCN", "port_code": "ESBCN", "port_name": "Barcelona", "port_country_code": "ES",
     "port_latitude": 41.3520, "port_longitude": 2.1589},
]


def init_db() -> None:
    """Initialize the database."""
    from api.database import init_db as do_init

    print("Initializing database...")
    do_init()
    print("Database initialized successfully.")


def load_ports(path: Optional[str]) -> List[dict]:
    if path is None:
        return SAMPLE_PORTS
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Port file must contain a JSON list of port objects")
    return data


def seed_ports(path: Optional[str] = None) -> int:
    """Insert or update catalog ports. Returns the number written."""
    from api.database import get_db_context
    from api.models import Port

    ports = load_ports(path)
    with get_db_context() as db:
        for entry in ports:
            db.merge(Port(**entry))

    print(f"Seeded {len(ports)} port(s).")
    return len(ports)


def synthesize(origin_id: str, destination_id: str) -> None:
    """Synthesize a route between two catalog ports and print a summary."""
    from api.database import get_db_context
    from api.models import Port as PortRow
    from src.errors import InputError
    from src.routes.synthesizer import Port, RouteSynthesizer

    with get_db_context() as db:
        ports = {
            row.port_id: Port(id=row.port_id, name=row.port_name, code=row.port_code,
                              latitude=row.port_latitude, longitude=row.port_longitude)
            for row in db.query(PortRow).filter(PortRow.port_id.in_([origin_id, destination_id])).all()
        }

    missing = [pid for pid in (origin_id, destination_id) if pid not in ports]
    if missing:
        print(f"\nError: unknown port(s): {', '.join(missing)}")
        sys.exit(1)

    try:
        route = RouteSynthesizer().synthesize(ports[origin_id], ports[destination_id])
    except InputError as e:
        print(f"\nError: {e.message}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print(f"ROUTE {origin_id} -> {destination_id}")
    print("=" * 60)
    print(f"Path: {'detour' if route.detoured else 'great circle'}")
    print(f"Kind: {route.kind.value}")
    print(f"Points: {len(route.coordinates)}")
    print(f"Distance: {route.total_distance_nm:.1f} nm ({route.total_distance_km:.1f} km)")
    print(f"Duration: {route.duration}")
    land = sum(1 for s in route.segments if s.crosses_land)
    print(f"Land segments: {land}/{len(route.segments)}")
    print("=" * 60 + "\n")


def history(segment_id: str) -> None:
    """Print all saved versions of a segment."""
    from api.database import get_db_context
    from api.segment_store import SegmentVersionStore

    with get_db_context() as db:
        rows = SegmentVersionStore(db).history(segment_id)
        lines = [
            f"{row.version:<8} {'Yes' if row.is_active else 'No':<8} {row.route_type:<10} "
            f"{row.route_coordinates_count:<8} {row.distance_nautical_miles:<12.1f} "
            f"{row.created_at:%Y-%m-%d %H:%M}  {row.updated_at:%Y-%m-%d %H:%M}"
            for row in rows
        ]

    if not lines:
        print(f"\nNo versions found for segment {segment_id}.")
        return

    print("\n" + "=" * 80)
    print(f"SEGMENT {segment_id}")
    print("=" * 80)
    print(f"{'Version':<8} {'Active':<8} {'Type':<10} {'Points':<8} {'NM':<12} {'Created':<17} {'Updated':<17}")
    print("-" * 80)
    for line in lines:
        print(line)
    print("=" * 80)
    print(f"Total: {len(lines)} version(s)\n")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="SEALANE API CLI Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Initialize database:
    python -m api.cli init-db

  Load the sample port catalog:
    python -m api.cli seed-ports

  Load ports from a JSON file:
    python -m api.cli seed-ports --file ports.json

  Synthesize a route:
    python -m api.cli synthesize --origin MIA --destination NAS

  Show segment versions:
    python -m api.cli history --segment-id MIA-NAS
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Initialize the database")

    seed_parser = subparsers.add_parser("seed-ports", help="Load ports into the catalog")
    seed_parser.add_argument("--file", help="JSON list of port objects (default: built-in sample)")

    synth_parser = subparsers.add_parser("synthesize", help="Synthesize a route between two ports")
    synth_parser.add_argument("--origin", required=True, help="Origin port ID")
    synth_parser.add_argument("--destination", required=True, help="Destination port ID")

    history_parser = subparsers.add_parser("history", help="Show saved versions of a segment")
    history_parser.add_argument("--segment-id", required=True, help="Segment ID (ORIGIN-DESTINATION)")

    args = parser.parse_args(argv)

    if args.command == "init-db":
        init_db()
    elif args.command == "seed-ports":
        seed_ports(args.file)
    elif args.command == "synthesize":
        synthesize(args.origin, args.destination)
    elif args.command == "history":
        history(args.segment_id)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
