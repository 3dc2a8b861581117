# triage/cli.py
"""
Offline tool: rank a JSON dump of incidents, or run the duplicate check for
a draft against it.

    triage-rank --file incidents.json --limit 10
    triage-rank --file incidents.json --draft-type Fire --lat 12.97 --lng 77.59
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from triage.models.incident import Incident, IncidentDraft
from triage.services.clock import parse_ts, utcnow
from triage.services.duplicates import find_duplicates
from triage.services.priority import rank_incidents


def load_incidents(path: str) -> List[Incident]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("incidents", [])
    if not isinstance(data, list):
        raise ValueError("JSON root must be a list of incidents or {\"incidents\": [...]}")
    return [Incident.model_validate(it) for it in data]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rank incidents or check a draft for duplicates.")
    parser.add_argument("--file", "-f", required=True,
                        help="Path to JSON file (list of incident objects).")
    parser.add_argument("--now", default=None,
                        help="Evaluation time (ISO-8601 or epoch). Defaults to the current time.")
    parser.add_argument("--limit", type=int, default=None, help="Show only the top N incidents.")
    parser.add_argument("--open-only", action="store_true", help="Skip resolved/closed incidents.")
    parser.add_argument("--draft-type", default=None,
                        help="Run the duplicate check for a draft of this type instead of ranking.")
    parser.add_argument("--lat", type=float, default=None, help="Draft latitude.")
    parser.add_argument("--lng", type=float, default=None, help="Draft longitude.")
    args = parser.parse_args(argv)

    path = os.path.abspath(args.file)
    if not os.path.exists(path):
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    try:
        incidents = load_incidents(path)
    except (json.JSONDecodeError, ValueError, ValidationError) as e:
        print(f"Error: could not read incidents: {e}", file=sys.stderr)
        return 1

    now = utcnow()
    if args.now is not None:
        now = parse_ts(args.now)
        if now is None:
            print(f"Error: unparsable --now value: {args.now}", file=sys.stderr)
            return 1

    if args.draft_type:
        location = {"lat": args.lat, "lng": args.lng} if args.lat is not None and args.lng is not None else None
        draft = IncidentDraft(type=args.draft_type, location=location)
        matches = find_duplicates(draft, incidents, now)
        if not matches:
            print("No duplicates found.")
        for m in matches:
            print(f"{m.confidence:3d}%  {m.distance_m:6.0f} m  {m.incident.id}  {m.incident.type}")
        return 0

    for rank, entry in enumerate(rank_incidents(incidents, now, limit=args.limit, open_only=args.open_only), 1):
        inc = entry.incident
        print(f"#{rank:<3d} {entry.priority:3d}  {inc.id}  {inc.type}  {inc.severity or '-'}  {inc.status or '-'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
