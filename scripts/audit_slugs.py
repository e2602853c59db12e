#!/usr/bin/env python3
"""Report generated slugs shared by several entities, and entities with none."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from entity_kinds import KINDS, EntityKind, get_kind
from slug_index import build_kind_index
from store import DocumentStore, create_store

logger = logging.getLogger(__name__)


async def audit_kind(
    store: DocumentStore, kind: EntityKind, scan_limit: Optional[int] = None
) -> Dict[str, object]:
    """Return collision and coverage figures for one kind."""

    index = await build_kind_index(store, kind, scan_limit)
    return {
        "kind": kind.name,
        "documents": index.documents,
        "unslugged": index.unslugged,
        "collisions": index.collisions(),
    }


async def audit(
    store: DocumentStore, kinds: List[EntityKind], scan_limit: Optional[int] = None
) -> List[Dict[str, object]]:
    return [await audit_kind(store, kind, scan_limit) for kind in kinds]


def format_report(reports: List[Dict[str, object]]) -> str:
    lines: List[str] = []
    for report in reports:
        collisions = report["collisions"]
        lines.append(
            f"{report['kind']}: {report['documents']} documents, "
            f"{report['unslugged']} without a slug, {len(collisions)} ambiguous slugs"
        )
        for slug, hits in sorted(collisions.items()):
            first, *rest = hits
            others = ", ".join(f"{c}/{i}" for c, i in rest)
            lines.append(f"  {slug}: {first[0]}/{first[1]} wins over {others}")
    return "\n".join(lines)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Audit generated slugs for collisions and missing names."
    )
    parser.add_argument(
        "kinds",
        nargs="*",
        help=f"Entity kinds to audit (default: all of {', '.join(KINDS)}).",
    )
    parser.add_argument(
        "--backend",
        choices=["yaml", "firestore"],
        help="Override the configured STORE_BACKEND.",
    )
    parser.add_argument(
        "--scan-limit",
        type=int,
        default=None,
        help="Maximum documents to read per collection.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        kinds = [get_kind(name) for name in args.kinds] or list(KINDS.values())
    except KeyError as exc:
        print(f"Unknown kind: {exc.args[0]}", file=sys.stderr)
        return 2
    store = create_store(args.backend)
    reports = asyncio.run(audit(store, kinds, args.scan_limit))
    print(format_report(reports))
    has_collisions = any(report["collisions"] for report in reports)
    return 1 if has_collisions else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
