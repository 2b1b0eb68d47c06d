"""Command-line interface for the triage engine.

Runs the engine against a JSON snapshot of the casework data so triage
suggestions can be inspected without the web application.

Usage::

    triage-engine siblings --snapshot data/snapshot.json --message msg_1
    triage-engine preview --snapshot data/snapshot.json --message msg_1 --format json
    triage-engine reconcile --selected tag_a,tag_b --original tag_b,tag_c
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from triage.config import get_settings
from triage.domain.errors import TriageError
from triage.matching.siblings import find_campaign_siblings
from triage.observability import configure_logging
from triage.pipeline import TriagePreview, TriageService
from triage.storage import SnapshotStorage
from triage.tags.reconciler import reconcile_tags


def _split_ids(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one sub-command per operation.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="triage-engine",
        description="Inspect casework triage suggestions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    siblings = subparsers.add_parser("siblings", help="List sibling messages of a message")
    siblings.add_argument("--snapshot", type=Path, required=True, help="Path to snapshot JSON")
    siblings.add_argument("--message", type=str, required=True, help="Message ID")
    siblings.add_argument(
        "--campaign",
        type=str,
        default=None,
        help="Campaign being assigned; its messages are excluded",
    )

    preview = subparsers.add_parser("preview", help="Show every triage suggestion for a message")
    preview.add_argument("--snapshot", type=Path, required=True, help="Path to snapshot JSON")
    preview.add_argument("--message", type=str, required=True, help="Message ID")
    preview.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )

    reconcile = subparsers.add_parser("reconcile", help="Diff a tag selection against the original")
    reconcile.add_argument(
        "--selected", type=_split_ids, default=[], help="Comma-separated selected tag IDs"
    )
    reconcile.add_argument(
        "--original", type=_split_ids, default=[], help="Comma-separated persisted tag IDs"
    )

    return parser


def preview_summary(preview: TriagePreview) -> dict[str, Any]:
    """Flatten a preview into plain values for display.

    Args:
        preview: The preview to summarize.

    Returns:
        A JSON-serializable dict.
    """
    suggestion = preview.case_suggestion
    return {
        "message_id": preview.message.id,
        "subject": preview.message.subject,
        "siblings": [
            {"id": s.message.id, "match": s.match_type.value} for s in preview.siblings
        ],
        "campaigns": [
            {
                "id": m.campaign.id,
                "name": m.campaign.name,
                "confidence": m.confidence,
                "match": m.match_type.value,
            }
            for m in preview.campaign_matches
        ],
        "constituent": {
            "status": preview.resolution.status.value,
            "pill": preview.resolution.pill_status.value,
            "candidates": [
                {
                    "id": c.constituent.id,
                    "name": c.constituent.full_name,
                    "confidence": c.confidence,
                }
                for c in preview.resolution.candidates
            ],
            "extracted": preview.resolution.extracted.model_dump(),
        },
        "case": {
            "primary": (
                {"id": suggestion.primary.case.id, "confidence": suggestion.primary.confidence}
                if suggestion.primary
                else None
            ),
            "alternatives": [
                {"id": c.case.id, "confidence": c.confidence} for c in suggestion.alternatives
            ],
            "offer_new_case": suggestion.offer_new_case,
        },
        "priority": preview.priority.value,
        "tags": {tag_id: state.value for tag_id, state in sorted(preview.tags.states.items())},
        "suggested_tags": [t.id for t in preview.suggested_tags],
    }


def format_preview_table(summary: dict[str, Any]) -> str:
    """Render a preview summary as aligned ``label: value`` lines."""
    constituent = summary["constituent"]
    case = summary["case"]

    def pct(value: float) -> str:
        return f"{value * 100:.0f}%"

    rows = [
        ("Message", f"{summary['message_id']}  {summary['subject'] or ''}".rstrip()),
        (
            "Siblings",
            ", ".join(f"{s['id']} ({s['match']})" for s in summary["siblings"]) or "-",
        ),
        (
            "Campaigns",
            ", ".join(f"{c['name']} {pct(c['confidence'])}" for c in summary["campaigns"]) or "-",
        ),
        ("Constituent", f"{constituent['status']} [{constituent['pill']}]"),
        (
            "Candidates",
            ", ".join(f"{c['name']} {pct(c['confidence'])}" for c in constituent["candidates"])
            or "-",
        ),
        (
            "Case",
            f"{case['primary']['id']} {pct(case['primary']['confidence'])}"
            if case["primary"]
            else "new case",
        ),
        (
            "Alternatives",
            ", ".join(f"{c['id']} {pct(c['confidence'])}" for c in case["alternatives"]) or "-",
        ),
        ("Priority", summary["priority"]),
        ("Tags", ", ".join(f"{t} ({s})" for t, s in summary["tags"].items()) or "-"),
        ("Suggested tags", ", ".join(summary["suggested_tags"]) or "-"),
    ]
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label.ljust(width)}  {value}" for label, value in rows)


def _run_siblings(args: argparse.Namespace) -> int:
    storage = SnapshotStorage.from_json_file(args.snapshot)
    message = storage.get_message(args.message)
    matches = find_campaign_siblings(message, storage.list_messages(), args.campaign)
    if not matches:
        print("No siblings found.")
        return 0
    for match in matches:
        print(f"{match.message.id}\t{match.match_type.value}\t{match.message.subject or ''}")
    return 0


def _run_preview(args: argparse.Namespace) -> int:
    storage = SnapshotStorage.from_json_file(args.snapshot)
    service = TriageService(storage, storage)
    summary = preview_summary(service.preview(args.message))
    if args.output_format == "json":
        print(json.dumps(summary, indent=2))
    else:
        print(format_preview_table(summary))
    return 0


def _run_reconcile(args: argparse.Namespace) -> int:
    result = reconcile_tags(args.selected, args.original)
    if not result.states:
        print("No tags.")
        return 0
    for tag_id, state in sorted(result.states.items()):
        print(f"{tag_id}\t{state.value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the sub-command and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(production=get_settings().production)

    handlers = {
        "siblings": _run_siblings,
        "preview": _run_preview,
        "reconcile": _run_reconcile,
    }
    try:
        return handlers[args.command](args)
    except FileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
    except ValidationError as exc:
        print(f"error: invalid snapshot: {exc.error_count()} validation error(s)", file=sys.stderr)
    except TriageError as exc:
        print(f"error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
