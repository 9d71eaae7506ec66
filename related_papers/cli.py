"""Command-line entry point for related-paper recommendations."""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
import sys
from typing import Any, List

from .api import RelatedPapersClient
from .core.cancellation import CancellationToken
from .core.models import ReferenceEntry, RelatedPapersProgress
from .core.settings import RelatedPapersSettings
from .exceptions import RelatedPapersCancelled
from .providers.clients.base import ClientError, NotFoundError

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Expected a positive integer") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError("Expected a positive integer")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="related-papers",
        description="Recommend INSPIRE-HEP records related to a seed record",
    )
    parser.add_argument("recid", help="INSPIRE record id of the seed paper")
    parser.add_argument(
        "--max-anchors", type=_positive_int, default=None, help="Seed references used as anchors"
    )
    parser.add_argument(
        "--per-anchor", type=_positive_int, default=None, help="Citing papers fetched per anchor"
    )
    parser.add_argument(
        "--max-results", type=_positive_int, default=None, help="Number of results to print"
    )
    parser.add_argument(
        "--concurrency", type=_positive_int, default=None, help="Parallel INSPIRE requests"
    )
    parser.add_argument(
        "--include-reviews",
        action="store_true",
        help="Keep review articles among anchors and results",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log progress and HTTP activity")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in ("max_anchors", "per_anchor", "max_results", "concurrency"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.include_reviews:
        overrides["exclude_review_articles"] = False
    return overrides


def _format_entry(rank: int, entry: ReferenceEntry) -> str:
    lines = [f"{rank:>3}. [{entry.combined_score or 0.0:.3f}] {entry.title}"]
    if entry.author_text:
        lines.append(f"     {entry.author_text}")
    if entry.summary:
        lines.append(f"     {entry.summary}")
    detail = f"     shared refs: {entry.shared_ref_count or 0}"
    if entry.co_citation_count:
        detail += f", co-cited: {entry.co_citation_count}"
    if entry.inspire_url:
        detail += f"  {entry.inspire_url}"
    lines.append(detail)
    return "\n".join(lines)


def _print_results(entries: List[ReferenceEntry], as_json: bool) -> None:
    if as_json:
        print(json.dumps([asdict(entry) for entry in entries], indent=2))
        return
    if not entries:
        print("No related papers found.")
        return
    for rank, entry in enumerate(entries, start=1):
        print(_format_entry(rank, entry))


def _log_progress(snapshot: RelatedPapersProgress) -> None:
    if not snapshot.done:
        logger.info(
            "Processed %s/%s anchors, %s candidates ranked",
            snapshot.processed_anchors,
            snapshot.total_anchors,
            len(snapshot.entries),
        )


def _run(client: RelatedPapersClient, args: argparse.Namespace, token: CancellationToken) -> int:
    references = client.load_seed_references(args.recid, token=token)
    entries: List[ReferenceEntry] = []
    for snapshot in client.stream_related(
        args.recid, references, token=token, **_overrides(args)
    ):
        _log_progress(snapshot)
        if snapshot.done:
            entries = snapshot.entries
    _print_results(entries, args.json)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    client = RelatedPapersClient(RelatedPapersSettings(debug_logging=args.verbose))
    token = CancellationToken()
    try:
        return _run(client, args, token)
    except KeyboardInterrupt:
        token.cancel()
        print("Cancelled.", file=sys.stderr)
        return 130
    except RelatedPapersCancelled:
        print("Cancelled.", file=sys.stderr)
        return 130
    except NotFoundError:
        print(f"Record {args.recid} not found on INSPIRE.", file=sys.stderr)
        return 2
    except ClientError as exc:
        print(f"INSPIRE request failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
