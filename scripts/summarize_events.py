"""Offline CLI that replays a saved event log and prints aggregate metrics."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from uxpulse.schemas.analytics import Snapshot
from uxpulse.schemas.events import TelemetryEvent
from uxpulse.services.aggregation import DEFAULT_RECENT_WINDOW, build_snapshot
from uxpulse.services.segmentation import InsightSegment, segment_insights


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uxpulse-summarize",
        description="Aggregate a JSON-lines or JSON-array telemetry export without running the API.",
    )
    parser.add_argument("events", type=Path, help="Path to the exported event log.")
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format for the metrics report (default: table).",
    )
    parser.add_argument(
        "--recent-window",
        type=int,
        default=DEFAULT_RECENT_WINDOW,
        help="Number of trailing clicks/scrolls/movements to include in JSON output.",
    )
    parser.add_argument(
        "--segment",
        type=Path,
        default=None,
        help="Optional file with generated report text to split into insights.",
    )
    return parser


def load_events(path: Path) -> list[TelemetryEvent]:
    """Read events from a JSON array or one JSON object per line."""
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return []

    payloads: list[Any]
    if raw.startswith("["):
        try:
            payloads = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Could not parse %s as a JSON array: %s", path, exc)
            return []
    else:
        payloads = []
        for line_number, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                payloads.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping unparseable line %d in %s", line_number, path)

    events: list[TelemetryEvent] = []
    for payload in payloads:
        if not isinstance(payload, dict):
            continue
        try:
            events.append(TelemetryEvent.model_validate(payload))
        except ValidationError:
            logger.warning("Skipping event that could not be validated: %s", payload)
    return events


def render_table(snapshot: Snapshot) -> str:
    """Render headline metrics in a two-column fixed-width table."""
    rows: list[tuple[str, str]] = [
        ("Sessions", str(snapshot.total_sessions)),
        ("Clicks", str(snapshot.total_clicks)),
        ("Mouse movements", str(snapshot.total_mouse_movements)),
        ("Scrolls", str(snapshot.total_scrolls)),
        ("Rage clicks", str(snapshot.total_rage_clicks)),
        ("Avg clicks / event", f"{snapshot.average_clicks:.2f}"),
        ("Avg time on page (ms)", str(snapshot.average_time_on_page)),
        ("Avg time to convert (ms)", _format_optional(snapshot.average_time_to_convert)),
        (
            "Avg viewport",
            f"{snapshot.average_viewport.width}x{snapshot.average_viewport.height}",
        ),
        ("Conversion rate", f"{snapshot.conversion_rate}%"),
        ("Drop-off rate", f"{snapshot.drop_off_rate}%"),
    ]
    for name, page in sorted(snapshot.pages.items()):
        rows.append((f"Page {name}", f"{page.sessions} events, {page.clicks} clicks"))

    width = max(len(label) for label, _ in rows)
    lines = [f"{'Metric'.ljust(width)}  Value", f"{'-' * width}  {'-' * 5}"]
    lines.extend(f"{label.ljust(width)}  {value}" for label, value in rows)
    return "\n".join(lines)


def render_segments(segments: Iterable[InsightSegment]) -> str:
    lines: list[str] = []
    for index, segment in enumerate(segments, start=1):
        lines.append(f"{index}. {segment.insight or '-'}")
        lines.append(f"   -> {segment.suggestion or '-'}")
    return "\n".join(lines) if lines else "(no insights)"


def _format_optional(value: object | None) -> str:
    return "-" if value is None else str(value)


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    events = load_events(args.events)
    if not events:
        print(f"No events found in {args.events}")
        raise SystemExit(1)

    snapshot = build_snapshot(events, recent_window=args.recent_window)
    segments = None
    if args.segment is not None:
        segments = segment_insights(args.segment.read_text(encoding="utf-8"))

    if args.format == "json":
        payload: dict[str, Any] = {"data": snapshot.model_dump(mode="json", by_alias=True)}
        if segments is not None:
            payload["insights"] = [
                {"insight": segment.insight, "suggestion": segment.suggestion}
                for segment in segments
            ]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(render_table(snapshot))
        if segments is not None:
            print()
            print(render_segments(segments))

    raise SystemExit(0)


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
