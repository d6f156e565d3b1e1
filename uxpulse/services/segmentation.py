"""Split free-form model output into ordered insight/suggestion pairs.

Generated reports are only loosely structured: numbered items, bold labels,
"Insight:" / "UX Suggestion:" prefixes in assorted casings, or plain prose.
Each section of the text is run through an ordered list of strategies; a
strategy refines the working draft and the pipeline stops as soon as a
suggestion has been found. Every strategy accepts any input and never raises.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass


logger = logging.getLogger(__name__)

_SECTION_BREAK = re.compile(r"\n{2,}|(?=^[ \t]*-?\d+\.\s)", re.MULTILINE)
_LEADING_MARKER = re.compile(r"^\s*(?:-?\d+\.|\*(?!\*)|[-•](?=\s))\s*")
_SUGGESTION_PAIR = re.compile(
    r"^(?P<insight>.*?)[\s*_>#-]*\b(?:UX[\s-]?)?Suggestions?\b[\s*_]*[:：][\s*_]*(?P<suggestion>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_SUGGESTION_LINE = re.compile(r"\bsuggestions?\b\s*[:：]?", re.IGNORECASE)
_INSIGHT_LABEL = re.compile(
    r"^[\s*_#]*(?:key\s+)?insights?\b[\s*_]*[:：][\s*_]*", re.IGNORECASE
)
_SENTENCE_BREAK = re.compile(r"\.\s+(?![\sa-z])")
_EDGE_NOISE = " \t\n*_-#>:："


@dataclass(slots=True, frozen=True)
class InsightSegment:
    """One insight and the suggestion that follows it."""

    insight: str
    suggestion: str


@dataclass(slots=True)
class SegmentDraft:
    insight: str = ""
    suggestion: str = ""


SegmentStrategy = Callable[[str, SegmentDraft], SegmentDraft]


def _clean(value: str) -> str:
    return value.strip().strip(_EDGE_NOISE).strip()


def _clean_insight(value: str) -> str:
    return _clean(_INSIGHT_LABEL.sub("", value.strip(), count=1))


def split_sections(text: str) -> list[str]:
    """Split report text into candidate sections with list markers removed."""
    sections: list[str] = []
    for raw in _SECTION_BREAK.split(text):
        if not raw or not raw.strip():
            continue
        section = _LEADING_MARKER.sub("", raw, count=1).strip()
        if section:
            sections.append(section)
    return sections


def labelled_pair(section: str, draft: SegmentDraft) -> SegmentDraft:
    """Match ``<insight> **UX Suggestion:** <suggestion>`` style sections."""
    match = _SUGGESTION_PAIR.match(section)
    if not match:
        return draft
    suggestion = _clean(match.group("suggestion"))
    if not suggestion:
        return draft
    return SegmentDraft(insight=_clean_insight(match.group("insight")), suggestion=suggestion)


def line_scan(section: str, draft: SegmentDraft) -> SegmentDraft:
    """Pull the suggestion from any line mentioning it; other lines form the insight."""
    insight_lines: list[str] = []
    suggestion = draft.suggestion
    for line in section.splitlines():
        match = _SUGGESTION_LINE.search(line)
        if match:
            suggestion = _clean(line[match.end():])
        elif line.strip():
            insight_lines.append(line.strip())
    return SegmentDraft(insight=_clean_insight(" ".join(insight_lines)), suggestion=suggestion)


def sentence_split(section: str, draft: SegmentDraft) -> SegmentDraft:
    """Treat the first sentence as the insight and the rest as the suggestion."""
    if not draft.insight:
        return draft
    parts = [part.strip() for part in _SENTENCE_BREAK.split(draft.insight)]
    parts = [part for part in parts if part]
    if len(parts) < 2:
        return draft
    return SegmentDraft(insight=f"{parts[0]}.", suggestion=". ".join(parts[1:]))


DEFAULT_STRATEGIES: tuple[SegmentStrategy, ...] = (labelled_pair, line_scan, sentence_split)


class InsightSegmenter:
    """Apply segmentation strategies in priority order to each section."""

    def __init__(self, strategies: Sequence[SegmentStrategy] = DEFAULT_STRATEGIES):
        self._strategies = tuple(strategies)

    def segment(self, text: str | None) -> list[InsightSegment]:
        if not isinstance(text, str) or not text.strip():
            return []

        normalized = text.replace("\r\n", "\n").replace("\r", "\n")
        segments: list[InsightSegment] = []
        for section in split_sections(normalized):
            segment = self._segment_section(section)
            if segment is not None:
                segments.append(segment)

        logger.debug("Segmented report text into %d insight(s)", len(segments))
        return segments

    def _segment_section(self, section: str) -> InsightSegment | None:
        draft = SegmentDraft()
        for strategy in self._strategies:
            draft = strategy(section, draft)
            if draft.suggestion:
                break

        insight = draft.insight.strip()
        suggestion = draft.suggestion.strip()
        if not insight and not suggestion:
            return None
        return InsightSegment(insight=insight, suggestion=suggestion)


_default_segmenter = InsightSegmenter()


def segment_insights(text: str | None) -> list[InsightSegment]:
    """Segment ``text`` with the default strategy order."""
    return _default_segmenter.segment(text)
