#!/usr/bin/env python3
"""Circular layout for the turntable style: lyric spans on a ring and ring rotation."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from lyric_mv.lyrics import TimedLyric

SEPARATOR = "   "


@dataclass(frozen=True)
class Span:
    """Half-open character range [start, end) of one lyric inside the ring text."""

    start: int
    end: int

    @property
    def midpoint(self) -> float:
        return self.start + (self.end - self.start) / 2


@dataclass(frozen=True)
class CircularTextModel:
    """All lyric texts joined around the ring, with the span of every lyric."""

    full_text: str
    spans: Tuple[Span, ...]

    def __len__(self) -> int:
        return len(self.spans)

    @property
    def is_empty(self) -> bool:
        return not self.spans or not self.full_text

    def span_text(self, index: int) -> str:
        span = self.spans[index]
        return self.full_text[span.start:span.end]


def build_circular_model(lyrics: Sequence[TimedLyric]) -> CircularTextModel:
    """Concatenate lyric texts with a fixed separator and record each span.

    Args:
        lyrics: The lyric sequence shown on the ring

    Returns:
        CircularTextModel where spans[i] slices lyrics[i].text out of full_text
    """
    spans = []
    position = 0
    for i, lyric in enumerate(lyrics):
        if i > 0:
            position += len(SEPARATOR)
        spans.append(Span(position, position + len(lyric.text)))
        position += len(lyric.text)
    full_text = SEPARATOR.join(lyric.text for lyric in lyrics)
    return CircularTextModel(full_text=full_text, spans=tuple(spans))


def angle_for(model: CircularTextModel, active_index: int) -> Optional[float]:
    """Ring rotation that brings the active lyric to the top of the ring.

    0 degrees is the top of the ring, so the rotation is the negated angle of
    the span midpoint. The result is not wrapped into [0, 360).

    Args:
        model: Circular text model of the current lyrics
        active_index: Index of the active lyric

    Returns:
        Target angle in degrees, or None when there is no valid active lyric
    """
    if model.is_empty or not 0 <= active_index < len(model.spans):
        return None
    fraction = model.spans[active_index].midpoint / len(model.full_text)
    return -(fraction * 360.0)


def shortest_rotation(previous: float, target: float) -> float:
    """Angle equivalent to ``target`` that is closest to ``previous``.

    The ring turns from ``previous`` to the returned value, so the visible
    travel is never more than half a turn.

    >>> shortest_rotation(350.0, 10.0)
    370.0
    """
    delta = (target - previous) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return previous + delta


def split_highlight(model: CircularTextModel, active_index: int) -> Tuple[str, str, str]:
    """Split the ring text into (before, active, after) around the active span."""
    if model.is_empty or not 0 <= active_index < len(model.spans):
        return model.full_text, "", ""
    span = model.spans[active_index]
    text = model.full_text
    return text[:span.start], text[span.start:span.end], text[span.end:]


class RotationState:
    """Continuous ring angle, moved along the shortest path on every change."""

    def __init__(self, current_angle_deg: float = 0.0) -> None:
        self.current_angle_deg = current_angle_deg

    def advance(self, target: Optional[float]) -> float:
        """Move towards ``target``; a missing target keeps the last angle.

        Args:
            target: Angle from ``angle_for``, or None

        Returns:
            The updated continuous angle
        """
        if target is not None:
            self.current_angle_deg = shortest_rotation(self.current_angle_deg, target)
        return self.current_angle_deg

    def reset(self) -> None:
        self.current_angle_deg = 0.0
