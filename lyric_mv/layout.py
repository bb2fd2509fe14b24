#!/usr/bin/env python3
"""Per-style lyric geometry, recomputed from the active lyric index on every tick."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple, Union

from lyric_mv.lyrics import TimedLyric
from lyric_mv.turntable import CircularTextModel, RotationState, angle_for, build_circular_model

# Lines of context shown before and after the active one in the linear style
LINEAR_WINDOW = 2

ACTIVE_OPACITY = 1.0
LINEAR_INACTIVE_OPACITY = 0.3
LINEAR_INACTIVE_SCALE = 0.8
VERTICAL_INACTIVE_OPACITY = 0.5
VERTICAL_INACTIVE_SCALE = 0.9

# Transition lengths in seconds for the ring rotation and the vertical scroll
ROTATION_SECONDS = 0.8
SCROLL_SECONDS = 0.5


def ease_out_cubic(progress: float) -> float:
    return 1.0 - (1.0 - progress) ** 3


def ease_in_out_cubic(progress: float) -> float:
    if progress < 0.5:
        return 4.0 * progress**3
    return 1.0 - (-2.0 * progress + 2.0) ** 3 / 2.0


class EasedValue:
    """A displayed number that moves to each new target over a fixed time.

    The value is read from the clock, not stepped per frame. A new target
    starts a fresh transition from wherever the value currently is.
    """

    def __init__(
        self,
        value: float = 0.0,
        duration: float = 0.5,
        easing: Callable[[float], float] = ease_out_cubic,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration = duration
        self.easing = easing
        self.clock = clock
        self.start_value = value
        self.target = value
        self.started_at = clock()

    def set_target(self, target: float) -> None:
        if target == self.target:
            return
        self.start_value = self.value
        self.target = target
        self.started_at = self.clock()

    def jump(self, value: float) -> None:
        """Place the value without a transition."""
        self.start_value = value
        self.target = value
        self.started_at = self.clock() - self.duration

    @property
    def settled(self) -> bool:
        return self.duration <= 0 or self.clock() - self.started_at >= self.duration

    @property
    def value(self) -> float:
        if self.duration <= 0:
            return self.target
        progress = (self.clock() - self.started_at) / self.duration
        if progress >= 1.0:
            return self.target
        progress = max(0.0, progress)
        return self.start_value + (self.target - self.start_value) * self.easing(progress)


class PresentationStyle(Enum):
    LINEAR = "linear"
    VERTICAL = "vertical"
    TURNTABLE = "turntable"


class LineState(Enum):
    PAST = "past"
    ACTIVE = "active"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class StyledLine:
    index: int
    text: str
    state: LineState
    opacity: float
    scale: float

    @property
    def is_active(self) -> bool:
        return self.state is LineState.ACTIVE


@dataclass(frozen=True)
class LinearLayout:
    """Window of up to five lines around the active one; empty when idle."""

    lines: Tuple[StyledLine, ...]


@dataclass(frozen=True)
class VerticalLayout:
    """Every line, shifted up by ``offset`` so the active one sits in place.

    ``display_offset`` is where the scroll is drawn this frame while it eases
    towards ``offset``.
    """

    offset: float
    lines: Tuple[StyledLine, ...]
    display_offset: float


@dataclass(frozen=True)
class TurntableLayout:
    """Ring rotation; the read-head marker stays fixed at the top of the ring.

    ``angle`` is the rotation the ring is heading for and ``display_angle`` the
    one it is drawn at this frame.
    """

    angle: float
    model: CircularTextModel
    active_index: int
    display_angle: float
    marker_angle: float = 0.0


Layout = Union[LinearLayout, VerticalLayout, TurntableLayout]


@dataclass(frozen=True)
class FrameGeometry:
    style: PresentationStyle
    active_index: int
    layout: Layout

    @property
    def has_lyrics(self) -> bool:
        """Whether anything should be painted in the lyric area."""
        if isinstance(self.layout, TurntableLayout):
            return True
        return self.active_index != -1


def _line_state(index: int, active_index: int) -> LineState:
    if index == active_index:
        return LineState.ACTIVE
    if index < active_index:
        return LineState.PAST
    return LineState.UPCOMING


def linear_window(lyrics: Sequence[TimedLyric], active_index: int) -> LinearLayout:
    """Lines ``active_index - 2 .. active_index + 2`` clamped to the sequence."""
    if active_index == -1:
        return LinearLayout(lines=())

    start = max(0, active_index - LINEAR_WINDOW)
    end = min(len(lyrics), active_index + LINEAR_WINDOW + 1)
    lines = []
    for index in range(start, end):
        state = _line_state(index, active_index)
        active = state is LineState.ACTIVE
        lines.append(
            StyledLine(
                index=index,
                text=lyrics[index].text,
                state=state,
                opacity=ACTIVE_OPACITY if active else LINEAR_INACTIVE_OPACITY,
                scale=1.0 if active else LINEAR_INACTIVE_SCALE,
            )
        )
    return LinearLayout(lines=tuple(lines))


def vertical_lines(lyrics: Sequence[TimedLyric], active_index: int) -> Tuple[StyledLine, ...]:
    lines = []
    for index, lyric in enumerate(lyrics):
        state = _line_state(index, active_index) if active_index != -1 else LineState.UPCOMING
        active = state is LineState.ACTIVE
        lines.append(
            StyledLine(
                index=index,
                text=lyric.text,
                state=state,
                opacity=ACTIVE_OPACITY if active else VERTICAL_INACTIVE_OPACITY,
                scale=1.0 if active else VERTICAL_INACTIVE_SCALE,
            )
        )
    return tuple(lines)


class RenderModeCoordinator:
    """Holds the presentation style and the state the styles carry between ticks.

    ``recompute`` is the single entry point: it is called once per clock tick
    with that tick's active index and returns a fresh FrameGeometry. Scroll
    offset and ring rotation are advanced on every tick whatever the style, so
    switching styles never makes the lyrics jump. Both are drawn through an
    eased value that follows them over ``ROTATION_SECONDS`` and
    ``SCROLL_SECONDS``.
    """

    def __init__(
        self,
        lyrics: Sequence[TimedLyric] = (),
        line_height: float = 4.2,
        style: PresentationStyle = PresentationStyle.LINEAR,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.style = style
        self.line_height = line_height
        self.lyrics: Tuple[TimedLyric, ...] = tuple(lyrics)
        self.circular_model = build_circular_model(self.lyrics)
        self.rotation = RotationState()
        self.scroll_offset = 0.0
        self._scroll_index: Optional[int] = None
        self.last_index = -1
        self.displayed_angle = EasedValue(0.0, ROTATION_SECONDS, ease_in_out_cubic, clock)
        self.displayed_offset = EasedValue(0.0, SCROLL_SECONDS, ease_out_cubic, clock)

    def select_style(self, style: PresentationStyle) -> None:
        """Switch style without touching scroll or rotation state."""
        if style is not self.style:
            print(f"RenderModeCoordinator: Style {self.style.value} -> {style.value}")
        self.style = style

    def set_line_height(self, line_height: float) -> None:
        self.line_height = line_height
        if self._scroll_index is not None:
            self.scroll_offset = -(self._scroll_index * self.line_height)

    def replace_lyrics(self, lyrics: Sequence[TimedLyric]) -> None:
        """Swap the lyric sequence and drop everything derived from the old one."""
        self.lyrics = tuple(lyrics)
        self.circular_model = build_circular_model(self.lyrics)
        self.rotation.reset()
        self.scroll_offset = 0.0
        self._scroll_index = None
        self.last_index = -1
        self.displayed_angle.jump(0.0)
        self.displayed_offset.jump(0.0)
        print(f"RenderModeCoordinator: Lyrics replaced ({len(self.lyrics)} lines)")

    def validate_index(self, active_index: int) -> int:
        if 0 <= active_index < len(self.lyrics):
            return active_index
        return -1

    def recompute(self, active_index: int) -> FrameGeometry:
        """Derive this tick's geometry for the current style.

        Args:
            active_index: Active lyric index from the resolver; stale or out of
                range values are treated as -1

        Returns:
            FrameGeometry carrying the layout variant of the current style
        """
        index = self.validate_index(active_index)

        if index != -1:
            self._scroll_index = index
            self.scroll_offset = -(index * self.line_height)
        if index != self.last_index:
            self.rotation.advance(angle_for(self.circular_model, index))
        self.last_index = index

        # The rotation target is already the shortest-path equivalent, so
        # easing towards it in plain numbers turns the ring the short way
        self.displayed_angle.set_target(self.rotation.current_angle_deg)
        self.displayed_offset.set_target(self.scroll_offset)

        if self.style is PresentationStyle.LINEAR:
            layout: Layout = linear_window(self.lyrics, index)
        elif self.style is PresentationStyle.VERTICAL:
            layout = VerticalLayout(
                offset=self.scroll_offset,
                lines=vertical_lines(self.lyrics, index),
                display_offset=self.displayed_offset.value,
            )
        else:
            layout = TurntableLayout(
                angle=self.rotation.current_angle_deg,
                model=self.circular_model,
                active_index=index,
                display_angle=self.displayed_angle.value,
            )
        return FrameGeometry(style=self.style, active_index=index, layout=layout)
