#!/usr/bin/env python3
"""Normal/presenting mode switching and the idle timer for the floating play button."""

import time
from enum import Enum
from typing import Callable, Optional, Protocol

from lyric_mv.errors import FullscreenError

DEFAULT_IDLE_TIMEOUT = 2.0


class PresentationMode(Enum):
    NORMAL = "normal"
    PRESENTING = "presenting"


class FullscreenHost(Protocol):
    """The display the player runs in."""

    def request_fullscreen(self) -> None:
        """Switch to exclusive fullscreen; raise FullscreenError when refused."""

    def exit_fullscreen(self) -> None: ...


class IdleTimer:
    """One cancellable deadline, checked by polling from the main loop."""

    def __init__(
        self,
        timeout: float,
        on_expire: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self.on_expire = on_expire
        self.clock = clock
        self.deadline: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self.deadline is not None

    def arm(self) -> None:
        """Cancel any pending deadline and start a new one."""
        self.deadline = self.clock() + self.timeout

    def cancel(self) -> None:
        self.deadline = None

    def poll(self) -> bool:
        """Fire the callback once if the deadline has passed.

        Returns:
            True if the timer expired on this call
        """
        if self.deadline is None or self.clock() < self.deadline:
            return False
        self.deadline = None
        self.on_expire()
        return True


class PresentationController:
    """State machine for the distraction-free fullscreen presentation mode.

    In ``NORMAL`` mode the header and footer are shown and the user may hide
    the controls. ``PRESENTING`` is entered only once the host grants
    fullscreen and is left whenever the host reports that fullscreen ended,
    whoever ended it. While presenting, a floating play/pause button is shown;
    during playback it hides after ``idle_timeout`` seconds without pointer
    movement.
    """

    def __init__(
        self,
        host: FullscreenHost,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.mode = PresentationMode.NORMAL
        self.controls_visible = True
        self.chrome_visible = True
        self.play_button_visible = True
        self.export_prompt_visible = False
        self.is_playing = False
        self.last_error: Optional[FullscreenError] = None
        self.idle_timer = IdleTimer(idle_timeout, self._hide_play_button, clock)

    @property
    def presenting(self) -> bool:
        return self.mode is PresentationMode.PRESENTING

    def begin_export(self) -> None:
        """Show the screen-recording instructions before entering presentation."""
        if not self.presenting:
            self.export_prompt_visible = True

    def cancel_export(self) -> None:
        self.export_prompt_visible = False

    def toggle_controls(self) -> None:
        if not self.presenting:
            self.controls_visible = not self.controls_visible

    def request_presentation(self) -> None:
        """Ask the host for fullscreen and enter presentation mode if granted.

        Raises:
            FullscreenError: If the host refused; the mode stays NORMAL
        """
        if self.presenting:
            return
        try:
            self.host.request_fullscreen()
        except FullscreenError as e:
            self.last_error = e
            print(f"PresentationController: Cannot enter fullscreen: {e}")
            raise

        self.last_error = None
        self.mode = PresentationMode.PRESENTING
        self.export_prompt_visible = False
        self.controls_visible = False
        self.chrome_visible = False
        self.play_button_visible = True
        if self.is_playing:
            self.idle_timer.arm()
        else:
            self.idle_timer.cancel()
        print("PresentationController: Presentation mode entered.")

    def exit_presentation(self) -> None:
        """Leave fullscreen on the user's request."""
        if not self.presenting:
            return
        self.host.exit_fullscreen()
        self._return_to_normal()

    def on_fullscreen_changed(self, is_fullscreen: bool) -> None:
        """Host notification; fullscreen may end without going through this class."""
        if self.presenting and not is_fullscreen:
            self._return_to_normal()

    def on_playing_changed(self, is_playing: bool) -> None:
        self.is_playing = is_playing
        if not self.presenting:
            return
        self.play_button_visible = True
        if is_playing:
            self.idle_timer.arm()
        else:
            self.idle_timer.cancel()

    def on_pointer_moved(self) -> None:
        if self.presenting and self.is_playing:
            self.play_button_visible = True
            self.idle_timer.arm()

    def tick(self) -> None:
        self.idle_timer.poll()

    def _hide_play_button(self) -> None:
        if self.presenting and self.is_playing:
            self.play_button_visible = False

    def _return_to_normal(self) -> None:
        self.idle_timer.cancel()
        self.mode = PresentationMode.NORMAL
        self.controls_visible = True
        self.chrome_visible = True
        self.play_button_visible = True
        print("PresentationController: Back to normal mode.")
