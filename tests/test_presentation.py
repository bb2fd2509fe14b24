#!/usr/bin/env python3
"""
Test cases for presentation.py module
"""

import pytest

from lyric_mv.errors import FullscreenError
from lyric_mv.presentation import IdleTimer, PresentationController, PresentationMode


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeHost:
    def __init__(self, refuse=False):
        self.refuse = refuse
        self.fullscreen = False
        self.exit_calls = 0

    def request_fullscreen(self):
        if self.refuse:
            raise FullscreenError("not allowed")
        self.fullscreen = True

    def exit_fullscreen(self):
        self.exit_calls += 1
        self.fullscreen = False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def controller(host, clock):
    return PresentationController(host, idle_timeout=2.0, clock=clock)


class TestIdleTimer:
    """Test cases for IdleTimer"""

    def test_fires_once_after_deadline(self, clock):
        fired = []
        timer = IdleTimer(2.0, lambda: fired.append(True), clock)
        timer.arm()

        clock.advance(1.9)
        assert not timer.poll()
        clock.advance(0.1)
        assert timer.poll()
        assert not timer.poll()
        assert fired == [True]

    def test_rearm_pushes_deadline(self, clock):
        fired = []
        timer = IdleTimer(2.0, lambda: fired.append(True), clock)
        timer.arm()
        clock.advance(1.5)
        timer.arm()
        clock.advance(1.5)
        timer.poll()
        assert fired == []

    def test_cancel(self, clock):
        fired = []
        timer = IdleTimer(2.0, lambda: fired.append(True), clock)
        timer.arm()
        timer.cancel()
        clock.advance(5.0)
        timer.poll()
        assert fired == []
        assert not timer.armed


class TestPresentationController:
    """Test cases for PresentationController"""

    def test_starts_normal(self, controller):
        assert controller.mode is PresentationMode.NORMAL
        assert controller.controls_visible
        assert controller.chrome_visible

    def test_enter_while_playing(self, controller, host):
        controller.on_playing_changed(True)
        controller.request_presentation()

        assert host.fullscreen
        assert controller.mode is PresentationMode.PRESENTING
        assert not controller.controls_visible
        assert not controller.chrome_visible
        assert controller.play_button_visible
        assert controller.idle_timer.armed

    def test_play_button_hides_after_idle(self, controller, clock):
        controller.on_playing_changed(True)
        controller.request_presentation()

        clock.advance(2.0)
        controller.tick()

        assert not controller.play_button_visible

    def test_pointer_movement_restores_button(self, controller, clock):
        controller.on_playing_changed(True)
        controller.request_presentation()
        clock.advance(2.5)
        controller.tick()

        controller.on_pointer_moved()
        assert controller.play_button_visible

        clock.advance(1.0)
        controller.tick()
        assert controller.play_button_visible
        clock.advance(1.0)
        controller.tick()
        assert not controller.play_button_visible

    def test_button_stays_visible_while_paused(self, controller, clock):
        controller.request_presentation()
        assert not controller.idle_timer.armed

        clock.advance(10.0)
        controller.tick()
        assert controller.play_button_visible

    def test_pausing_shows_button(self, controller, clock):
        controller.on_playing_changed(True)
        controller.request_presentation()
        clock.advance(3.0)
        controller.tick()

        controller.on_playing_changed(False)

        assert controller.play_button_visible
        assert not controller.idle_timer.armed

    def test_host_exit_returns_to_normal(self, controller):
        controller.on_playing_changed(True)
        controller.request_presentation()

        controller.on_fullscreen_changed(False)

        assert controller.mode is PresentationMode.NORMAL
        assert controller.controls_visible
        assert controller.chrome_visible
        assert controller.play_button_visible
        assert not controller.idle_timer.armed

    def test_user_exit(self, controller, host):
        controller.request_presentation()
        controller.exit_presentation()
        assert host.exit_calls == 1
        assert controller.mode is PresentationMode.NORMAL

    def test_refused_fullscreen(self, clock):
        controller = PresentationController(FakeHost(refuse=True), clock=clock)
        controller.on_playing_changed(True)

        with pytest.raises(FullscreenError):
            controller.request_presentation()

        assert controller.mode is PresentationMode.NORMAL
        assert controller.chrome_visible
        assert isinstance(controller.last_error, FullscreenError)

    def test_toggle_controls_only_in_normal(self, controller):
        controller.toggle_controls()
        assert not controller.controls_visible
        controller.toggle_controls()
        controller.request_presentation()
        controller.toggle_controls()
        assert not controller.controls_visible

    def test_export_prompt(self, controller):
        controller.begin_export()
        assert controller.export_prompt_visible
        controller.request_presentation()
        assert not controller.export_prompt_visible

        controller.begin_export()
        assert not controller.export_prompt_visible

    def test_cancel_export(self, controller):
        controller.begin_export()
        controller.cancel_export()
        assert not controller.export_prompt_visible
        assert controller.mode is PresentationMode.NORMAL

    def test_fullscreen_change_ignored_in_normal(self, controller):
        controller.on_fullscreen_changed(False)
        assert controller.mode is PresentationMode.NORMAL
