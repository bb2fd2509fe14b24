#!/usr/bin/env python3
"""
Test cases for video_sync.py module
"""

import pytest

from lyric_mv.errors import PlaybackCommandError
from lyric_mv.video_sync import SecondaryStreamSync


class FakeStream:
    def __init__(self, current_time=0.0, paused=True, duration=None, loop=True, fail_play=False):
        self.current_time = current_time
        self.paused = paused
        self.duration = duration
        self.loop = loop
        self.fail_play = fail_play
        self.calls = []

    def play(self):
        self.calls.append("play")
        if self.fail_play:
            raise PlaybackCommandError("autoplay blocked")
        self.paused = False

    def pause(self):
        self.calls.append("pause")
        self.paused = True

    def seek(self, time):
        self.calls.append(("seek", time))
        self.current_time = time


class TestSecondaryStreamSync:
    """Test cases for SecondaryStreamSync"""

    def test_small_drift_is_left_alone(self):
        stream = FakeStream(current_time=9.3, paused=False)
        result = SecondaryStreamSync(stream).sync(10.0, True)
        assert result.idle
        assert stream.calls == []

    def test_large_drift_is_corrected(self):
        stream = FakeStream(current_time=8.9, paused=False)
        result = SecondaryStreamSync(stream).sync(10.0, True)
        assert result.seek_to == pytest.approx(10.0)
        assert stream.current_time == pytest.approx(10.0)
        assert result.commands == ["seek"]

    def test_sync_is_idempotent(self):
        stream = FakeStream(current_time=3.0, paused=True)
        sync = SecondaryStreamSync(stream)

        first = sync.sync(12.0, True)
        second = sync.sync(12.0, True)

        assert first.commands == ["play", "seek"]
        assert second.idle

    def test_mirrors_pause(self):
        stream = FakeStream(current_time=5.0, paused=False)
        result = SecondaryStreamSync(stream).sync(5.0, False)
        assert result.commands == ["pause"]
        assert stream.paused

    def test_rejected_play_is_not_retried(self):
        stream = FakeStream(current_time=1.0, paused=True, fail_play=True)
        sync = SecondaryStreamSync(stream)

        first = sync.sync(1.0, True)
        second = sync.sync(1.1, True)

        assert isinstance(first.error, PlaybackCommandError)
        assert sync.last_error is first.error
        assert second.error is None
        assert stream.calls.count("play") == 1

    def test_retry_play_allows_another_attempt(self):
        stream = FakeStream(current_time=1.0, paused=True, fail_play=True)
        sync = SecondaryStreamSync(stream)
        sync.sync(1.0, True)

        stream.fail_play = False
        sync.retry_play()
        result = sync.sync(1.0, True)

        assert result.commands == ["play"]
        assert not stream.paused
        assert sync.last_error is None

    def test_pause_clears_rejection(self):
        stream = FakeStream(current_time=1.0, paused=True, fail_play=True)
        sync = SecondaryStreamSync(stream)
        sync.sync(1.0, True)

        stream.fail_play = False
        sync.sync(1.0, False)
        result = sync.sync(1.0, True)

        assert "play" in result.commands

    def test_seek_still_corrects_when_play_rejected(self):
        stream = FakeStream(current_time=0.0, paused=True, fail_play=True)
        result = SecondaryStreamSync(stream).sync(30.0, True)
        assert result.error is not None
        assert result.seek_to == pytest.approx(30.0)

    def test_looping_stream_wraps_target(self):
        stream = FakeStream(current_time=5.0, paused=False, duration=20.0)
        sync = SecondaryStreamSync(stream)

        assert sync.target_time(45.0) == pytest.approx(5.0)
        assert sync.sync(45.0, True).idle

    def test_loop_point_is_not_drift(self):
        stream = FakeStream(current_time=9.98, paused=False, duration=10.0)
        sync = SecondaryStreamSync(stream)

        assert sync.drift(10.08) == pytest.approx(-0.1)
        assert sync.sync(10.08, True).idle
        assert stream.calls == []

    def test_real_drift_across_loop_point_is_corrected(self):
        stream = FakeStream(current_time=9.0, paused=False, duration=10.0)
        result = SecondaryStreamSync(stream).sync(10.5, True)
        assert result.seek_to == pytest.approx(0.5)

    def test_non_looping_stream_uses_raw_time(self):
        stream = FakeStream(current_time=5.0, paused=False, duration=20.0, loop=False)
        sync = SecondaryStreamSync(stream)
        assert sync.target_time(45.0) == pytest.approx(45.0)

    def test_custom_tolerance(self):
        stream = FakeStream(current_time=9.8, paused=False)
        result = SecondaryStreamSync(stream, tolerance=0.1).sync(10.0, True)
        assert result.commands == ["seek"]
