#!/usr/bin/env python3
"""
Test cases for player.py module
"""

import unittest.mock as mock

import pygame
import pytest

from lyric_mv.errors import PlaybackCommandError
from lyric_mv.player import SONG_ENDED, AudioPlayer


@pytest.fixture
def mock_mixer():
    """Replace pygame.mixer so no audio device is opened"""
    with mock.patch("lyric_mv.player.pygame.mixer") as mixer:
        mixer.get_init.return_value = True
        mixer.music.get_pos.return_value = 0
        mixer.music.get_busy.return_value = True
        yield mixer


@pytest.fixture
def player(mock_mixer):
    audio = AudioPlayer()
    assert audio.load("song.wav", duration=200.0)
    return audio


class TestAudioPlayer:
    """Test cases for the AudioPlayer class"""

    def test_init_starts_mixer_when_needed(self, mock_mixer):
        mock_mixer.get_init.return_value = False
        AudioPlayer()
        mock_mixer.init.assert_called_once()

    def test_load(self, player, mock_mixer):
        mock_mixer.music.load.assert_called_once_with("song.wav")
        assert player.total_duration == 200.0
        assert player.current_time == 0.0
        assert not player.is_playing

    def test_load_measures_duration(self, mock_mixer):
        mock_mixer.Sound.return_value.get_length.return_value = 42.5
        audio = AudioPlayer()
        assert audio.load("song.ogg")
        assert audio.total_duration == 42.5

    def test_load_failure(self, mock_mixer):
        mock_mixer.music.load.side_effect = pygame.error("Unrecognized audio format")
        audio = AudioPlayer()
        assert not audio.load("broken.xyz")
        assert audio.audio_path is None

    def test_play_and_clock(self, player, mock_mixer):
        player.play()
        mock_mixer.music.play.assert_called_once_with(start=0.0)

        mock_mixer.music.get_pos.return_value = 1500
        snapshot = player.snapshot()

        assert snapshot.time == pytest.approx(1.5)
        assert snapshot.duration == 200.0
        assert snapshot.is_playing

    def test_play_without_audio(self, mock_mixer):
        with pytest.raises(PlaybackCommandError):
            AudioPlayer().play()

    def test_play_refused(self, player, mock_mixer):
        mock_mixer.music.play.side_effect = pygame.error("no device")
        with pytest.raises(PlaybackCommandError):
            player.play()
        assert not player.is_playing

    def test_pause_and_resume(self, player, mock_mixer):
        player.play()
        player.pause()
        mock_mixer.music.pause.assert_called_once()
        assert not player.is_playing

        player.play()
        mock_mixer.music.unpause.assert_called_once()
        assert mock_mixer.music.play.call_count == 1

    def test_toggle(self, player):
        assert player.toggle()
        assert not player.toggle()

    def test_seek_while_playing(self, player, mock_mixer):
        player.play()
        mock_mixer.music.get_pos.return_value = 0

        assert player.seek(30.0) == 30.0

        mock_mixer.music.play.assert_called_with(start=30.0)
        mock_mixer.music.get_pos.return_value = 500
        assert player.current_time == pytest.approx(30.5)

    def test_seek_while_paused_restarts_on_play(self, player, mock_mixer):
        player.play()
        player.pause()
        mock_mixer.music.get_pos.return_value = 9999

        player.seek(50.0)
        assert player.current_time == 50.0

        player.play()
        mock_mixer.music.play.assert_called_with(start=50.0)
        mock_mixer.music.unpause.assert_not_called()

    def test_seek_is_clamped(self, player):
        assert player.seek(-5.0) == 0.0
        assert player.seek(500.0) == 200.0

    def test_current_time_clamped_to_duration(self, player, mock_mixer):
        player.play()
        mock_mixer.music.get_pos.return_value = 300000
        assert player.current_time == 200.0

    def test_update_detects_end(self, player, mock_mixer):
        player.play()
        assert player.update() is None

        mock_mixer.music.get_busy.return_value = False

        assert player.update() == SONG_ENDED
        assert not player.is_playing
        assert player.current_time == 200.0

    def test_play_after_end_restarts(self, player, mock_mixer):
        player.play()
        mock_mixer.music.get_busy.return_value = False
        player.update()

        player.play()

        mock_mixer.music.play.assert_called_with(start=0.0)

    def test_quit_player(self, player, mock_mixer):
        player.quit_player()
        mock_mixer.music.stop.assert_called()
        mock_mixer.music.unload.assert_called_once()
