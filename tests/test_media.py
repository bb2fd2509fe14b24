#!/usr/bin/env python3
"""
Test cases for media.py module
"""

import unittest.mock as mock

import ffmpeg
import pytest

from lyric_mv.media import MediaProbe


class TestMediaProbe:
    """Test cases for the MediaProbe class"""

    @pytest.fixture
    def probe(self):
        return MediaProbe(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg")

    def test_ffprobe_next_to_ffmpeg(self, probe):
        assert probe.ffprobe_path == "/opt/ffmpeg/bin/ffprobe"
        assert MediaProbe().ffprobe_path == "ffprobe"

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_duration_from_format(self, mock_ffmpeg, probe):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.probe.return_value = {"format": {"duration": "183.25"}}

        assert probe.duration("song.mp3") == 183.25
        mock_ffmpeg.probe.assert_called_once_with("song.mp3", cmd="/opt/ffmpeg/bin/ffprobe")

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_duration_from_stream(self, mock_ffmpeg, probe):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.probe.return_value = {"format": {}, "streams": [{"codec_type": "audio", "duration": "12.5"}]}

        assert probe.duration("song.m4a") == 12.5

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_duration_probe_error(self, mock_ffmpeg, probe):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.probe.side_effect = ffmpeg.Error("ffprobe", b"", b"Invalid data found")

        assert probe.duration("broken.mp3") is None

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_duration_ffprobe_missing(self, mock_ffmpeg, probe):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.probe.side_effect = FileNotFoundError("ffprobe")

        assert probe.duration("song.mp3") is None

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_video_size(self, mock_ffmpeg, probe):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.probe.return_value = {"streams": [{"codec_type": "video", "width": 1920, "height": 1080}]}

        assert probe.video_size("clip.mp4") == (1920, 1080)

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_playable_file_is_not_converted(self, mock_ffmpeg, probe):
        assert probe.ensure_playable("song.MP3") == "song.MP3"
        mock_ffmpeg.input.assert_not_called()

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_convert_to_wav(self, mock_ffmpeg, probe, tmp_path):
        mock_ffmpeg.Error = ffmpeg.Error

        result = probe.ensure_playable("music/song.m4a", output_dir=str(tmp_path))

        assert result == str(tmp_path / "song.wav")
        mock_ffmpeg.input.assert_called_once_with("music/song.m4a")
        mock_ffmpeg.input.return_value.output.assert_called_once_with(result, ar=44100, ac=2, format="wav")
        mock_ffmpeg.input.return_value.output.return_value.run.assert_called_once_with(
            cmd="/opt/ffmpeg/bin/ffmpeg", quiet=True, overwrite_output=True
        )

    @mock.patch("lyric_mv.media.ffmpeg")
    def test_convert_to_wav_error(self, mock_ffmpeg, probe, tmp_path):
        mock_ffmpeg.Error = ffmpeg.Error
        mock_ffmpeg.input.return_value.output.return_value.run.side_effect = ffmpeg.Error("ffmpeg", b"", b"boom")

        assert probe.ensure_playable("song.m4a", output_dir=str(tmp_path)) is None
