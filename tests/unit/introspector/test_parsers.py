"""Tests for ffprobe output parsing and normalization."""

import pytest

from shelfscan.domain import ProbeMode
from shelfscan.introspector.interface import NoMediaStream, ProbeProcessFailure
from shelfscan.introspector.parsers import (
    decode_ffprobe_output,
    is_cover_stream,
    normalize_tags,
    parse_chapters,
    parse_float,
    parse_int,
    parse_probe_output,
    sanitize_string,
)
from shelfscan.introspector.schema import (
    FfprobeChapter,
    FfprobeDisposition,
    FfprobeStream,
)


class TestNumberParsing:
    """Tests for parse_float and parse_int."""

    def test_parse_float_values(self):
        """Numeric strings parse; absent or garbage values are None."""
        assert parse_float("3600.500000") == 3600.5
        assert parse_float("0") == 0.0
        assert parse_float(None) is None
        assert parse_float("N/A") is None

    def test_parse_float_rejects_nan_and_negative(self):
        """NaN and negative values are treated as absent."""
        assert parse_float("nan") is None
        assert parse_float("-1.5") is None

    def test_parse_int_truncates(self):
        """parse_int accepts integer and decimal strings."""
        assert parse_int("44100") == 44100
        assert parse_int("128000.7") == 128000
        assert parse_int("abc") is None


class TestSanitizeString:
    """Tests for sanitize_string."""

    def test_none_returns_none(self):
        assert sanitize_string(None) is None

    def test_replaces_lone_surrogates(self):
        """Invalid code points are replaced instead of raising."""
        assert sanitize_string("bad\udcffname") == "bad?name"

    def test_valid_string_unchanged(self):
        assert sanitize_string("Café – Ünïcödé") == "Café – Ünïcödé"


class TestDecodeFfprobeOutput:
    """Tests for decode_ffprobe_output."""

    def test_decodes_fixture(self, ffprobe_json):
        """A real ffprobe document validates."""
        output = decode_ffprobe_output(ffprobe_json("audiobook_m4b"))

        assert output.format is not None
        assert output.format.duration == "3600.500000"
        assert len(output.streams) == 2
        assert len(output.chapters) == 3

    def test_numbers_are_accepted_as_strings(self):
        """Numeric JSON values for string fields are converted."""
        output = decode_ffprobe_output(
            '{"format": {"duration": 12.5, "bit_rate": 64000}, "streams": []}'
        )

        assert output.format is not None
        assert output.format.duration == "12.5"
        assert output.format.bit_rate == "64000"

    def test_unknown_keys_ignored(self):
        """Keys shelfscan does not read are ignored."""
        output = decode_ffprobe_output(
            '{"format": {"nb_programs": 0, "probe_score": 100}, "programs": []}'
        )
        assert output.format is not None

    @pytest.mark.parametrize(
        "stdout",
        [
            "",
            "   \n",
            "not json",
            '{"streams": []}',
            '{"format": {}, "streams": "not a list"}',
        ],
    )
    def test_unusable_output_is_process_failure(self, stdout):
        """Empty, invalid or format-less output raises ProbeProcessFailure."""
        with pytest.raises(ProbeProcessFailure):
            decode_ffprobe_output(stdout)


class TestIsCoverStream:
    """Tests for is_cover_stream."""

    @pytest.mark.parametrize(
        ("codec", "attached_pic", "expected"),
        [
            ("mjpeg", 0, True),
            ("png", 0, True),
            ("PNG", 0, True),
            ("h264", 1, True),
            ("h264", 0, False),
            (None, 0, False),
        ],
    )
    def test_detection(self, codec, attached_pic, expected):
        """Attached pictures and image codecs count as cover art."""
        stream = FfprobeStream(
            codec_type="video",
            codec_name=codec,
            disposition=FfprobeDisposition(attached_pic=attached_pic),
        )
        assert is_cover_stream(stream) is expected


class TestParseChapters:
    """Tests for parse_chapters."""

    def test_indexes_in_file_order_with_default_titles(self):
        """Missing or blank titles become "Chapter N" (1-based)."""
        chapters = parse_chapters(
            [
                FfprobeChapter(start_time="0", end_time="10", tags={"title": "Intro"}),
                FfprobeChapter(start_time="10", end_time="20", tags={"title": "  "}),
                FfprobeChapter(start_time="20", end_time="30"),
            ]
        )

        assert [c.index for c in chapters] == [0, 1, 2]
        assert [c.title for c in chapters] == ["Intro", "Chapter 2", "Chapter 3"]
        assert chapters[2].start_seconds == 20.0
        assert chapters[2].end_seconds == 30.0

    def test_empty(self):
        assert parse_chapters([]) == ()


class TestNormalizeTags:
    """Tests for normalize_tags."""

    def test_source_keys_matched_case_insensitively(self):
        """Mixed-case source keys map onto the normalized keys."""
        tags = normalize_tags(
            {"TITLE": "Book", "Album_Artist": "Narrator", "Series-Part": "3"},
            ProbeMode.MINIMAL,
        )

        assert tags == {
            "tagTitle": "Book",
            "tagAlbumArtist": "Narrator",
            "tagSeriesPart": "3",
        }

    def test_first_alias_with_value_wins(self):
        """Aliases are tried in order; empty values are skipped."""
        tags = normalize_tags(
            {"date": "", "year": "2001", "album-artist": "B", "album_artist": "A"},
            ProbeMode.MINIMAL,
        )

        assert tags["tagDate"] == "2001"
        assert tags["tagAlbumArtist"] == "A"

    def test_minimal_mode_drops_unmapped_keys(self):
        """MINIMAL keeps only mapped keys."""
        tags = normalize_tags({"title": "Book", "encoder": "Lavf"}, ProbeMode.MINIMAL)
        assert tags == {"tagTitle": "Book"}

    def test_full_mode_keeps_unmapped_keys_casefolded(self):
        """FULL keeps unmapped keys under their casefolded name."""
        tags = normalize_tags(
            {"title": "Book", "ENCODER": "Lavf", "series": "Saga"}, ProbeMode.FULL
        )
        assert tags == {"tagTitle": "Book", "tagSeries": "Saga", "encoder": "Lavf"}

    def test_non_string_values_converted(self):
        """Numbers in tags are stringified."""
        assert normalize_tags({"track": 3}, ProbeMode.MINIMAL) == {"tagTrack": "3"}

    def test_oversized_entries_dropped(self, caplog):
        """Keys over 255 chars and values over 4096 chars are skipped."""
        tags = normalize_tags(
            {"k" * 300: "value", "title": "x" * 5000, "album": "Album"},
            ProbeMode.FULL,
            "/lib/book.m4b",
        )

        assert tags == {"tagAlbum": "Album"}
        assert "exceeds max length" in caplog.text
        assert "/lib/book.m4b" in caplog.text


class TestParseProbeOutput:
    """Tests for parse_probe_output against ffprobe fixtures."""

    def test_audiobook(self, ffprobe_json):
        """An m4b with chapters and cover art normalizes fully."""
        output = decode_ffprobe_output(ffprobe_json("audiobook_m4b"))

        data = parse_probe_output(output, ProbeMode.MINIMAL, "/lib/book.m4b")

        assert data.format == "mov,mp4,m4a,3gp,3g2,mj2"
        assert data.duration_seconds == 3600.5
        assert data.size_bytes == 57608000
        assert data.bit_rate == 128000
        assert data.audio_stream is not None
        assert data.audio_stream.codec == "aac"
        assert data.audio_stream.sample_rate == 44100
        assert data.audio_stream.channels == 2
        assert data.audio_stream.channel_layout == "stereo"
        assert data.audio_stream.bit_rate == 125588
        assert data.audio_stream.time_base == "1/44100"
        assert data.audio_stream.language == "eng"
        assert data.video_stream is not None
        assert data.video_stream.codec == "mjpeg"
        assert data.embedded_cover_present is True
        assert [c.title for c in data.chapters] == [
            "Opening Credits",
            "The Road",
            "Chapter 3",
        ]
        assert data.chapters[-1].end_seconds == 3600.5
        assert data.tags == {
            "tagTitle": "The Book",
            "tagAlbum": "The Book",
            "tagArtist": "Jane Author",
            "tagAlbumArtist": "John Narrator",
            "tagGenre": "Audiobook",
            "tagDate": "2020",
            "tagSeries": "The Saga",
            "tagSeriesPart": "2",
        }

    def test_audiobook_full_mode_keeps_extra_tags(self, ffprobe_json):
        """FULL mode adds the unmapped container tags."""
        output = decode_ffprobe_output(ffprobe_json("audiobook_m4b"))

        data = parse_probe_output(output, ProbeMode.FULL)

        assert data.tags["encoder"] == "Lavf60.3.100"
        assert data.tags["major_brand"] == "M4A "
        assert data.tags["tagTitle"] == "The Book"

    def test_bit_rate_falls_back_to_audio_stream(self, ffprobe_json):
        """A zero container bit rate is replaced by the audio stream's."""
        output = decode_ffprobe_output(ffprobe_json("mp3_no_container_bitrate"))

        data = parse_probe_output(output)

        assert data.bit_rate == 192000
        assert data.video_stream is None
        assert data.embedded_cover_present is False
        assert data.chapters == ()
        assert data.tags == {
            "tagTitle": "Song",
            "tagAlbumArtist": "The Band",
            "tagTrack": "1/12",
            "tagDate": "1999",
        }

    def test_first_stream_of_each_type_is_primary(self, ffprobe_json):
        """The first audio and first video stream are selected."""
        output = decode_ffprobe_output(ffprobe_json("video_mkv"))

        data = parse_probe_output(output)

        assert data.video_stream is not None
        assert data.video_stream.codec == "h264"
        assert data.audio_stream is not None
        assert data.audio_stream.codec == "opus"
        assert data.audio_stream.channels == 6
        assert data.audio_stream.language == "jpn"
        assert data.embedded_cover_present is False

    def test_no_media_stream_raises(self, ffprobe_json):
        """A file with only data streams raises NoMediaStream."""
        output = decode_ffprobe_output(ffprobe_json("no_media_streams"))

        with pytest.raises(NoMediaStream) as exc_info:
            parse_probe_output(output, file_path="/lib/notes.bin")

        assert "/lib/notes.bin" in str(exc_info.value)
        assert exc_info.value.retryable is False

    def test_missing_numbers_default_to_zero(self):
        """Absent duration, size and bit rate become zero."""
        output = decode_ffprobe_output(
            '{"format": {}, "streams": [{"codec_type": "audio"}]}'
        )

        data = parse_probe_output(output)

        assert data.duration_seconds == 0.0
        assert data.size_bytes == 0
        assert data.bit_rate == 0
        assert data.format is None
