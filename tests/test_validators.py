"""Tests for standalone input validators."""

import random
import re

import pytest

from unachat.validators import (
    get_video_mime_type,
    get_youtube_video_id,
    is_safe_url,
    is_valid_phone,
    is_valid_url_image,
    is_valid_video_url,
    is_valid_yt_video,
    random_color,
)


class TestPhone:
    """Tests for is_valid_phone."""

    @pytest.mark.parametrize(
        "phone",
        ["600123456", "+34 600 123 456", "(91) 555-1234", "+1-202-555-0143", "91.555.12.34"],
    )
    def test_valid(self, phone):
        assert is_valid_phone(phone) is True

    @pytest.mark.parametrize("phone", ["", "abc", "555-abc", "+34 600 123 45x", None, 600123456])
    def test_invalid(self, phone):
        assert is_valid_phone(phone) is False


class TestRandomColor:
    """Tests for random_color."""

    def test_format(self):
        rng = random.Random(1234)
        for _ in range(200):
            assert re.match(r"^#[0-9a-f]{6}$", random_color(rng))

    def test_zero_padded(self):
        class LowRandom:
            def randrange(self, stop):
                return 0xFF

        assert random_color(LowRandom()) == "#0000ff"

    def test_seeded_is_reproducible(self):
        assert random_color(random.Random(7)) == random_color(random.Random(7))

    def test_default_rng(self):
        assert len(random_color()) == 7


class TestMediaPredicates:
    """Tests for the URL predicates built on the classifier."""

    def test_image(self):
        assert is_valid_url_image("https://example.com/a.png") is True
        assert is_valid_url_image("https://example.com/a.mp4") is False
        assert is_valid_url_image("ftp://example.com/a.png") is False

    def test_video(self):
        assert is_valid_video_url("https://example.com/a.mkv") is True
        assert is_valid_video_url("https://example.com/a.png") is False

    def test_youtube(self):
        assert is_valid_yt_video("https://youtu.be/dQw4w9WgXcQ") is True
        assert is_valid_yt_video("https://example.com/watch?v=dQw4w9WgXcQ") is False

    def test_youtube_video_id(self):
        assert get_youtube_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"
        assert get_youtube_video_id("https://example.com/page") is None

    @pytest.mark.parametrize(
        "url,mime",
        [
            ("https://example.com/a.webm", "video/webm"),
            ("https://example.com/a.ogg", "video/ogg"),
            ("https://example.com/a.mov", "video/mp4"),
            ("https://example.com/page", "video/mp4"),
            ("not a url", "video/mp4"),
        ],
    )
    def test_video_mime_type(self, url, mime):
        assert get_video_mime_type(url) == mime

    def test_safe_url(self):
        assert is_safe_url("https://example.com") is True
        assert is_safe_url("javascript:alert(1)") is False
