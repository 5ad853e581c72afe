"""Tests for URL classifier module."""

from urllib.parse import urlsplit

import pytest

from unachat.classifier import (
    MediaClassification,
    MediaClassifier,
    MediaKind,
    UnparsableUrlError,
    classify,
    file_extension,
    parse_url,
)


class TestMediaClassification:
    """Tests for MediaClassification dataclass."""

    def test_defaults(self):
        result = MediaClassification(MediaKind.LINK)
        assert result.video_id is None
        assert result.mime_type is None

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (MediaKind.YOUTUBE, True),
            (MediaKind.IMAGE, True),
            (MediaKind.VIDEO, True),
            (MediaKind.LINK, False),
            (MediaKind.UNSAFE, False),
        ],
    )
    def test_is_media(self, kind, expected):
        assert MediaClassification(kind).is_media is expected

    def test_kind_values_are_strings(self):
        """Test that kinds compare equal to their wire names."""
        assert MediaKind.YOUTUBE == "youtube"
        assert MediaKind("image") is MediaKind.IMAGE


class TestParseUrl:
    """Tests for parse_url function."""

    def test_valid_url(self):
        parts = parse_url("https://example.com/a/b.png?x=1")
        assert parts.scheme == "https"
        assert parts.hostname == "example.com"
        assert parts.path == "/a/b.png"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "javascript:alert(1)",
            "http://",
            "//example.com/path",
            "http://[::1",
            "http://example.com:99999/",
            "http://example.com:port/",
        ],
    )
    def test_invalid_url_raises(self, url):
        with pytest.raises(UnparsableUrlError):
            parse_url(url)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_url("http://[::1")


class TestFileExtension:
    """Tests for file_extension function."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/cat.png", "png"),
            ("/photos/CAT.JPG", "jpg"),
            ("/archive.tar.gz", "gz"),
            ("/dir.d/file", ""),
            ("/no-extension", ""),
            ("", ""),
            ("/trailing/", ""),
        ],
    )
    def test_extension(self, path, expected):
        assert file_extension(path) == expected


class TestYouTube:
    """Tests for YouTube link detection."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtube.com/watch?v=dQw4w9WgXcQ&t=10",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
            "http://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ?t=5",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube.com/v/dQw4w9WgXcQ",
            "https://WWW.YOUTUBE.COM/watch?v=dQw4w9WgXcQ",
        ],
    )
    def test_youtube_urls(self, url):
        result = classify(url)
        assert result.kind is MediaKind.YOUTUBE
        assert result.video_id == "dQw4w9WgXcQ"

    def test_id_with_dash_and_underscore(self):
        result = classify("https://youtu.be/qYwlqx-JLok")
        assert result.kind is MediaKind.YOUTUBE
        assert result.video_id == "qYwlqx-JLok"

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=short",
            "https://www.youtube.com/watch?v=dQw4w9WgXcQextra",
            "https://www.youtube.com/watch",
            "https://www.youtube.com/channel/UCxyz",
            "https://youtu.be/",
            "https://evil.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com.evil.com/watch?v=dQw4w9WgXcQ",
            "https://notyoutu.be/dQw4w9WgXcQ",
        ],
    )
    def test_not_youtube_is_link(self, url):
        """Test that malformed ids and lookalike hosts fall through to a plain link."""
        result = classify(url)
        assert result.kind is MediaKind.LINK
        assert result.video_id is None

    def test_video_id_from_parts(self):
        classifier = MediaClassifier()
        parts = urlsplit("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        assert classifier.youtube_video_id(parts) == "dQw4w9WgXcQ"
        assert classifier.youtube_video_id(urlsplit("https://example.com/x")) is None


class TestImages:
    """Tests for image detection by extension."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/cat.jpg",
            "https://example.com/cat.jpeg",
            "https://example.com/cat.png",
            "https://example.com/cat.gif",
            "https://example.com/cat.bmp",
            "https://example.com/CAT.PNG",
            "https://example.com/img/cat.jpg?size=large#top",
            "http://example.com/cat.gif",
        ],
    )
    def test_image_urls(self, url):
        result = classify(url)
        assert result.kind is MediaKind.IMAGE
        assert result.video_id is None
        assert result.mime_type is None

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/cat.svg",
            "https://example.com/cat.webp",
            "https://example.com/cat.jpg/page",
            "https://example.com/page?file=cat.jpg",
        ],
    )
    def test_not_images(self, url):
        assert classify(url).kind is MediaKind.LINK


class TestVideos:
    """Tests for video detection and MIME types."""

    @pytest.mark.parametrize(
        "url,mime",
        [
            ("https://example.com/clip.mp4", "video/mp4"),
            ("https://example.com/clip.webm", "video/webm"),
            ("https://example.com/clip.ogg", "video/ogg"),
            ("https://example.com/clip.WEBM", "video/webm"),
            ("https://example.com/clip.mov", "video/mp4"),
            ("https://example.com/clip.avi", "video/mp4"),
            ("https://example.com/clip.wmv", "video/mp4"),
            ("https://example.com/clip.flv", "video/mp4"),
            ("https://example.com/clip.mkv", "video/mp4"),
        ],
    )
    def test_video_urls(self, url, mime):
        result = classify(url)
        assert result.kind is MediaKind.VIDEO
        assert result.mime_type == mime

    def test_ogv_is_plain_link(self):
        assert classify("https://example.com/video.ogv").kind is MediaKind.LINK

    def test_uppercase_jpeg_is_image(self):
        assert classify("https://example.com/image.JPEG").kind is MediaKind.IMAGE

    def test_video_mime_type_unknown_extension(self):
        assert MediaClassifier().video_mime_type("xyz") == "video/mp4"

    def test_video_mime_type_case_insensitive(self):
        assert MediaClassifier().video_mime_type("OGG") == "video/ogg"


class TestUnsafe:
    """Tests for URLs that must never become links or media."""

    @pytest.mark.parametrize(
        "url",
        [
            "javascript:alert(1)",
            "data:text/html;base64,PHNjcmlwdD4=",
            "ftp://example.com/cat.jpg",
            "file:///etc/passwd",
            "vbscript://example.com/x",
            "",
            "   ",
            "not a url",
            "http://",
            "http://[::1",
            "http://example.com:99999/cat.jpg",
        ],
    )
    def test_unsafe_urls(self, url):
        assert classify(url).kind is MediaKind.UNSAFE

    def test_classify_never_raises(self):
        for url in ("http://[", "https://:80", "\x00", "h" * 10000, "https://%zz"):
            assert isinstance(classify(url), MediaClassification)


class TestPrecedence:
    """Tests for rule order."""

    def test_rules_in_order(self):
        classifier = MediaClassifier()
        assert classifier.rules == (
            classifier._match_unsafe,
            classifier._match_youtube,
            classifier._match_image,
            classifier._match_video,
        )

    def test_unsafe_scheme_beats_media_extension(self):
        assert classify("ftp://example.com/clip.mp4").kind is MediaKind.UNSAFE

    def test_youtube_beats_extension(self):
        result = classify("https://youtu.be/dQw4w9WgXcQ?f=cover.jpg")
        assert result.kind is MediaKind.YOUTUBE

    def test_plain_link(self):
        result = classify("https://example.com/page")
        assert result == MediaClassification(MediaKind.LINK)
        assert result.is_media is False

    def test_custom_rule(self):
        """Test that a subclass can extend the rule list."""

        class NoImages(MediaClassifier):
            def __init__(self):
                super().__init__()
                self.rules = (self._match_unsafe, self._match_youtube, self._match_video)

        assert NoImages().classify("https://example.com/cat.png").kind is MediaKind.LINK
