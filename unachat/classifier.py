"""URL classifier deciding how a link in a chat message is rendered."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import SplitResult, parse_qs, urlsplit

from .logger import get_logger

logger = get_logger(__name__)


class UnparsableUrlError(ValueError):
    """Raised when a URL token cannot be parsed as an absolute URL."""

    pass


class MediaKind(str, Enum):
    """Rendering strategy for a URL."""

    YOUTUBE = "youtube"
    IMAGE = "image"
    VIDEO = "video"
    UNSAFE = "unsafe"
    LINK = "link"


@dataclass(frozen=True)
class MediaClassification:
    """
    Result of URL classification.

    ``video_id`` is set for YOUTUBE only, ``mime_type`` for VIDEO only.
    """

    kind: MediaKind
    video_id: str | None = None
    mime_type: str | None = None

    @property
    def is_media(self) -> bool:
        """Check if the URL is rendered as embedded media rather than text or a link."""
        return self.kind in (MediaKind.YOUTUBE, MediaKind.IMAGE, MediaKind.VIDEO)


UNSAFE = MediaClassification(MediaKind.UNSAFE)
LINK = MediaClassification(MediaKind.LINK)
IMAGE = MediaClassification(MediaKind.IMAGE)


def parse_url(url: str) -> SplitResult:
    """
    Parse an absolute URL.

    Raises:
        UnparsableUrlError: If the URL is malformed, has no scheme or no host,
            or carries an invalid port.
    """
    try:
        parts = urlsplit(url)
        # Accessing the port validates it
        parts.port
    except ValueError as e:
        raise UnparsableUrlError(f"Invalid URL {url!r}: {e}") from e

    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise UnparsableUrlError(f"Invalid URL {url!r}: missing scheme or host")
    return parts


def file_extension(path: str) -> str:
    """Lowercased file extension of the last path segment, without the dot."""
    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return ""
    return last_segment.rsplit(".", 1)[-1].lower()


class MediaClassifier:
    """
    URL classifier based on scheme, host and file extension.

    Rules are tried in order and the first match wins, since URL shapes
    overlap (a YouTube link is also a plain https link):
    1. Non-http(s) scheme: UNSAFE
    2. YouTube watch/embed/short links: YOUTUBE with the video id
    3. Image file extension: IMAGE
    4. Video file extension: VIDEO with its MIME type
    5. Anything else: LINK
    """

    SAFE_SCHEMES = ("http", "https")

    YOUTUBE_HOSTS = ("youtube.com", "www.youtube.com", "m.youtube.com")
    YOUTUBE_SHORT_HOSTS = ("youtu.be", "www.youtu.be")
    # /embed/<id> and /v/<id>
    YOUTUBE_PATH_RE = re.compile(r"^/(?:embed|v)/([A-Za-z0-9_-]{11})/?$")
    YOUTUBE_SHORT_PATH_RE = re.compile(r"^/([A-Za-z0-9_-]{11})/?$")
    VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

    IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp"})
    VIDEO_EXTENSIONS = frozenset({"mp4", "webm", "ogg", "mov", "avi", "wmv", "flv", "mkv"})

    VIDEO_MIME_TYPES: dict[str, str] = {
        "mp4": "video/mp4",
        "webm": "video/webm",
        "ogg": "video/ogg",
    }
    # mov, avi, wmv, flv and mkv have no dedicated entry
    DEFAULT_VIDEO_MIME_TYPE = "video/mp4"

    def __init__(self):
        self.rules: tuple[Callable[[SplitResult], MediaClassification | None], ...] = (
            self._match_unsafe,
            self._match_youtube,
            self._match_image,
            self._match_video,
        )

    def classify(self, url: str) -> MediaClassification:
        """
        Classify a URL. Never raises.

        Args:
            url: Raw (unescaped) URL.

        Returns:
            MediaClassification; unparsable URLs are UNSAFE.
        """
        try:
            parts = parse_url(url)
        except UnparsableUrlError as e:
            logger.debug("Rejecting URL: %s", e)
            return UNSAFE

        for rule in self.rules:
            result = rule(parts)
            if result is not None:
                return result
        return LINK

    def youtube_video_id(self, parts: SplitResult) -> str | None:
        """Extract the 11 character video id from a parsed YouTube URL."""
        host = (parts.hostname or "").lower()

        if host in self.YOUTUBE_SHORT_HOSTS:
            match = self.YOUTUBE_SHORT_PATH_RE.match(parts.path)
            return match.group(1) if match else None

        if host not in self.YOUTUBE_HOSTS:
            return None

        if parts.path.rstrip("/") == "/watch":
            candidates = parse_qs(parts.query).get("v", [])
            if candidates and self.VIDEO_ID_RE.match(candidates[0]):
                return candidates[0]
            return None

        match = self.YOUTUBE_PATH_RE.match(parts.path)
        return match.group(1) if match else None

    def video_mime_type(self, extension: str) -> str:
        """MIME type for a video extension, video/mp4 when unknown."""
        return self.VIDEO_MIME_TYPES.get(extension.lower(), self.DEFAULT_VIDEO_MIME_TYPE)

    def _match_unsafe(self, parts: SplitResult) -> MediaClassification | None:
        if parts.scheme.lower() not in self.SAFE_SCHEMES:
            return UNSAFE
        return None

    def _match_youtube(self, parts: SplitResult) -> MediaClassification | None:
        video_id = self.youtube_video_id(parts)
        if video_id:
            return MediaClassification(MediaKind.YOUTUBE, video_id=video_id)
        return None

    def _match_image(self, parts: SplitResult) -> MediaClassification | None:
        if file_extension(parts.path) in self.IMAGE_EXTENSIONS:
            return IMAGE
        return None

    def _match_video(self, parts: SplitResult) -> MediaClassification | None:
        extension = file_extension(parts.path)
        if extension in self.VIDEO_EXTENSIONS:
            return MediaClassification(MediaKind.VIDEO, mime_type=self.video_mime_type(extension))
        return None


default_classifier = MediaClassifier()


def classify(url: str) -> MediaClassification:
    """Classify ``url`` with the default rule set."""
    return default_classifier.classify(url)
