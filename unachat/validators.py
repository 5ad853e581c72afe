"""Standalone predicates for chat input: phone numbers, colors and media URLs."""

import random
import re

from .classifier import (
    MediaKind,
    UnparsableUrlError,
    classify,
    default_classifier,
    file_extension,
    parse_url,
)
from .sanitizer import is_safe_url

__all__ = [
    "get_video_mime_type",
    "get_youtube_video_id",
    "is_safe_url",
    "is_valid_phone",
    "is_valid_url_image",
    "is_valid_video_url",
    "is_valid_yt_video",
    "random_color",
]

PHONE_RE = re.compile(r"^[+]*[(]{0,1}[0-9]{1,4}[)]{0,1}[-\s./0-9]*$")


def is_valid_phone(phone: str | None) -> bool:
    """Accept digits with optional leading +, area code in parentheses, and - . / separators."""
    if not isinstance(phone, str):
        return False
    return bool(PHONE_RE.match(phone))


def random_color(rng: random.Random | None = None) -> str:
    """Random ``#rrggbb`` color, always six hex digits."""
    rng = rng or random
    return f"#{rng.randrange(0x1000000):06x}"


def is_valid_url_image(url: str) -> bool:
    return classify(url).kind is MediaKind.IMAGE


def is_valid_video_url(url: str) -> bool:
    return classify(url).kind is MediaKind.VIDEO


def is_valid_yt_video(url: str) -> bool:
    return classify(url).kind is MediaKind.YOUTUBE


def get_youtube_video_id(url: str) -> str | None:
    """Video id of a YouTube URL, or None for anything else."""
    return classify(url).video_id


def get_video_mime_type(url: str) -> str:
    """MIME type for a video URL; video/mp4 when the extension has no entry."""
    try:
        path = parse_url(url).path
    except UnparsableUrlError:
        return default_classifier.DEFAULT_VIDEO_MIME_TYPE
    return default_classifier.video_mime_type(file_extension(path))
