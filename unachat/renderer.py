"""HTML fragments for classified URLs."""

from .classifier import MediaClassification, MediaClassifier, MediaKind
from .sanitizer import escape_attribute, escape_text, is_safe_url

EMBED_BASE_URL = "https://www.youtube-nocookie.com/embed/"
EMBED_WIDTH = 560
EMBED_HEIGHT = 315
EMBED_ALLOW = "accelerometer; clipboard-write; encrypted-media; gyroscope; picture-in-picture"

IMAGE_ALT = "Imagen compartida"
IMAGE_LINK_LABEL = "Ver imagen"
VIDEO_LINK_LABEL = "Ver video original"
VIDEO_UNSUPPORTED = "Tu navegador no soporta la reproducción de video."

SECONDARY_LINK_STYLE = "font-size: 11px; color: #7f8c8d;"

# Hides the broken image and reveals the fallback link placed right after it.
# Constant: no message data is ever interpolated into script.
IMAGE_ONERROR = "this.hidden=true;this.nextElementSibling.hidden=false;"


def _link(url: str, label: str | None = None, extra: str = "") -> str:
    """Anchor opening in a new tab. ``label`` defaults to the URL itself."""
    text = escape_text(url if label is None else label)
    return (
        f'<a href="{escape_attribute(url)}" target="_blank" '
        f'rel="noopener noreferrer"{extra}>{text}</a>'
    )


def render_link(url: str) -> str:
    return _link(url)


def render_unsafe(url: str) -> str:
    return escape_text(url)


def render_youtube(video_id: str | None, url: str) -> str:
    """Privacy-enhanced embed. Anything but a well-formed id falls back to a link."""
    if not video_id or not MediaClassifier.VIDEO_ID_RE.match(video_id):
        return render_link(url)

    src = escape_attribute(EMBED_BASE_URL + video_id)
    return (
        '<div class="media-container">'
        f'<iframe width="{EMBED_WIDTH}" height="{EMBED_HEIGHT}" src="{src}" '
        f'frameborder="0" allow="{escape_attribute(EMBED_ALLOW)}" allowfullscreen></iframe>'
        "</div>"
    )


def render_image(url: str) -> str:
    src = escape_attribute(url)
    style = escape_attribute(SECONDARY_LINK_STYLE)
    return (
        '<div class="media-container">'
        f'<img src="{src}" alt="{escape_attribute(IMAGE_ALT)}" '
        f'onerror="{escape_attribute(IMAGE_ONERROR)}">'
        + _link(url, extra=' class="media-fallback" hidden')
        + _link(url, IMAGE_LINK_LABEL, extra=f' style="{style}"')
        + "</div>"
    )


def render_video(mime_type: str | None, url: str) -> str:
    mime = mime_type or MediaClassifier.DEFAULT_VIDEO_MIME_TYPE
    style = escape_attribute(SECONDARY_LINK_STYLE)
    return (
        '<div class="media-container">'
        '<video width="100%" controls>'
        f'<source src="{escape_attribute(url)}" type="{escape_attribute(mime)}">'
        f"{escape_text(VIDEO_UNSUPPORTED)}"
        "</video>"
        + _link(url, VIDEO_LINK_LABEL, extra=f' style="{style}"')
        + "</div>"
    )


def render(classification: MediaClassification, url: str) -> str:
    """
    Build the HTML fragment for a classified URL.

    Args:
        classification: Result of :func:`unachat.classifier.classify` for ``url``.
        url: Raw (unescaped) URL; it is escaped here for every context it lands in.

    Returns:
        Safe HTML fragment.
    """
    kind = classification.kind
    if kind is not MediaKind.UNSAFE and not is_safe_url(url):
        kind = MediaKind.UNSAFE

    if kind is MediaKind.YOUTUBE:
        return render_youtube(classification.video_id, url)
    if kind is MediaKind.IMAGE:
        return render_image(url)
    if kind is MediaKind.VIDEO:
        return render_video(classification.mime_type, url)
    if kind is MediaKind.LINK:
        return render_link(url)
    return render_unsafe(url)
