"""Whitelist HTML sanitizer for untrusted chat text.

Everything a browser will render from a chat message goes through
:func:`sanitize` (display names, bodies) or through the escaping helpers
(attribute values built by the renderer). Parsing and serialization are done
by ``nh3`` (the Python binding of ammonia); this module only owns the policy.
"""

import html
import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

import nh3

from .logger import get_logger

logger = get_logger(__name__)

SAFE_URL_SCHEMES = frozenset({"http", "https"})

# Hosts allowed as the src of an embedded frame
EMBED_HOSTS = frozenset({"www.youtube.com", "www.youtube-nocookie.com"})
_EMBED_PATH_RE = re.compile(r"^/embed/[A-Za-z0-9_-]{11}$")

# Style values that can load resources or run code
_UNSAFE_STYLE_VALUE_RE = re.compile(r"url\s*\(|expression\s*\(|\\", re.IGNORECASE)

_URL_ATTRIBUTES = frozenset({"href", "src"})


@dataclass(frozen=True)
class SanitizerPolicy:
    """Tags, attributes and style properties that survive sanitization."""

    tags: frozenset[str]
    attributes: dict[str, frozenset[str]]
    style_properties: frozenset[str]
    # Tags removed together with everything inside them
    content_tags: frozenset[str] = field(default_factory=lambda: frozenset({"script", "style"}))


DEFAULT_POLICY = SanitizerPolicy(
    tags=frozenset(
        {
            "a",
            "b",
            "br",
            "code",
            "div",
            "em",
            "i",
            "iframe",
            "img",
            "p",
            "pre",
            "s",
            "source",
            "span",
            "strong",
            "u",
            "video",
        }
    ),
    attributes={
        "a": frozenset({"href", "title", "target"}),
        "div": frozenset({"class", "style"}),
        "span": frozenset({"class", "style"}),
        "p": frozenset({"style"}),
        "img": frozenset({"src", "alt", "title", "width", "height"}),
        "video": frozenset({"controls", "width", "height"}),
        "source": frozenset({"src", "type"}),
        "iframe": frozenset({"src", "width", "height", "frameborder", "allow", "allowfullscreen"}),
    },
    style_properties=frozenset(
        {
            "color",
            "background-color",
            "font-size",
            "font-style",
            "font-weight",
            "text-align",
            "text-decoration",
        }
    ),
)


def is_safe_url(url: str) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False
    return parts.scheme.lower() in SAFE_URL_SCHEMES and bool(parts.netloc)


def is_embed_url(url: str) -> bool:
    """Return True if ``url`` is a YouTube embed address."""
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return False
    return (
        parts.scheme.lower() == "https"
        and (parts.hostname or "") in EMBED_HOSTS
        and port is None
        and bool(_EMBED_PATH_RE.match(parts.path))
    )


def filter_style(value: str, allowed: frozenset[str] = DEFAULT_POLICY.style_properties) -> str | None:
    """Keep only allow-listed ``property: value`` declarations.

    Returns None when no declaration survives so the attribute is dropped.
    """
    kept = []
    for declaration in value.split(";"):
        prop, sep, prop_value = declaration.partition(":")
        prop = prop.strip().lower()
        prop_value = prop_value.strip()
        if not sep or not prop or not prop_value:
            continue
        if prop not in allowed or _UNSAFE_STYLE_VALUE_RE.search(prop_value):
            continue
        kept.append(f"{prop}: {prop_value}")
    return "; ".join(kept) if kept else None


def filter_attribute(
    tag: str, name: str, value: str, policy: SanitizerPolicy = DEFAULT_POLICY
) -> str | None:
    """Decide the fate of one whitelisted attribute.

    Returns the value to emit, or None to drop the attribute.
    """
    if name == "style":
        return filter_style(value, policy.style_properties)
    if tag == "iframe" and name == "src":
        return value if is_embed_url(value) else None
    if name in _URL_ATTRIBUTES:
        return value if is_safe_url(value) else None
    return value


def sanitize(text: str | None, policy: SanitizerPolicy = DEFAULT_POLICY) -> str:
    """
    Filter untrusted HTML down to the whitelist.

    Tags outside the whitelist are removed but their text is kept; script and
    style elements are removed with their content. Text is re-serialized with
    ``&``, ``<`` and ``>`` escaped, so plain text without those characters
    comes back unchanged and ``sanitize(sanitize(x)) == sanitize(x)``.

    Args:
        text: Untrusted input; None and "" give "".
        policy: Whitelist to apply.

    Returns:
        Safe HTML.
    """
    if not text:
        return ""

    try:
        return nh3.clean(
            text,
            tags=set(policy.tags),
            clean_content_tags=set(policy.content_tags),
            attributes={tag: set(attrs) for tag, attrs in policy.attributes.items()},
            attribute_filter=lambda tag, name, value: filter_attribute(tag, name, value, policy),
            url_schemes=set(SAFE_URL_SCHEMES),
            link_rel="noopener noreferrer",
            strip_comments=True,
        )
    except (TypeError, ValueError) as e:
        logger.warning("HTML sanitizer failed, escaping input as text: %s", e)
        return escape_text(text)


def escape_text(value: str) -> str:
    """Escape a value for an HTML text node."""
    return html.escape(value, quote=False)


def escape_attribute(value: str) -> str:
    """Escape a value for a double-quoted HTML attribute."""
    return html.escape(value, quote=True)


def unescape(value: str) -> str:
    """Decode the character references produced by :func:`sanitize`."""
    return html.unescape(value)
