"""Turn URLs in a chat message body into links and embedded media.

Token grammar, applied to sanitized text::

    token  = scheme "://" run
    scheme = "http" | "https"          (case-insensitive)
    run    = 1*( any character except whitespace and "<" )
"""

import re
from dataclasses import dataclass

from .classifier import UnparsableUrlError, classify, parse_url
from .logger import get_logger
from .renderer import render
from .sanitizer import sanitize, unescape

logger = get_logger(__name__)

URL_TOKEN_RE = re.compile(r"https?://[^\s<]+", re.IGNORECASE)

# Anything shaped like an opening tag: "<" + letter ... ">"
MARKUP_RE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)


@dataclass(frozen=True)
class UrlToken:
    """A URL found in sanitized text, as ``text[start:end]``."""

    text: str
    start: int
    end: int


def looks_like_markup(body: str) -> bool:
    """Return True if ``body`` contains something that looks like an HTML tag."""
    return bool(MARKUP_RE.search(body))


def find_urls(text: str) -> list[UrlToken]:
    """Return URL tokens in left-to-right order."""
    return [UrlToken(m.group(0), m.start(), m.end()) for m in URL_TOKEN_RE.finditer(text)]


def render_token(token: UrlToken) -> str:
    """
    Render one URL token.

    The token comes from sanitized text, so it is unescaped before parsing and
    re-escaped by the renderer. Tokens that do not parse are kept as they are.
    """
    url = unescape(token.text)
    try:
        parse_url(url)
    except UnparsableUrlError as e:
        logger.debug("Keeping unparsable URL as text: %s", e)
        return token.text

    classification = classify(url)
    logger.debug("URL %s classified as %s", url, classification.kind.value)
    return render(classification, url)


def process(body: str | None) -> str:
    """
    Sanitize a message body and expand its URLs.

    A body that already looks like markup is returned unchanged; callers must
    sanitize it themselves (see :func:`unachat.composer.build_envelope`).

    Args:
        body: Raw message text.

    Returns:
        Sanitized text with each URL replaced by its fragment, text between
        URLs kept in its original order.
    """
    if not body:
        return ""

    if looks_like_markup(body):
        return body

    text = sanitize(body)
    parts = []
    last_end = 0
    for token in find_urls(text):
        parts.append(text[last_end : token.start])
        parts.append(render_token(token))
        last_end = token.end
    parts.append(text[last_end:])
    return "".join(parts)
