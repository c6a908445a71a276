"""Sanitization helpers for values submitted through the admin settings form.

Two entry points are provided:

``sanitize_attribute``
    Sanitizes a single value looked up in a mapping according to a declared
    type tag (``text``, ``integer``, ``url`` and so on).

``sanitize_document``
    Walks an entire nested mapping and infers how to treat each leaf.  Only
    booleans, integers, strings and nested mappings survive; every other leaf
    is dropped from the result.

Both are pure functions and hold no state between calls.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Callable, Mapping

import bleach


class SanitizationError(Exception):
    """Base class for failures reported by :func:`sanitize_attribute`."""

    code = "sanitization_error"


class AttributeNotFound(SanitizationError, LookupError):
    """Raised when the requested attribute is missing from the source map."""

    code = "attribute_not_found"

    def __init__(self, attribute: str) -> None:
        super().__init__(f"Attribute not found: {attribute!r}")
        self.attribute = attribute


class UnknownSanitizationType(SanitizationError, ValueError):
    """Raised when the declared type tag is not recognised."""

    code = "unknown_type"

    def __init__(self, type_tag: str) -> None:
        super().__init__(f"Unknown sanitization type: {type_tag!r}")
        self.type_tag = type_tag


class ValueKind(Enum):
    """Closed set of leaf kinds recognised by :func:`sanitize_document`."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    NESTED = "nested"
    OTHER = "other"


# Schemes accepted by ``sanitize_url`` and by links kept in post content.
ALLOWED_URL_PROTOCOLS: tuple[str, ...] = (
    "http",
    "https",
    "ftp",
    "ftps",
    "mailto",
    "news",
    "irc",
    "irc6",
    "ircs",
    "gopher",
    "nntp",
    "feed",
    "telnet",
    "mms",
    "rtsp",
    "sms",
    "svn",
    "tel",
    "fax",
    "xmpp",
    "webcal",
    "urn",
)

_TRUTHY_STRINGS = {"1", "true", "yes", "on"}

_SCRIPT_STYLE_RE = re.compile(
    r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"[\r\n\t ]+")
_OCTET_RE = re.compile(r"%[a-f0-9]{2}", re.IGNORECASE)
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_URL_DISALLOWED_RE = re.compile(
    r"[^a-z0-9\-~+_.?#=!&;,/:%@$|*'()\[\]\u0080-\uffff]", re.IGNORECASE
)
_URL_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):", re.IGNORECASE)
_BARE_AMPERSAND_RE = re.compile(r"&(?!#?[a-z0-9]+;)", re.IGNORECASE)

# Base tags allowed in post content, keyed by tag with the attributes each
# tag may carry.  Global attributes are merged in by ``get_allowed_html``.
_POST_CONTENT_TAGS: dict[str, list[str]] = {
    "a": ["href", "rel", "target", "name", "download", "hreflang"],
    "abbr": [],
    "address": [],
    "article": [],
    "aside": [],
    "b": [],
    "blockquote": ["cite"],
    "br": [],
    "caption": [],
    "cite": [],
    "code": [],
    "col": ["span"],
    "colgroup": ["span"],
    "dd": [],
    "del": ["datetime"],
    "details": ["open"],
    "div": [],
    "dl": [],
    "dt": [],
    "em": [],
    "figcaption": [],
    "figure": [],
    "footer": [],
    "h1": [],
    "h2": [],
    "h3": [],
    "h4": [],
    "h5": [],
    "h6": [],
    "header": [],
    "hr": [],
    "i": [],
    "img": ["src", "alt", "width", "height", "loading", "srcset", "sizes"],
    "ins": ["datetime", "cite"],
    "kbd": [],
    "li": ["value"],
    "mark": [],
    "ol": ["start", "reversed", "type"],
    "p": [],
    "pre": [],
    "q": ["cite"],
    "s": [],
    "section": [],
    "small": [],
    "span": [],
    "strike": [],
    "strong": [],
    "sub": [],
    "summary": [],
    "sup": [],
    "table": [],
    "tbody": [],
    "td": ["colspan", "rowspan", "headers"],
    "tfoot": [],
    "th": ["colspan", "rowspan", "headers", "scope"],
    "thead": [],
    "tr": [],
    "u": [],
    "ul": [],
}

_GLOBAL_ATTRIBUTES = ["class", "id", "title", "role", "lang", "dir", "aria-label"]

_SVG_TAGS: dict[str, list[str]] = {
    "svg": [
        "xmlns",
        "fill",
        "viewbox",
        "role",
        "aria-hidden",
        "focusable",
        "class",
        "width",
        "height",
    ],
    "path": ["d", "fill", "opacity"],
    "g": [],
    "circle": ["cx", "cy", "r", "fill", "stroke"],
    "use": ["xlink:href"],
    "symbol": ["aria-hidden", "viewbox", "id", "xmls"],
}


def get_allowed_html(svg: bool = True) -> dict[str, list[str]]:
    """Return the tag/attribute allow-list used for post content.

    Args:
        svg: Whether inline SVG icon markup should be permitted as well.

    Returns:
        Mapping of tag name to the attributes allowed on it.
    """
    allowed = {
        tag: sorted(set(attributes) | set(_GLOBAL_ATTRIBUTES))
        for tag, attributes in _POST_CONTENT_TAGS.items()
    }
    allowed["nav"] = ["class"]
    if not svg:
        return allowed
    for tag, attributes in _SVG_TAGS.items():
        allowed[tag] = list(attributes)
    return allowed


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def sanitize_text(value: Any) -> str:
    """Reduce ``value`` to a single line of plain text with markup removed."""

    text = _to_text(value)
    if not text:
        return ""

    text = _SCRIPT_STYLE_RE.sub("", text)
    text = bleach.clean(text, tags=set(), attributes={}, strip=True, strip_comments=True)
    text = _CONTROL_CHARS_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    found_octets = False
    while _OCTET_RE.search(text):
        text = _OCTET_RE.sub("", text)
        found_octets = True
    if found_octets:
        text = _WHITESPACE_RE.sub(" ", text).strip()
    return text


def sanitize_post_content(value: Any) -> str:
    """Strip ``value`` down to the markup allowed in post content."""

    text = _to_text(value)
    if not text:
        return ""
    allowed = get_allowed_html()
    return bleach.clean(
        text,
        tags=set(allowed),
        attributes=allowed,
        protocols=set(ALLOWED_URL_PROTOCOLS),
        strip=True,
        strip_comments=True,
    )


def sanitize_boolean(value: Any) -> bool:
    """Interpret ``value`` as a checkbox-style boolean."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def sanitize_integer(value: Any) -> int:
    """Return ``value`` as a non-negative integer; anything else becomes 0."""

    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 0
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        try:
            number = int(match.group(1)) if match else 0
        except ValueError:
            # Beyond the interpreter's int/str digit limit.
            number = 0
    else:
        number = 0
    return number if number > 0 else 0


def sanitize_float(value: Any) -> float | int:
    """Pass floats through untouched; no string parsing is attempted."""

    if isinstance(value, float):
        return value
    return 0


def sanitize_url(value: Any) -> str:
    """Return ``value`` as a URL that is safe to place in an HTML attribute."""

    url = _to_text(value).strip()
    if not url:
        return ""

    url = url.replace(" ", "%20")
    url = _URL_DISALLOWED_RE.sub("", url)
    if not url:
        return ""

    scheme_match = _URL_SCHEME_RE.match(url)
    if scheme_match:
        if scheme_match.group(1).lower() not in ALLOWED_URL_PROTOCOLS:
            return ""
    elif ":" not in url and not url.startswith(("/", "#", "?")):
        url = f"http://{url}"

    url = _BARE_AMPERSAND_RE.sub("&#038;", url)
    return url.replace("'", "&#039;")


def _raw(value: Any) -> Any:
    return value


_SANITIZERS: dict[str, Callable[[Any], Any]] = {
    "raw": _raw,
    "post-content": sanitize_post_content,
    "text": sanitize_text,
    "boolean": sanitize_boolean,
    "integer": sanitize_integer,
    "float": sanitize_float,
    "url": sanitize_url,
}

TYPE_ALIASES: dict[str, str] = {
    "post": "post-content",
    "post_text": "post-content",
    "post_content": "post-content",
    "string": "text",
    "bool": "boolean",
    "int": "integer",
}


def sanitize_attribute(
    attributes: Mapping[str, Any], attribute: str, type_tag: str = "text"
) -> Any:
    """Sanitize ``attributes[attribute]`` according to ``type_tag``.

    Args:
        attributes: Mapping holding the raw value.
        attribute: Key to look up in ``attributes``.
        type_tag: One of ``raw``, ``post-content``, ``text``, ``boolean``,
            ``integer``, ``float`` or ``url`` (or one of the aliases in
            :data:`TYPE_ALIASES`).

    Returns:
        The sanitized value.

    Raises:
        AttributeNotFound: ``attribute`` is missing or ``None``.
        UnknownSanitizationType: ``type_tag`` is not recognised.
    """
    if not isinstance(attributes, Mapping) or attributes.get(attribute) is None:
        raise AttributeNotFound(attribute)

    sanitizer = None
    if isinstance(type_tag, str):
        sanitizer = _SANITIZERS.get(TYPE_ALIASES.get(type_tag, type_tag))
    if sanitizer is None:
        raise UnknownSanitizationType(type_tag)
    return sanitizer(attributes[attribute])


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` for a document leaf."""

    if isinstance(value, Mapping):
        return ValueKind.NESTED
    # bool first: it is a subclass of int.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OTHER


def _coerce_literal(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value == "0":
        return 0
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def sanitize_document(data: Any) -> dict:
    """Recursively sanitize a nested settings mapping.

    Form input arrives as strings, so the literals ``"0"``, ``"true"`` and
    ``"false"`` are converted before the value's kind is inspected.  Floats,
    ``None``, sequences and any other leaf are dropped.
    """
    if not isinstance(data, Mapping):
        return {}

    sanitized: dict = {}
    for key, value in data.items():
        value = _coerce_literal(value)
        kind = classify(value)
        if kind is ValueKind.NESTED:
            sanitized[key] = sanitize_document(value)
        elif kind is ValueKind.BOOLEAN:
            sanitized[key] = value
        elif kind is ValueKind.INTEGER:
            sanitized[key] = value
        elif kind is ValueKind.STRING:
            # Stripping can expose a bare literal ("<b>0</b>" -> "0").
            sanitized[key] = _coerce_literal(sanitize_text(value))
        elif kind is ValueKind.OTHER:
            continue
    return sanitized


__all__ = [
    "ALLOWED_URL_PROTOCOLS",
    "AttributeNotFound",
    "SanitizationError",
    "TYPE_ALIASES",
    "UnknownSanitizationType",
    "ValueKind",
    "classify",
    "get_allowed_html",
    "sanitize_attribute",
    "sanitize_boolean",
    "sanitize_document",
    "sanitize_float",
    "sanitize_integer",
    "sanitize_post_content",
    "sanitize_text",
    "sanitize_url",
]
