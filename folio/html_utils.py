"""HTML utility functions for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
    prefix_base_path: Prefix root-relative URLs with a deployment sub-path.
    absolutize_image: Make a front-matter image URL absolute.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from urllib.parse import urlsplit

# URL attribute regex pattern for finding href, src, action attributes
_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# URL prefixes that should not be modified
_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
    "data:",
)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def base_path(base_url: str) -> str:
    """Path component of a base URL without trailing slash ("" for a root deployment).

    Examples:
        >>> base_path('https://user.github.io/repo/')
        '/repo'
    """
    return urlsplit(base_url).path.rstrip("/")


def _rewrite_root_relative(html: str, rewrite: Callable[[str], str]) -> str:
    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES) or not url.startswith("/"):
            return match.group(0)
        return f"{match.group('prefix')}{rewrite(url)}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative URLs in href, src and action attributes to absolute URLs.

    External URLs, anchors, mailto/tel links, and javascript: URLs are left
    unchanged.

    Examples:
        >>> absolutize_html_urls('<a href="/about">About</a>', 'https://example.com')
        '<a href="https://example.com/about">About</a>'
    """
    if not root_url:
        return html
    return _rewrite_root_relative(html, lambda url: join_root_url(root_url, url))


def prefix_base_path(html: str, prefix: str) -> str:
    """Prefix root-relative URLs with a sub-path deployment prefix.

    URLs that already start with the prefix are left alone.

    Examples:
        >>> prefix_base_path('<a href="/about">About</a>', '/repo')
        '<a href="/repo/about">About</a>'
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return html

    def rewrite(url: str) -> str:
        if url == prefix or url.startswith(f"{prefix}/"):
            return url
        return f"{prefix}{url}"

    return _rewrite_root_relative(html, rewrite)


def absolutize_image(image: str | None, base_url: str) -> str | None:
    """Make an image path absolute unless it is already a full URL."""
    if not image:
        return image
    if image.startswith("http"):
        return image
    return join_root_url(base_url, image)
