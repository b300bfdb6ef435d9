"""Final rewrites of the generated HTML.

These run once every page, index and asset is in place:

- rewrite_images: ``srcset``, ``<picture>`` WebP sources, intrinsic
  dimensions and ``loading="lazy"`` for ``<img>`` tags.
- inject_code_copy: A copy button for every ``<pre>`` block.
- valid_urls / broken_links: Root-relative links that point at nothing.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path

from bs4 import BeautifulSoup

from .assets import ProcessedImage
from .errors import BrokenLink

IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
SIZES = "(max-width: 480px) 480px, (max-width: 800px) 800px, 1200px"

# Optional files linked by most themes.
IGNORED_LINKS = frozenset({"/favicon.ico"})

CODE_COPY_CSS = (
    "pre{position:relative}"
    "pre .folio-copy-btn{position:absolute;top:.5rem;right:.5rem;padding:.25rem .5rem;"
    "font:.75rem/1.4 system-ui,sans-serif;border:1px solid rgba(128,128,128,.3);"
    "border-radius:4px;background:rgba(128,128,128,.15);color:rgba(200,200,200,.8);"
    "cursor:pointer;opacity:0;transition:opacity .2s}"
    "pre:hover .folio-copy-btn{opacity:1}"
    "pre .folio-copy-btn.copied{color:#22c55e;border-color:rgba(34,197,94,.4)}"
)

CODE_COPY_JS = (
    "document.addEventListener('DOMContentLoaded',function(){"
    "document.querySelectorAll('pre').forEach(function(pre){"
    "var btn=document.createElement('button');btn.className='folio-copy-btn';"
    "btn.type='button';btn.textContent='Copy';"
    "btn.setAttribute('aria-label','Copy code to clipboard');"
    "btn.addEventListener('click',function(){var code=pre.querySelector('code');"
    "navigator.clipboard.writeText((code||pre).textContent).then(function(){"
    "btn.textContent='Copied!';btn.classList.add('copied');"
    "setTimeout(function(){btn.textContent='Copy';btn.classList.remove('copied')},2000)})});"
    "pre.appendChild(btn)})});"
)


def _attr(tag: str, name: str) -> str | None:
    match = re.search(rf'(?<![\w-]){name}\s*=\s*"([^"]*)"', tag, re.IGNORECASE)
    return match.group(1) if match else None


def _has_attr(tag: str, name: str) -> bool:
    return re.search(rf"(?<![\w-]){name}\s*=", tag, re.IGNORECASE) is not None


def _add_attrs(tag: str, attrs: str) -> str:
    if tag.endswith("/>"):
        return f"{tag[:-2].rstrip()} {attrs} />"
    return f"{tag[:-1]} {attrs}>"


def _srcset(entries) -> str:
    return ", ".join(f"{url} {width}w" for width, url in entries)


def _enhance_img(tag: str, image: ProcessedImage | None, lazy_loading: bool) -> str:
    extra = []
    if image is not None and not _has_attr(tag, "srcset"):
        extra.append(f'srcset="{_srcset(image.srcset)}" sizes="{SIZES}"')
    if lazy_loading and not _has_attr(tag, "loading"):
        extra.append('loading="lazy"')
    if image is not None and not (_has_attr(tag, "width") or _has_attr(tag, "height")):
        extra.append(f'width="{image.width}" height="{image.height}"')
    if extra:
        tag = _add_attrs(tag, " ".join(extra))
    if image is not None and image.webp:
        return (
            f'<picture><source type="image/webp" srcset="{_srcset(image.webp)}" '
            f'sizes="{SIZES}">{tag}</picture>'
        )
    return tag


def rewrite_images(
    html: str, manifest: Mapping[str, ProcessedImage], lazy_loading: bool = True
) -> str:
    """Add responsive attributes to the ``<img>`` tags of a document.

    Images found in ``manifest`` get a ``srcset`` with their resized copies
    and their intrinsic ``width``/``height``; if WebP copies exist the tag is
    wrapped in a ``<picture>`` with a WebP ``<source>``. With
    ``lazy_loading`` every image without a ``loading`` attribute gets
    ``loading="lazy"``. Attributes already present are kept.

    Examples:
        >>> rewrite_images('<img src="/a.png" alt="">', {})
        '<img src="/a.png" alt="" loading="lazy">'
    """
    if not manifest and not lazy_loading:
        return html

    def repl(match: re.Match) -> str:
        tag = match.group(0)
        src = _attr(tag, "src")
        image = manifest.get(src) if src else None
        return _enhance_img(tag, image, lazy_loading)

    return IMG_TAG_RE.sub(repl, html)


def inject_code_copy(html: str) -> str:
    """Insert the copy-button style and script before ``</body>``.

    Documents without a ``<pre>`` block or without a ``</body>`` tag are
    returned unchanged.
    """
    if "<pre" not in html:
        return html
    pos = html.rfind("</body>")
    if pos == -1:
        return html
    snippet = f"<style>{CODE_COPY_CSS}</style>\n<script>{CODE_COPY_JS}</script>"
    return f"{html[:pos]}\n{snippet}\n{html[pos:]}"


def internal_links(html: str) -> list[str]:
    """Root-relative ``href`` targets of a document, deduplicated, in order.

    Fragments and query strings are dropped. Protocol-relative URLs,
    external URLs, anchors and relative paths are not internal links.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    for tag in soup.find_all(href=True):
        href = tag["href"]
        if not href.startswith("/") or href.startswith("//"):
            continue
        href = href.split("#", 1)[0].split("?", 1)[0]
        if href and href not in IGNORED_LINKS and href not in links:
            links.append(href)
    return links


def valid_urls(output_dir: Path) -> set[str]:
    """Every URL path that resolves to a file in ``output_dir``.

    ``posts/hello.html`` answers ``/posts/hello.html`` and ``/posts/hello``;
    ``posts/index.html`` answers ``/posts/index.html``, ``/posts/`` and
    ``/posts``.
    """
    urls = set()
    for path in output_dir.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(output_dir).as_posix()
        urls.add(f"/{rel}")
        if not rel.endswith(".html"):
            continue
        stem = rel[: -len(".html")]
        if stem == "index":
            urls.add("/")
        elif stem.endswith("/index"):
            directory = stem[: -len("/index")]
            urls.update({f"/{directory}/", f"/{directory}"})
        else:
            urls.add(f"/{stem}")
    return urls


def broken_links(html: str, source_file: str, known: set[str]) -> list[BrokenLink]:
    """Internal links of one document that are not in ``known``."""
    return [BrokenLink(source_file, href) for href in internal_links(html) if href not in known]
