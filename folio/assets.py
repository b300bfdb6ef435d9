"""Static asset copying and image post-processing for Folio.

``static/`` is copied to ``<output>/static/`` through a registry of asset
processors (JavaScript is minified with rjsmin when minification is on).
``public/`` is copied verbatim into the output root, without overwriting any
generated file. After the copy, images in the output are optimised with Pillow,
and images under ``static/`` get resized copies for ``srcset``.

Key classes:
- BaseAssetProcessor: Base class for processors.
- JSProcessor / StaticAssetProcessor: Concrete processors.
- AssetProcessorRegistry: Chooses a processor per file by priority.
- AssetPipeline: Runs the copy steps.
- ImageOptimizer: Re-encodes (and optionally downsizes) output images.
- ResponsiveImageGenerator: Writes width variants and WebP copies of static images.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from rjsmin import jsmin

from .config import ImageSection
from .protocols import AssetProcessor
from .utils import is_hidden

logger = logging.getLogger(__name__)


class BaseAssetProcessor(ABC):
    """Base class for asset processors.

    Provides shared utilities:
        - ensure_dest_dir: Creates parent directories for output files.
    """

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        """Check if this processor can handle the given asset."""
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset file.

        Args:
            source: Source asset path.
            dest: Destination path for processed asset.

        Returns:
            True if processing was successful.
        """
        ...

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class JSProcessor(BaseAssetProcessor):
    """Minifies JavaScript files with rjsmin.

    Files already named ``*.min.js`` are copied as-is.
    """

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js" and not path.name.endswith(".min.js")

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        minified = jsmin(source.read_text(encoding="utf-8"))
        dest.write_text(minified, encoding="utf-8")
        return True


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies static assets without modification.

    This is the fallback processor for assets that don't need
    special processing (fonts, SVGs, CSS, images).
    """

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        shutil.copy2(source, dest)
        return True


class AssetProcessorRegistry:
    """Registry for managing asset processors, highest priority first."""

    def __init__(self):
        self._processors: list[AssetProcessor] = []

    def register(self, processor: AssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> AssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset using the appropriate processor.

        Returns:
            True if processing was successful, False if no processor found.
        """
        processor = self.get_processor(source)
        if processor:
            return processor.process(source, dest)
        return False


def create_default_registry(minify: bool = True) -> AssetProcessorRegistry:
    """Create a registry with the default processors.

    Args:
        minify: Register the JavaScript minifier.
    """
    registry = AssetProcessorRegistry()
    if minify:
        registry.register(JSProcessor())
    registry.register(StaticAssetProcessor())
    return registry


class AssetPipeline:
    """Copies a project's static and public directories into the output.

    Attributes:
        static_dir: Source of ``<output>/static/``.
        public_dir: Source of files copied to the output root.
        output_dir: Build output directory.
        processor_registry: Registry used for ``static/``.
    """

    def __init__(
        self,
        static_dir: Path,
        public_dir: Path,
        output_dir: Path,
        processor_registry: AssetProcessorRegistry | None = None,
    ):
        self.static_dir = static_dir
        self.public_dir = public_dir
        self.output_dir = output_dir
        self.processor_registry = processor_registry or create_default_registry()

    def run(self) -> int:
        """Copy both directories.

        Returns:
            Number of files written.
        """
        return self.copy_static() + self.copy_public()

    def copy_static(self) -> int:
        if not self.static_dir.is_dir():
            return 0
        target = self.output_dir / "static"
        count = 0
        for item in sorted(self.static_dir.rglob("*")):
            rel = item.relative_to(self.static_dir)
            if item.is_dir() or is_hidden(rel):
                continue
            if self.processor_registry.process(item, target / rel):
                count += 1
        return count

    def copy_public(self) -> int:
        """Copy ``public/`` into the output root; generated files win."""
        if not self.public_dir.is_dir():
            return 0
        count = 0
        for item in sorted(self.public_dir.rglob("*")):
            if item.is_dir():
                continue
            rel = item.relative_to(self.public_dir)
            dest = self.output_dir / rel
            if dest.exists():
                logger.warning(
                    "public/%s is shadowed by a generated file; skipping", rel.as_posix()
                )
                continue
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest)
            count += 1
        return count


class ImageOptimizer:
    """Optimizes image files in place using Pillow.

    Supports PNG, JPG, JPEG, and WebP formats. Images wider than
    ``max_width`` are scaled down, keeping their aspect ratio.
    """

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

    def __init__(self, settings: ImageSection):
        self.settings = settings

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def optimize(self, path: Path) -> bool:
        """Re-encode one image.

        Returns:
            True if the file was rewritten, False if it was left alone.
        """
        try:
            with Image.open(path) as img:
                img.load()
                if self.settings.max_width and img.width > self.settings.max_width:
                    ratio = self.settings.max_width / img.width
                    img = img.resize(
                        (self.settings.max_width, max(1, round(img.height * ratio)))
                    )
                options = {"optimize": True}
                if path.suffix.lower() in {".jpg", ".jpeg", ".webp"}:
                    options["quality"] = self.settings.quality
                img.save(path, **options)
        except (OSError, UnidentifiedImageError, ValueError) as exc:
            logger.warning("Could not optimize %s: %s", path, exc)
            return False
        return True

    def run(self, output_dir: Path) -> int:
        """Optimize every supported image under ``output_dir``.

        Returns:
            Number of images rewritten.
        """
        if not self.settings.optimize:
            return 0
        count = 0
        for path in sorted(output_dir.rglob("*")):
            if path.is_file() and self.can_process(path) and self.optimize(path):
                count += 1
        return count


@dataclass(frozen=True)
class ProcessedImage:
    """Resized copies of one ``static/`` image.

    Attributes:
        url: URL of the original, e.g. ``/static/images/photo.jpg``.
        width: Width of the original in pixels.
        height: Height of the original in pixels.
        srcset: (width, URL) pairs in the original format, narrowest first.
            The original itself is the last entry.
        webp: (width, URL) pairs of the WebP copies, narrowest first.
    """

    url: str
    width: int
    height: int
    srcset: tuple[tuple[int, str], ...] = ()
    webp: tuple[tuple[int, str], ...] = ()


class ResponsiveImageGenerator:
    """Writes width variants and WebP copies of images under ``<output>/static/``.

    A ``photo.jpg`` 1600 pixels wide with widths ``(480, 800)`` produces
    ``photo-480w.jpg``, ``photo-800w.jpg`` and, with WebP on,
    ``photo-480w.webp``, ``photo-800w.webp`` and ``photo.webp``. Widths not
    smaller than the original are skipped.
    """

    SUPPORTED_EXTENSIONS = ImageOptimizer.SUPPORTED_EXTENSIONS

    def __init__(self, settings: ImageSection):
        self.settings = settings

    def run(self, output_dir: Path) -> dict[str, ProcessedImage]:
        """Process every image below ``output_dir / "static"``.

        Returns:
            Manifest from original URL to its processed copies.
        """
        static_root = output_dir / "static"
        if not static_root.is_dir():
            return {}
        sources = [
            path
            for path in sorted(static_root.rglob("*"))
            if path.is_file() and path.suffix.lower() in self.SUPPORTED_EXTENSIONS
        ]
        manifest = {}
        for path in sources:
            url = "/static/" + path.relative_to(static_root).as_posix()
            try:
                manifest[url] = self.process(path, url)
            except (OSError, UnidentifiedImageError, ValueError) as exc:
                logger.warning("Could not create variants of %s: %s", path, exc)
        return manifest

    def process(self, path: Path, url: str) -> ProcessedImage:
        settings = self.settings
        ext = path.suffix.lower()
        make_webp = settings.webp and ext != ".webp"
        url_dir = url.rsplit("/", 1)[0]
        srcset = []
        webp = []
        with Image.open(path) as img:
            img.load()
            width, height = img.size
            for target in settings.widths:
                if target >= width:
                    continue
                resized = img.resize(
                    (target, max(1, round(height * target / width))), Image.Resampling.LANCZOS
                )
                name = f"{path.stem}-{target}w"
                self._save(resized, path.with_name(f"{name}{path.suffix}"))
                srcset.append((target, f"{url_dir}/{name}{path.suffix}"))
                if make_webp:
                    self._save(resized, path.with_name(f"{name}.webp"))
                    webp.append((target, f"{url_dir}/{name}.webp"))
            if make_webp:
                self._save(img, path.with_name(f"{path.stem}.webp"))
                webp.append((width, f"{url_dir}/{path.stem}.webp"))
        srcset.append((width, url))
        return ProcessedImage(url, width, height, tuple(srcset), tuple(webp))

    def _save(self, img: Image.Image, dest: Path) -> None:
        ext = dest.suffix.lower()
        if ext in {".jpg", ".jpeg"} and img.mode not in {"RGB", "L"}:
            img = img.convert("RGB")
        options = {"optimize": True}
        if ext in {".jpg", ".jpeg", ".webp"}:
            options["quality"] = self.settings.quality
        img.save(dest, **options)
