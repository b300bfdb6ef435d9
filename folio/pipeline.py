"""Build stage descriptors and build results.

The build runs a fixed sequence of stages. Each stage declares the state it
needs (``requires``) and the state it produces (``provides``); the sequence is
checked when this module is imported, so a stage can never be moved ahead of
its inputs.

Key classes:
- Stage: One named step of the build.
- StageTiming / StageFailure: What a stage reports back.
- BuildReport: Outcome of a whole build.

Key constants:
- STAGES: The build order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Stage:
    """One step of the build.

    Attributes:
        name: Stage name, shown in timings and failures.
        requires: State keys that must exist before the stage runs.
        provides: State keys the stage produces.
        run: Name of the Builder method that implements the stage.
    """

    name: str
    requires: frozenset[str]
    provides: frozenset[str]
    run: str


def _stage(name: str, requires: tuple[str, ...] = (), provides: tuple[str, ...] = ()) -> Stage:
    return Stage(name, frozenset(requires), frozenset(provides), f"stage_{name}")


STAGES: tuple[Stage, ...] = (
    _stage("clean", provides=("output",)),
    _stage("load_templates", provides=("templates", "macros")),
    _stage("load_data", provides=("data",)),
    _stage(
        "process_collections",
        requires=("macros",),
        provides=("records", "index_records"),
    ),
    _stage("check_urls", requires=("records", "index_records"), provides=("urls",)),
    _stage("link_translations", requires=("urls",), provides=("translations",)),
    _stage("organize", requires=("translations",), provides=("views", "tags")),
    _stage(
        "render_pages",
        requires=("output", "templates", "data", "views"),
        provides=("pages",),
    ),
    _stage("render_indexes", requires=("pages", "tags"), provides=("indexes",)),
    _stage("feeds", requires=("output", "views"), provides=("feeds",)),
    _stage("sitemap", requires=("indexes", "translations"), provides=("sitemap",)),
    _stage("discovery", requires=("sitemap",), provides=("discovery",)),
    _stage("markdown_mirrors", requires=("output", "views"), provides=("mirrors",)),
    _stage("search_index", requires=("output", "views"), provides=("search",)),
    _stage("static_copy", requires=("pages", "indexes", "discovery"), provides=("assets",)),
    _stage("images", requires=("assets",), provides=("images",)),
    _stage(
        "html_postprocess",
        requires=("pages", "indexes", "feeds", "mirrors", "search", "images"),
        provides=("final",),
    ),
)


def validate_stages(stages: Sequence[Stage]) -> None:
    """Check that every stage's inputs are produced by an earlier stage.

    Raises:
        ValueError: On a duplicate stage name or an unsatisfied input.
    """
    available: set[str] = set()
    seen: set[str] = set()
    for stage in stages:
        if stage.name in seen:
            raise ValueError(f"duplicate build stage '{stage.name}'")
        missing = stage.requires - available
        if missing:
            raise ValueError(
                f"build stage '{stage.name}' requires {', '.join(sorted(missing))} "
                "before any stage provides it"
            )
        seen.add(stage.name)
        available |= stage.provides


validate_stages(STAGES)


@dataclass(frozen=True)
class StageTiming:
    name: str
    seconds: float


@dataclass(frozen=True)
class StageFailure:
    """The error that stopped a build.

    Attributes:
        stage: Name of the failing stage.
        source_path: File that caused the error, if known.
        message: Human-readable cause.
        error: The exception itself.
    """

    stage: str
    source_path: Path | None
    message: str
    error: Exception

    def __str__(self) -> str:
        location = f" ({self.source_path})" if self.source_path else ""
        return f"stage '{self.stage}'{location}: {self.message}"


@dataclass
class BuildReport:
    """Outcome of a build.

    Attributes:
        success: True if every stage completed.
        output_dir: Output directory (emptied on failure).
        timings: Per-stage timings, in run order, up to the failing stage.
        failure: The failure, when ``success`` is False.
        notices: Non-fatal notices such as missing translation targets.
        pages_written: Number of HTML documents written.
    """

    success: bool
    output_dir: Path
    timings: list[StageTiming] = field(default_factory=list)
    failure: StageFailure | None = None
    notices: list = field(default_factory=list)
    pages_written: int = 0

    @property
    def total_seconds(self) -> float:
        return sum(timing.seconds for timing in self.timings)
