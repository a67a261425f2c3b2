# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
End-to-end packaging pipeline.

    manifest ──> descriptor ──┬──> tar archive ──┐
                              └──> templates ────┴──> digests ──> PKGBUILD ──> makepkg

Stages, in order: START, SOURCE_READ, RENDERED, HASHED, WRITTEN, INVOKED,
then SUCCESS or FAILED. Each stage needs the previous one's output, so the
run is strictly sequential. There are no retries here; re-running the whole
pipeline is the retry.

Fail-fast and no partial output: if anything goes wrong before the builder is
invoked, every file this run put in the output directory is removed again.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from archpack.config.schema import ArchpackConfig
from archpack.logging.logger import get_logger
from archpack.release.archive.archiver import build_archive
from archpack.release.artifacts import RECIPE_FILENAME, artifact_filename
from archpack.release.checksums.digest import compute_digests
from archpack.release.exceptions import PackagingError, WriteError
from archpack.release.manifests.reader import (
    ReleaseDescriptor,
    read_descriptor,
    release_counter_from_clock,
)
from archpack.release.packaging.driver import PackageResult, PipelineStage, assemble
from archpack.release.templates.engine import artifact_kinds, render_artifacts
from archpack.release.templates.variants import DeploymentVariant, get_variant
from archpack.utils.filesystem import reset_directory, safe_delete

_logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelinePlan:
    """What a run would produce, computed without touching the output directory."""

    descriptor: ReleaseDescriptor
    variant: DeploymentVariant
    source_root: Path
    output_dir: Path
    filenames: list[str]

    @property
    def archive_path(self) -> Path:
        return self.output_dir / self.descriptor.archive_name


class _StageTracker:
    """Remembers the current stage and logs every transition."""

    def __init__(self) -> None:
        self.stage = PipelineStage.START

    def advance(self, stage: PipelineStage) -> None:
        _logger.debug(
            "Pipeline stage",
            extra={"from_stage": self.stage.value, "to_stage": stage.value},
        )
        self.stage = stage


def resolve_release(config: ArchpackConfig, release: Optional[int] = None) -> int:
    """Explicit argument, then config, then the clock."""
    if release is not None:
        return release
    if config.package.release is not None:
        return config.package.release
    return release_counter_from_clock()


def plan_pipeline(
    config: ArchpackConfig,
    source_root: Path,
    release: Optional[int] = None,
) -> PipelinePlan:
    """
    Read the manifest and work out names and paths for a run.

    Raises:
        ManifestParseError: If the manifest lacks name or version.
        WriteError: If the output directory would overlap the checkout.
    """
    source_root = source_root.resolve()
    package = config.package
    variant = get_variant(package.variant)
    output_dir = source_root / package.output_dir
    check_output_dir(output_dir, source_root, [package.manifest, *package.sources])
    descriptor = read_descriptor(source_root / package.manifest, resolve_release(config, release))

    filenames = [artifact_filename(kind, descriptor) for kind in artifact_kinds(variant)]
    filenames.append(RECIPE_FILENAME)

    return PipelinePlan(
        descriptor=descriptor,
        variant=variant,
        source_root=source_root,
        output_dir=output_dir,
        filenames=filenames,
    )


def check_output_dir(output_dir: Path, source_root: Path, source_paths: Sequence[str]) -> None:
    """
    Refuse an output directory that is the source root, or that contains or
    lies inside any source path. The directory gets wiped before a run and
    the archive is written into it, so either overlap would destroy or
    self-include the sources.

    Raises:
        WriteError: On any overlap.
    """
    resolved_output = output_dir.resolve()
    resolved_root = source_root.resolve()
    if resolved_output == resolved_root or not resolved_output.is_relative_to(resolved_root):
        raise WriteError(
            f"Output directory {output_dir} must be a subdirectory of the source root {source_root}"
        )

    for relative in source_paths:
        source = (resolved_root / relative).resolve()
        if resolved_output.is_relative_to(source) or source.is_relative_to(resolved_output):
            raise WriteError(
                f"Output directory {output_dir} overlaps source path '{relative}'"
            )


def _warn_on_unarchived_assets(config: ArchpackConfig) -> None:
    static_dir = config.package.static_dir
    if not static_dir:
        return
    archived_roots = {Path(source).parts[0] for source in config.package.sources}
    if Path(static_dir).parts[0] not in archived_roots:
        _logger.warning(
            "Static asset directory is not among the archived sources; package() will fail",
            extra={"static_dir": static_dir, "sources": list(config.package.sources)},
        )


def _clear_output_dir(output_dir: Path) -> None:
    try:
        removed = reset_directory(output_dir)
    except OSError as err:
        raise WriteError(f"Cannot clear output directory {output_dir}: {err}") from err
    if removed:
        _logger.info("Cleared output directory", extra={"output_dir": str(output_dir)})


def _remove_partial_output(plan: PipelinePlan) -> None:
    removed = [name for name in plan.filenames if safe_delete(plan.output_dir / name)]
    if removed:
        _logger.warning(
            "Removed partial output after failure",
            extra={"output_dir": str(plan.output_dir), "files": removed},
        )


def run_pipeline(
    config: ArchpackConfig,
    source_root: Path,
    release: Optional[int] = None,
    invoke_builder: bool = True,
) -> PackageResult:
    """
    Package the project at source_root.

    Args:
        config: Validated configuration.
        source_root: Checkout containing the manifest and source paths.
        release: pkgrel override; see resolve_release.
        invoke_builder: Stop after writing the PKGBUILD when False.

    Returns:
        PackageResult with stage SUCCESS (or WRITTEN when the builder was skipped).

    Raises:
        PackagingError: Any stage failure. The error's `stage` attribute holds
            the stage the run was in.
    """
    tracker = _StageTracker()
    plan: Optional[PipelinePlan] = None

    try:
        plan = plan_pipeline(config, source_root, release)
        descriptor = plan.descriptor
        tracker.advance(PipelineStage.SOURCE_READ)

        _logger.info(
            "Packaging started",
            extra={
                "package_name": descriptor.name,
                "version": descriptor.version,
                "release": descriptor.release,
                "variant": plan.variant.name,
                "output_dir": str(plan.output_dir),
            },
        )
        _warn_on_unarchived_assets(config)

        if config.package.clean_output:
            _clear_output_dir(plan.output_dir)

        build_archive(plan.archive_path, config.package.sources, plan.source_root)
        artifacts = render_artifacts(descriptor, plan.variant, config)
        tracker.advance(PipelineStage.RENDERED)

        digests = compute_digests(plan.archive_path, artifacts)
        tracker.advance(PipelineStage.HASHED)

        result = assemble(
            descriptor,
            artifacts,
            digests,
            plan.variant,
            config,
            plan.output_dir,
            invoke=invoke_builder,
            on_stage=tracker.advance,
        )
        if result.stage is PipelineStage.SUCCESS:
            tracker.advance(PipelineStage.SUCCESS)

    except PackagingError as err:
        failed_at = tracker.stage
        err.stage = failed_at.value
        tracker.advance(PipelineStage.FAILED)
        if plan is not None and failed_at is not PipelineStage.INVOKED:
            _remove_partial_output(plan)
        _logger.error(
            "Packaging failed",
            extra={"stage": failed_at.value, "error": str(err), "error_type": type(err).__name__},
        )
        raise

    _logger.info(
        "Packaging finished",
        extra={
            "stage": result.stage.value,
            "package": result.package_path,
            "files": result.written_files,
        },
    )
    return result
