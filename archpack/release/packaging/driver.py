# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package driver — writes the rendered artifacts and the PKGBUILD to the output
directory, then hands the directory to the package builder.

Output layout:

    <output_dir>/
    ├─ <name>-<version>.tar.gz   (written earlier by the archiver)
    ├─ <name>.service
    ├─ <name>.toml
    ├─ <name>.sysusers           (dedicated-user variant only)
    └─ PKGBUILD

Each file is written atomically from the exact bytes that were hashed, then
read back and hashed again. A mismatch is a WriteError: makepkg would reject
the package anyway, and we'd rather say which file drifted.
"""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from archpack.config.schema import ArchpackConfig
from archpack.logging.logger import get_logger
from archpack.release.artifacts import ArtifactSet, DigestSet, RenderedArtifact
from archpack.release.checksums.digest import digest, digest_file
from archpack.release.exceptions import WriteError
from archpack.release.manifests.reader import ReleaseDescriptor
from archpack.release.packaging.builder import invoke_builder, locate_package
from archpack.release.templates.engine import render_recipe
from archpack.release.templates.variants import DeploymentVariant
from archpack.utils.filesystem import atomic_write_bytes
from archpack.utils.process import ProcessResult

_logger: logging.Logger = get_logger(__name__)


class PipelineStage(enum.Enum):
    """Where a packaging run is. Runs only move forward; any error ends in FAILED."""

    START = "start"
    SOURCE_READ = "source_read"
    RENDERED = "rendered"
    HASHED = "hashed"
    WRITTEN = "written"
    INVOKED = "invoked"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class PackageResult:
    """Outcome of a packaging run that did not raise."""

    descriptor: ReleaseDescriptor
    output_dir: str
    digests: DigestSet
    written_files: list[str] = field(default_factory=list)
    builder_result: Optional[ProcessResult] = None
    package_path: Optional[str] = None
    stage: PipelineStage = PipelineStage.WRITTEN

    @property
    def exit_status(self) -> int:
        """The builder's exit status; 0 when it ran cleanly or was skipped."""
        if self.builder_result is None:
            return 0
        return self.builder_result.exit_code


def write_artifacts(output_dir: Path, artifacts: Iterable[RenderedArtifact]) -> list[Path]:
    """
    Write each artifact atomically and confirm the file hashes like its content.

    Args:
        output_dir: Target directory, created if absent.
        artifacts: Rendered artifacts to write.

    Returns:
        Paths written, in input order.

    Raises:
        WriteError: On any OSError or on a digest mismatch after writing.
    """
    written: list[Path] = []
    for artifact in artifacts:
        target = output_dir / artifact.filename
        try:
            atomic_write_bytes(target, artifact.content)
            on_disk = digest_file(target)
        except OSError as err:
            raise WriteError(f"Cannot write {target}: {err}") from err

        expected = digest(artifact.content)
        if on_disk != expected:
            raise WriteError(
                f"{target} hashes to {on_disk} on disk but {expected} in memory"
            )

        written.append(target)
        _logger.debug(
            "Artifact written",
            extra={"file": artifact.filename, "size_bytes": len(artifact.content)},
        )

    return written


def assemble(
    descriptor: ReleaseDescriptor,
    artifacts: ArtifactSet,
    digests: DigestSet,
    variant: DeploymentVariant,
    config: ArchpackConfig,
    output_dir: Path,
    invoke: bool = True,
    on_stage: Optional[Callable[[PipelineStage], None]] = None,
) -> PackageResult:
    """
    Render the PKGBUILD, write it with every artifact, and run the builder.

    Args:
        descriptor: Name, version and release of this run.
        artifacts: Rendered non-archive artifacts.
        digests: DigestSet covering the archive and every artifact.
        variant: Deployment variant the artifacts were rendered for.
        config: Loaded configuration (recipe fields, builder command).
        output_dir: Directory that already holds the archive.
        invoke: Skip the builder when False; the result then stops at WRITTEN.
        on_stage: Called with WRITTEN and INVOKED as the run reaches them.

    Returns:
        PackageResult. When the builder ran, stage is SUCCESS.

    Raises:
        WriteError: If any artifact fails to write.
        BuilderInvocationError: If the builder fails.
    """
    recipe = render_recipe(descriptor, variant, config, digests)
    written = write_artifacts(output_dir, [*artifacts, recipe])
    written_names = [path.name for path in written]

    _logger.info(
        "Artifacts written",
        extra={"output_dir": str(output_dir), "files": written_names},
    )
    if on_stage is not None:
        on_stage(PipelineStage.WRITTEN)

    if not invoke:
        return PackageResult(
            descriptor=descriptor,
            output_dir=str(output_dir),
            digests=digests,
            written_files=written_names,
            stage=PipelineStage.WRITTEN,
        )

    if on_stage is not None:
        on_stage(PipelineStage.INVOKED)
    builder_result = invoke_builder(
        config.builder.command,
        output_dir,
        timeout_seconds=config.builder.timeout_seconds,
    )
    package_path = locate_package(output_dir, descriptor)

    return PackageResult(
        descriptor=descriptor,
        output_dir=str(output_dir),
        digests=digests,
        written_files=written_names,
        builder_result=builder_result,
        package_path=str(package_path) if package_path is not None else None,
        stage=PipelineStage.SUCCESS,
    )
