# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact types shared by the template engine, the hash computer and the
package driver.

All of these are frozen. Once an artifact has been rendered its bytes are
the ones that get hashed and the ones that get written; nothing in between
may touch them.
"""

import enum
from dataclasses import dataclass
from typing import Iterator

from archpack.release.manifests.reader import ReleaseDescriptor

RECIPE_FILENAME = "PKGBUILD"


class ArtifactKind(enum.Enum):
    ARCHIVE = "archive"
    SERVICE_UNIT = "service-unit"
    CONFIG = "config"
    USER_DESCRIPTOR = "user-descriptor"
    RECIPE = "recipe"


# Order of the PKGBUILD `source` array, and therefore of `sha256sums`.
SOURCE_ORDER: tuple[ArtifactKind, ...] = (
    ArtifactKind.ARCHIVE,
    ArtifactKind.SERVICE_UNIT,
    ArtifactKind.CONFIG,
    ArtifactKind.USER_DESCRIPTOR,
)


def artifact_filename(kind: ArtifactKind, descriptor: ReleaseDescriptor) -> str:
    """Fixed output filename for each artifact kind."""
    if kind is ArtifactKind.ARCHIVE:
        return descriptor.archive_name
    if kind is ArtifactKind.SERVICE_UNIT:
        return f"{descriptor.name}.service"
    if kind is ArtifactKind.CONFIG:
        return f"{descriptor.name}.toml"
    if kind is ArtifactKind.USER_DESCRIPTOR:
        return f"{descriptor.name}.sysusers"
    return RECIPE_FILENAME


@dataclass(frozen=True)
class RenderedArtifact:
    """One generated file: its kind, output filename and exact bytes."""

    kind: ArtifactKind
    filename: str
    content: bytes


@dataclass(frozen=True)
class ArtifactSet:
    """
    The rendered text artifacts of one run, in source order.

    The archive is not part of the set: its bytes are produced by tar and
    only ever exist on disk.
    """

    artifacts: tuple[RenderedArtifact, ...]

    def __iter__(self) -> Iterator[RenderedArtifact]:
        return iter(self.artifacts)

    def __len__(self) -> int:
        return len(self.artifacts)

    def __contains__(self, kind: object) -> bool:
        return any(artifact.kind is kind for artifact in self.artifacts)

    def get(self, kind: ArtifactKind) -> RenderedArtifact:
        for artifact in self.artifacts:
            if artifact.kind is kind:
                return artifact
        raise KeyError(kind.value)

    @property
    def kinds(self) -> tuple[ArtifactKind, ...]:
        return tuple(artifact.kind for artifact in self.artifacts)


@dataclass(frozen=True)
class DigestSet:
    """
    SHA256 digests in PKGBUILD source order, as (filename, hexdigest) pairs.

    `filenames` becomes the `source` array and `digests` the `sha256sums`
    array, so the two are parallel by construction.
    """

    entries: tuple[tuple[str, str], ...]

    @property
    def filenames(self) -> tuple[str, ...]:
        return tuple(filename for filename, _ in self.entries)

    @property
    def digests(self) -> tuple[str, ...]:
        return tuple(digest for _, digest in self.entries)

    def as_dict(self) -> dict[str, str]:
        return dict(self.entries)
