# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact template engine.

Renders the service unit, the sysusers descriptor, the runtime config and the
PKGBUILD from a ReleaseDescriptor, a DeploymentVariant and the loaded config.

Rendering is a pure function of those three inputs (plus the digests, for the
PKGBUILD). No clock, no environment, no filesystem. The pipeline renders each
artifact exactly once and reuses those bytes for hashing and for writing, so
any nondeterminism here would show up as a checksum failure in makepkg.
"""

import json
from dataclasses import dataclass
from string import Template
from typing import Optional

from archpack.config.schema import ArchpackConfig
from archpack.logging.logger import get_logger
from archpack.release.artifacts import (
    ArtifactKind,
    ArtifactSet,
    DigestSet,
    RenderedArtifact,
    SOURCE_ORDER,
    artifact_filename,
)
from archpack.release.manifests.reader import ReleaseDescriptor
from archpack.release.templates import texts
from archpack.release.templates.variants import DeploymentVariant

logger = get_logger(__name__)

TEMPLATES: dict[ArtifactKind, Template] = {
    ArtifactKind.SERVICE_UNIT: texts.SERVICE_UNIT,
    ArtifactKind.USER_DESCRIPTOR: texts.USER_DESCRIPTOR,
    ArtifactKind.CONFIG: texts.CONFIG,
    ArtifactKind.RECIPE: texts.RECIPE,
}

ENCODING = "utf-8"


@dataclass(frozen=True)
class InstallStep:
    """
    One line of the PKGBUILD package() stage.

    `kind` is "file" (install one file), "dir" (create a directory) or
    "tree" (install every file under a source directory).
    """

    kind: str
    target: str
    mode: str
    source: str = ""
    owner: Optional[int] = None

    def render(self) -> str:
        ownership = f" -o {self.owner} -g {self.owner}" if self.owner is not None else ""
        if self.kind == "dir":
            return f'  install -d -m {self.mode}{ownership} "$pkgdir"{self.target}'
        if self.kind == "tree":
            return (
                f"  find {self.source}/ -type f -exec install -Dm{self.mode}{ownership}"
                f' {{}} "$pkgdir"{self.target}{{}} \\;'
            )
        return f'  install -Dm{self.mode}{ownership} "{self.source}" "$pkgdir"{self.target}'


def _quote(value: str) -> str:
    """Single-quote a value for bash."""
    return "'" + value.replace("'", "'\\''") + "'"


def _bash_array(items: tuple[str, ...] | list[str], align_under: str = "") -> str:
    """
    Space-separated quoted items, or one item per line lined up under the
    opening parenthesis of `align_under=(` when given.
    """
    quoted = [_quote(item) for item in items]
    separator = "\n" + " " * (len(align_under) + 2) if align_under else " "
    return separator.join(quoted)


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes.
    return json.dumps(value)


def artifact_kinds(variant: DeploymentVariant) -> tuple[ArtifactKind, ...]:
    """Artifact kinds this variant ships, in source order."""
    return tuple(
        kind
        for kind in SOURCE_ORDER
        if kind is not ArtifactKind.USER_DESCRIPTOR or variant.provisions_user
    )


def template_bindings(
    descriptor: ReleaseDescriptor,
    variant: DeploymentVariant,
    config: ArchpackConfig,
) -> dict[str, str]:
    """
    Every placeholder value used by the service unit, user descriptor and
    config templates, as one flat mapping.
    """
    package = config.package
    state_dir = variant.state_dir(descriptor.name)
    config_path = variant.config_file(descriptor.name)

    if variant.dynamic_user:
        identity_directive = "DynamicUser=yes"
    else:
        identity_directive = f"User={descriptor.name}"

    write_paths_directive = f"ReadWritePaths={state_dir}\n" if variant.writable_state else ""

    return {
        "name": descriptor.name,
        "version": descriptor.version,
        "release": str(descriptor.release),
        "description": package.description or descriptor.name,
        "identity_directive": identity_directive,
        "write_paths_directive": write_paths_directive,
        "working_directory": state_dir,
        "config_path": config_path,
        "restart_sec": str(config.service.restart_sec),
        "user_id": str(package.user_id),
        "user_shell": package.user_shell,
        "home_dir": state_dir.rstrip("/"),
        "hostname": _toml_string(config.service.hostname),
        "listen": _toml_string(config.service.listen),
    }


def template_placeholders(kind: ArtifactKind) -> frozenset[str]:
    """The named substitution points of one template."""
    if kind not in TEMPLATES:
        raise ValueError(f"No template for artifact kind '{kind.value}'")
    return frozenset(TEMPLATES[kind].get_identifiers())


def render(
    kind: ArtifactKind,
    descriptor: ReleaseDescriptor,
    variant: DeploymentVariant,
    config: ArchpackConfig,
) -> str:
    """
    Render one text artifact.

    Raises:
        ValueError: For the archive (not a template), the recipe (needs
            digests, use render_recipe) or a user descriptor requested for a
            variant that doesn't provision a user.
        KeyError: If a template references a placeholder with no binding.
    """
    if kind in (ArtifactKind.ARCHIVE, ArtifactKind.RECIPE):
        raise ValueError(f"Artifact kind '{kind.value}' is not rendered by render()")
    if kind is ArtifactKind.USER_DESCRIPTOR and not variant.provisions_user:
        raise ValueError(f"Variant '{variant.name}' does not ship a user descriptor")

    bindings = template_bindings(descriptor, variant, config)
    return TEMPLATES[kind].substitute(bindings)


def render_artifacts(
    descriptor: ReleaseDescriptor,
    variant: DeploymentVariant,
    config: ArchpackConfig,
) -> ArtifactSet:
    """Render every non-archive artifact the variant ships, once, in source order."""
    rendered: list[RenderedArtifact] = []
    for kind in artifact_kinds(variant):
        if kind is ArtifactKind.ARCHIVE:
            continue
        text = render(kind, descriptor, variant, config)
        rendered.append(
            RenderedArtifact(
                kind=kind,
                filename=artifact_filename(kind, descriptor),
                content=text.encode(ENCODING),
            )
        )

    logger.debug(
        "Artifacts rendered",
        extra={"variant": variant.name, "artifacts": [a.filename for a in rendered]},
    )
    return ArtifactSet(artifacts=tuple(rendered))


def install_steps(
    descriptor: ReleaseDescriptor,
    variant: DeploymentVariant,
    config: ArchpackConfig,
) -> list[InstallStep]:
    """The package() stage, derived from the variant table."""
    package = config.package
    name = descriptor.name
    owner = package.user_id if variant.owned_by_service_user else None
    state_dir = variant.state_dir(name)

    steps = [
        InstallStep(
            kind="file",
            source=artifact_filename(ArtifactKind.CONFIG, descriptor),
            target=variant.config_file(name),
            mode=variant.config_mode,
            owner=owner,
        ),
        InstallStep(
            kind="file",
            source=artifact_filename(ArtifactKind.SERVICE_UNIT, descriptor),
            target=f"/usr/lib/systemd/system/{name}.service",
            mode="644",
        ),
    ]
    if variant.provisions_user:
        steps.append(
            InstallStep(
                kind="file",
                source=artifact_filename(ArtifactKind.USER_DESCRIPTOR, descriptor),
                target=f"/usr/lib/sysusers.d/{name}.conf",
                mode="644",
            )
        )
    if variant.writable_state:
        steps.append(InstallStep(kind="dir", target=state_dir, mode="700", owner=owner))
    if package.static_dir:
        steps.append(
            InstallStep(
                kind="tree",
                source=package.static_dir.rstrip("/"),
                target=state_dir,
                mode=variant.asset_mode,
                owner=owner,
            )
        )
    steps.append(
        InstallStep(
            kind="file",
            source=f"target/release/{name}",
            target=f"/usr/bin/{name}",
            mode="755",
        )
    )
    return steps


def render_recipe(
    descriptor: ReleaseDescriptor,
    variant: DeploymentVariant,
    config: ArchpackConfig,
    digests: DigestSet,
) -> RenderedArtifact:
    """
    Render the PKGBUILD.

    `source` and `sha256sums` both come from the same DigestSet, so they have
    the same length and order.
    """
    package = config.package
    backup_path = variant.config_file(descriptor.name).lstrip("/")
    steps = install_steps(descriptor, variant, config)

    bindings = {
        "name": descriptor.name,
        "version": descriptor.version,
        "release": str(descriptor.release),
        "pkgdesc": _quote(package.description or descriptor.name),
        "depends": _bash_array(package.depends),
        "makedepends": _bash_array(package.makedepends),
        "arch": _bash_array(package.arch),
        "license": _bash_array(package.license),
        "source": _bash_array(digests.filenames, align_under="source"),
        "sha256sums": _bash_array(digests.digests, align_under="sha256sums"),
        "backup": _quote(backup_path),
        "build_command": config.builder.build_command,
        "package_steps": "\n".join(step.render() for step in steps),
    }
    text = TEMPLATES[ArtifactKind.RECIPE].substitute(bindings)

    return RenderedArtifact(
        kind=ArtifactKind.RECIPE,
        filename=artifact_filename(ArtifactKind.RECIPE, descriptor),
        content=text.encode(ENCODING),
    )
