# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for archpack.

Every section of the YAML file gets its own frozen pydantic model:
  - frozen=True: settings can't drift between rendering and hashing
  - extra="forbid": a typo in a key fails loudly instead of being ignored
  - validate_default=True: even defaults get type-checked

Every section except `global` has full defaults, so running with no config
file at all packages the project in the current directory with the
dedicated-user layout.
"""

from pathlib import PurePath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

VARIANT_NAMES: frozenset[str] = frozenset({"dedicated-user", "dynamic-user"})
LOG_LEVEL_NAMES: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: schema version and logging."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        default="1.0.0", description="Schema version for compatibility tracking"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in LOG_LEVEL_NAMES:
            raise ValueError(
                f"Invalid log level '{value}'. Must be one of: {', '.join(LOG_LEVEL_NAMES)}"
            )
        return value.upper()


class PackageConfig(BaseModel):
    """
    What goes into the package and how it's laid out on the target host.

    `sources` are archived in the order given, relative to the source root.
    `release` pins the pkgrel; leave it unset to derive one from the clock.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    manifest: str = Field(default="Cargo.toml", description="Build manifest to read name/version from")
    sources: list[str] = Field(
        default_factory=lambda: ["src", "Cargo.toml", "templates", "static"],
        min_length=1,
        description="Paths to pack into the source archive",
    )
    output_dir: str = Field(default="archpkg", description="Where artifacts and PKGBUILD are written")
    variant: str = Field(default="dedicated-user", description="dedicated-user or dynamic-user")
    release: Optional[int] = Field(default=None, ge=0, description="Fixed pkgrel; None derives it from the clock")
    description: Optional[str] = Field(
        default=None, description="pkgdesc and unit Description; defaults to the package name"
    )
    depends: list[str] = Field(default_factory=lambda: ["gcc-libs"])
    makedepends: list[str] = Field(default_factory=lambda: ["cargo"])
    arch: list[str] = Field(default_factory=lambda: ["x86_64"])
    license: list[str] = Field(default_factory=lambda: ["MIT"])
    static_dir: Optional[str] = Field(
        default="static", description="Asset directory installed next to the state root; None to skip"
    )
    user_id: int = Field(default=248, ge=1, description="UID/GID of the dedicated service user")
    user_shell: str = Field(default="/bin/bash", description="Login shell in the sysusers entry")
    clean_output: bool = Field(default=True, description="Wipe the output directory before a run")

    @field_validator("variant")
    @classmethod
    def _known_variant(cls, value: str) -> str:
        if value not in VARIANT_NAMES:
            raise ValueError(
                f"Unknown variant '{value}'. Must be one of: {', '.join(sorted(VARIANT_NAMES))}"
            )
        return value

    @field_validator("output_dir")
    @classmethod
    def _subdirectory_of_source_root(cls, value: str) -> str:
        # The directory is wiped before each run; it must be a proper
        # subdirectory of the checkout, never the checkout itself.
        path = PurePath(value)
        if path.is_absolute() or not path.parts or ".." in path.parts:
            raise ValueError(
                f"output_dir must be a relative subdirectory of the source root, got '{value}'"
            )
        return value


class ServiceConfig(BaseModel):
    """Values rendered into the runtime config and the systemd unit."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    hostname: str = Field(default="localhost:8000", description="Public hostname of the service")
    listen: str = Field(default="[::1]:8000", description="Bind address")
    restart_sec: int = Field(default=30, ge=0, description="RestartSec= backoff in seconds")


class BuilderConfig(BaseModel):
    """The external package builder and the recipe's build stage."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    command: list[str] = Field(
        default_factory=lambda: ["makepkg", "-f"],
        min_length=1,
        description="Builder invocation, run inside the output directory",
    )
    build_command: str = Field(
        default="cargo build --release", description="Body of the PKGBUILD build() stage"
    )
    timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Hard limit for the builder; None waits forever"
    )


class ArchpackConfig(BaseModel):
    """
    Top-level config container.

    A YAML file may contain any subset of the sections. Missing sections fall
    back to their defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    package: PackageConfig = Field(default_factory=PackageConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
