# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the pydantic config schemas.

Every model should:
  - accept valid data
  - reject unknown fields
  - enforce type and range constraints
  - be immutable after construction
"""

import pytest
from pydantic import ValidationError

from archpack.config.schema import (
    ArchpackConfig,
    BuilderConfig,
    GlobalConfig,
    PackageConfig,
    ServiceConfig,
)


class TestDefaults:
    def test_package_defaults_match_the_reference_layout(self) -> None:
        package = PackageConfig()
        assert package.manifest == "Cargo.toml"
        assert package.sources == ["src", "Cargo.toml", "templates", "static"]
        assert package.variant == "dedicated-user"
        assert package.release is None
        assert package.user_id == 248

    def test_service_defaults(self) -> None:
        service = ServiceConfig()
        assert service.hostname == "localhost:8000"
        assert service.restart_sec == 30

    def test_global_section_is_read_by_alias(self) -> None:
        config = ArchpackConfig.model_validate({"global": {"log_level": "WARNING"}})
        assert config.global_config.log_level == "WARNING"
        assert GlobalConfig().log_file is None


class TestConstraints:
    def test_empty_sources_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PackageConfig(sources=[])

    def test_negative_release_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PackageConfig(release=-1)

    def test_empty_builder_command_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BuilderConfig(command=[])

    def test_zero_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BuilderConfig(timeout_seconds=0)

    def test_extra_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServiceConfig(port=8000)  # type: ignore[call-arg]

    @pytest.mark.parametrize("variant", ["dedicated-user", "dynamic-user"])
    def test_known_variants_accepted(self, variant: str) -> None:
        assert PackageConfig(variant=variant).variant == variant


class TestImmutability:
    def test_sections_are_frozen(self) -> None:
        config = ArchpackConfig()
        with pytest.raises(ValidationError):
            config.service.listen = "0.0.0.0:1"  # type: ignore[misc]

    def test_model_copy_leaves_original_untouched(self) -> None:
        config = ArchpackConfig()
        updated = config.model_copy(
            update={"package": config.package.model_copy(update={"release": 9})}
        )
        assert updated.package.release == 9
        assert config.package.release is None


class TestOutputDirValidation:
    @pytest.mark.parametrize("output_dir", ["", ".", "./", "/var/tmp/archpkg", "..", "../dist", "dist/../.."])
    def test_unsafe_output_dir_rejected(self, output_dir: str) -> None:
        with pytest.raises(ValidationError, match="relative subdirectory"):
            PackageConfig(output_dir=output_dir)

    @pytest.mark.parametrize("output_dir", ["archpkg", "dist/arch", "./out"])
    def test_subdirectories_accepted(self, output_dir: str) -> None:
        assert PackageConfig(output_dir=output_dir).output_dir == output_dir


class TestLogLevelValidation:
    def test_level_is_normalized_to_upper_case(self) -> None:
        assert GlobalConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid log level"):
            GlobalConfig(log_level="LOUD")
