# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deployment variants.

Both variants run the same binary through the same templates. They differ
only in the identity the service runs as and where its files live:

    dedicated-user   User=<name> with a fixed UID from sysusers.d.
                     Config in /etc, writable state in /var/lib/<name>/,
                     files owned by the service user with mode 600.

    dynamic-user     DynamicUser=yes, identity allocated by systemd.
                     Config and assets in /usr/share/<name>/, read-only,
                     mode 644, no sysusers entry.

Paths are format strings over the package name.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeploymentVariant:
    """Everything the templates need to know about one deployment layout."""

    name: str
    dynamic_user: bool
    state_root: str
    config_path: str
    config_mode: str
    asset_mode: str
    owned_by_service_user: bool
    writable_state: bool
    provisions_user: bool

    def state_dir(self, package_name: str) -> str:
        return self.state_root.format(name=package_name)

    def config_file(self, package_name: str) -> str:
        return self.config_path.format(name=package_name)


DEDICATED_USER = DeploymentVariant(
    name="dedicated-user",
    dynamic_user=False,
    state_root="/var/lib/{name}/",
    config_path="/etc/{name}.toml",
    config_mode="600",
    asset_mode="600",
    owned_by_service_user=True,
    writable_state=True,
    provisions_user=True,
)

DYNAMIC_USER = DeploymentVariant(
    name="dynamic-user",
    dynamic_user=True,
    state_root="/usr/share/{name}/",
    config_path="/usr/share/{name}/{name}.toml",
    config_mode="644",
    asset_mode="644",
    owned_by_service_user=False,
    writable_state=False,
    provisions_user=False,
)

VARIANTS: dict[str, DeploymentVariant] = {
    variant.name: variant for variant in (DEDICATED_USER, DYNAMIC_USER)
}


def get_variant(name: str) -> DeploymentVariant:
    """Look up a variant by its config name."""
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown variant '{name}'. Must be one of: {', '.join(sorted(VARIANTS))}"
        ) from None
