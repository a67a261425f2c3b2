# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Template texts for the generated artifacts.

Plain string.Template documents. Every substitution point is a named
placeholder; `engine.template_bindings` provides all of them from a single
mapping. Literal dollar signs would have to be written as `$$`, which is why
shell snippets like `"$pkgdir"` are produced by the engine as values rather
than written here.
"""

from string import Template

SERVICE_UNIT = Template(
    """\
[Unit]
Description=${description}
Requires=network-online.target
After=network-online.target

[Service]
${identity_directive}
ProtectSystem=full
PrivateDevices=yes
PrivateTmp=yes
NoNewPrivileges=true

Type=simple
Restart=on-failure
RestartSec=${restart_sec}

${write_paths_directive}WorkingDirectory=${working_directory}
Environment=CONFIG_FILE=${config_path}
ExecStart=/usr/bin/${name}

[Install]
WantedBy=multi-user.target
"""
)

USER_DESCRIPTOR = Template(
    """\
u ${name} ${user_id} "${name} user" ${home_dir} ${user_shell}
"""
)

CONFIG = Template(
    """\
[general]
hostname = ${hostname}
listen = ${listen}
"""
)

RECIPE = Template(
    """\
pkgname=${name}
pkgver=${version}
pkgrel=${release}
pkgdesc=${pkgdesc}
depends=(${depends})
makedepends=(${makedepends})
arch=(${arch})
license=(${license})

source=(${source})

sha256sums=(${sha256sums})

backup=(${backup})

build() {
  ${build_command}
}

check() {
  true
}

package() {
${package_steps}
}
"""
)
