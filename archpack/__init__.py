# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
archpack — release packaging for a single service binary.

Reads name and version from a Cargo manifest, renders the systemd unit,
sysusers descriptor, runtime config and PKGBUILD, hashes everything, and
hands the result to makepkg.
"""

__version__ = "0.1.0"
