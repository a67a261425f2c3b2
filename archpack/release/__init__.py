# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release packaging subsystem for archpack.

Provides manifest reading, source archiving, artifact rendering, checksum
computation and verification, and the package driver that writes everything
and hands it to makepkg.

A run either produces one consistent package or nothing: every stage fails
fast and no stage is retried.
"""
