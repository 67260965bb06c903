# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
fundengine test suite.

Unit tests per calculator under ``unit/`` and end-to-end fund analyses under
``integration/``.
"""
