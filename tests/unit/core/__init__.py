# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for core primitives, errors, settings and the IRR solver.
"""
