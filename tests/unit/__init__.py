# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for fundengine components.

Each package exercises one calculator or model in isolation.
"""
