# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base Pydantic model with common configuration.

    Immutable value objects: every engine input and output is frozen so a
    calculation can never alter the snapshot it was handed. New states are
    produced with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,  # Inputs are snapshots; results are projections of them
        extra="forbid",  # Catches typos and missing field definitions immediately
        validate_default=True,
    )

    def to_export_dict(self) -> Dict[str, Any]:
        """
        JSON-safe dict with full precision.

        Money and Decimal values are emitted as strings, and dates as ISO
        strings. Rounding for display is left to the caller.
        """
        return self.model_dump(mode="json")
