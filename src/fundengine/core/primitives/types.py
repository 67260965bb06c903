# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from decimal import Decimal
from typing import Annotated

from pydantic import Field

# constrained types
PositiveInt = Annotated[int, Field(strict=True, ge=0)]
PositiveFloat = Annotated[float, Field(ge=0)]

# Rates and allocation shares are Decimal so they multiply Money exactly
Fraction = Annotated[Decimal, Field(ge=0, le=1)]
