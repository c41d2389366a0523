"""Runtime: device/dtype resolution and seed management."""

from __future__ import annotations

import random

import numpy as np
import torch

from zcaw.constants import DTYPES


def set_seed(seed: int) -> None:
    """Set all random seeds for reproducibility."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def resolve_dtype(name: str | torch.dtype) -> torch.dtype:
    if isinstance(name, torch.dtype):
        return name
    if name not in DTYPES:
        raise ValueError(f"Unsupported dtype '{name}', expected one of {sorted(DTYPES)}")
    return DTYPES[name]


def resolve_device(name: str | torch.device) -> torch.device:
    return name if isinstance(name, torch.device) else torch.device(name)
