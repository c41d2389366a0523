"""Whitening configuration: the few parameters that select a whitening policy."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml


@dataclass
class WhiteningConfig:
    """Whitening configuration.

    ``regularization=None`` means the value is derived per dataset as the log
    of the covariance condition number.
    """

    regularization: float | None = None
    method: Literal["zca", "pca"] = "zca"
    decomposition: Literal["svd", "eigh"] = "svd"
    dtype: str = "float64"
    device: str = "cpu"

    def __post_init__(self) -> None:
        if self.method not in ("zca", "pca"):
            raise ValueError(f"Unknown whitening method: {self.method}")
        if self.decomposition not in ("svd", "eigh"):
            raise ValueError(f"Unknown decomposition: {self.decomposition}")
        if self.regularization is not None:
            self.regularization = float(self.regularization)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "regularization": self.regularization,
            "method": self.method,
            "decomposition": self.decomposition,
            "dtype": self.dtype,
            "device": self.device,
        }

    def save(self, path: str | Path) -> None:
        """Save config to YAML."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: str | Path) -> WhiteningConfig:
        """Load config from YAML. Unknown keys are ignored."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)
