"""Fixed numerical constants for whitening.

These are not user-configurable. Tolerances apply to float64 inputs.
"""

import torch

# Tensor defaults
DEFAULT_DTYPE: torch.dtype = torch.float64
DEFAULT_DEVICE: torch.device = torch.device("cpu")

# Spectral validation
SPECTRUM_ATOL: float = 1e-10  # relative to the largest weight; smaller negatives are round-off

# Streaming covariance
COVARIANCE_CHUNK: int = 4096

DTYPES: dict[str, torch.dtype] = {
    "float32": torch.float32,
    "float64": torch.float64,
}
