"""
PyTorch backend for the adaptive regularized fit.

The matrix products of every step run on a torch device (CUDA or Apple MPS
when available); scaling, validation and the backtracking logic are shared
with :mod:`sphfit.analysis.regularized`, so results match the numpy engine.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

try:
    import torch
    from torch import Tensor

    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False
    Tensor = None  # type: ignore[misc, assignment]

from sphfit.analysis.regularized import _assemble, _iterate, _Problem
from sphfit.analysis.types import FitConfig, RegularizedFit
from sphfit.indexing import DegreeBlock


def resolve_device(
    device: str | None = None,
    dtype: torch.dtype | None = None,
) -> tuple[torch.device, torch.dtype]:
    """
    Pick the device and floating dtype for the torch fit.

    Auto-detection prefers CUDA, then Apple MPS, then CPU. Without an
    explicit dtype the fit runs in float64, except on MPS, which only
    supports float32.

    Args:
        device: 'cuda', 'mps', 'cpu', an indexed form such as 'cuda:1',
            or None for auto-detection
        dtype: Floating dtype for the basis and coefficients
    """
    if not HAS_TORCH:
        raise ImportError("PyTorch is required for the torch fitting backend")

    if device is not None:
        try:
            torch_device = torch.device(device)
        except RuntimeError as exc:
            raise ValueError(f"Unknown torch device: {device}") from exc
    elif torch.cuda.is_available():
        torch_device = torch.device("cuda")
    elif torch.backends.mps.is_available():
        torch_device = torch.device("mps")
    else:
        torch_device = torch.device("cpu")

    if dtype is None:
        dtype = torch.float32 if torch_device.type == "mps" else torch.float64
    elif not dtype.is_floating_point:
        raise ValueError(f"dtype must be a floating point type, got {dtype}")
    return torch_device, dtype


def fit_regularized_torch(
    basis: np.ndarray,
    samples: np.ndarray,
    fit_config: FitConfig | None = None,
    blocks: Sequence[DegreeBlock] | None = None,
    device: str | None = None,
    dtype: torch.dtype | None = None,
) -> RegularizedFit:
    """
    Torch counterpart of :func:`sphfit.analysis.regularized.fit_regularized`.

    Args:
        basis: (B, N) basis matrix
        samples: (N,) function values
        fit_config: Tolerance, backtracking and budget settings
        blocks: Degree-block row bounds used for damping
        device: Torch device ('cuda', 'cpu', 'mps', or None for auto)
        dtype: Tensor dtype; float64 by default, float32 on MPS
    """
    if not HAS_TORCH:
        raise ImportError("PyTorch is required for fit_regularized_torch")

    fit_config = fit_config or FitConfig()
    problem = _Problem(basis, samples, fit_config, blocks)

    torch_device, dtype = resolve_device(device, dtype)

    damped = torch.as_tensor(problem.damped, device=torch_device, dtype=dtype)
    basis_t = torch.as_tensor(problem.basis, device=torch_device, dtype=dtype).T
    samples_t = torch.as_tensor(problem.samples, device=torch_device, dtype=dtype)
    damped_samples = damped @ samples_t

    def propose(coeffs: Tensor, lam: float) -> Tensor:
        return 2.0 * lam * (damped_samples - damped @ (basis_t @ coeffs))

    def distance(new: Tensor, old: Tensor) -> float:
        return float(torch.linalg.vector_norm(new - old).item())

    with torch.no_grad():
        harmonics, lam, stats = _iterate(
            propose,
            distance,
            torch.zeros(problem.basis.shape[0], device=torch_device, dtype=dtype),
            problem.lam,
            problem.tol,
            fit_config,
        )

    if harmonics is not None:
        harmonics = harmonics.detach().cpu().numpy().astype(np.float64)
    return _assemble(problem, harmonics, lam, stats)
