"""Normalization of sample vectors before fitting."""

from __future__ import annotations

import numpy as np

from sphfit.analysis.types import ScaleRecord
from sphfit.errors import DegenerateSamplesError


def scale_samples(samples: np.ndarray) -> ScaleRecord:
    """
    Scale ``samples`` in place to the range [-1, 1].

    The mean is reported but not subtracted: the array is divided by its
    largest absolute value, so ``record.restore(samples)`` gives back the
    original values.

    Args:
        samples: Floating-point sample vector, modified in place.

    Returns:
        ScaleRecord with the arithmetic mean and the scale factor.
    """
    if samples.size == 0:
        raise DegenerateSamplesError("cannot scale an empty sample vector")
    if not np.all(np.isfinite(samples)):
        raise DegenerateSamplesError("sample vector contains NaN or Inf")

    mean = float(np.mean(samples))
    scale = float(np.max(np.abs(samples)))
    if scale == 0.0:
        raise DegenerateSamplesError("sample vector is identically zero")

    np.divide(samples, scale, out=samples)
    return ScaleRecord(mean=mean, scale=scale)
