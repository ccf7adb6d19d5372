"""
Central configuration constants for spherical-harmonic fitting.
"""

import numpy as np

# ========== Regularized fit ==========
DEFAULT_TOLERANCE_PER_COEFFICIENT = 1e-6  # convergence tolerance is this times B
DEFAULT_ALPHA = 0.5  # lambda is divided by 1/alpha on every backtrack
DEFAULT_MAX_ITERATIONS = 10_000  # proposal evaluations, backtracks included
LAMBDA_FLOOR = float(np.finfo(np.float64).eps)  # relative to the initial lambda

# ========== Reference least squares ==========
MACHINE_PRECISION_RCOND = -1.0  # LAPACK sentinel: cut off at machine precision

# ========== Coefficient vector layout ==========
MEAN_SLOT = 0  # index of the sample mean in a coefficient vector

# ========== Input file keys ==========
BASIS_KEY = "basis"  # NPZ key holding the (B, N) basis matrix
SAMPLES_KEY = "samples"  # NPZ key holding the (N,) sample vector
