"""
Linear indexing of real spherical-harmonic coefficients.

Basis rows are grouped by degree, with orders running from -l to l inside
each degree block:

    row(m, l) = l*l + l + m

A coefficient vector carries the sample mean in slot 0, so the coefficient
of (m, l) lives at ``row(m, l) + 1``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from sphfit import config


def harmonic_count(lmax: int) -> int:
    """Number of spherical harmonic coefficients up to degree lmax."""
    if lmax < 0:
        raise ValueError("lmax must be non-negative")
    return (lmax + 1) ** 2


def lmax_from_count(n_coeffs: int) -> int:
    """Maximum degree of a basis with ``n_coeffs`` rows."""
    root = math.isqrt(n_coeffs) if n_coeffs > 0 else 0
    if n_coeffs <= 0 or root * root != n_coeffs:
        raise ValueError(
            f"coefficient count {n_coeffs} is not a positive perfect square"
        )
    return root - 1


def ml_to_index(m: int, l: int) -> int:  # noqa: E741
    """Basis row of order m and degree l."""
    if l < 0 or abs(m) > l:
        raise ValueError(f"invalid spherical harmonic (m={m}, l={l})")
    return l * l + l + m


def index_to_ml(index: int) -> tuple[int, int]:
    """Inverse of :func:`ml_to_index`; returns (m, l)."""
    if index < 0:
        raise ValueError("index must be non-negative")
    l = math.isqrt(index)  # noqa: E741
    return index - l * l - l, l


def coefficient_index(m: int, l: int) -> int:  # noqa: E741
    """Slot of (m, l) in a coefficient vector (slot 0 holds the mean)."""
    return ml_to_index(m, l) + config.MEAN_SLOT + 1


@dataclass(frozen=True, slots=True)
class DegreeBlock:
    """Contiguous basis rows ``[start, stop)`` sharing one degree."""

    degree: int
    start: int
    stop: int

    @property
    def penalty(self) -> int:
        """Smoothness weight l(l+1) applied to the block."""
        return self.degree * (self.degree + 1)


def degree_blocks(lmax: int, include_monopole: bool = False) -> list[DegreeBlock]:
    """
    Row bounds of every degree block up to lmax.

    Degree 0 is skipped by default so the monopole row is left undamped.
    """
    first = 0 if include_monopole else 1
    blocks = []
    for l in range(first, lmax + 1):  # noqa: E741
        centre = ml_to_index(0, l)
        blocks.append(DegreeBlock(degree=l, start=centre - l, stop=centre + l + 1))
    return blocks


def validate_degree_blocks(
    blocks: Iterable[DegreeBlock], n_rows: int
) -> list[DegreeBlock]:
    """Check that blocks fit inside ``n_rows`` rows and do not overlap."""
    checked = sorted(blocks, key=lambda block: block.start)
    previous_stop = 0
    for block in checked:
        if block.degree < 0:
            raise ValueError(f"degree must be non-negative, got {block.degree}")
        if block.stop - block.start != 2 * block.degree + 1:
            raise ValueError(
                f"degree {block.degree} block must span {2 * block.degree + 1} rows, "
                f"got [{block.start}, {block.stop})"
            )
        if block.start < 0:
            raise ValueError(f"degree {block.degree} block starts before row 0")
        if block.start < previous_stop:
            raise ValueError(
                f"degree {block.degree} block [{block.start}, {block.stop}) "
                "overlaps a previous block"
            )
        if block.stop > n_rows:
            raise ValueError(
                f"degree {block.degree} block [{block.start}, {block.stop}) "
                f"exceeds basis row count {n_rows}"
            )
        previous_stop = block.stop
    return checked
