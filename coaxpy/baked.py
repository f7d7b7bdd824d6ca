"""Baked linear operators.

A baked operator freezes every coefficient an engine produces up to a fixed
maximum degree into a flat array, stored in the canonical generation order of
:mod:`coaxpy.indexing`. Applying it replays that order without any recurrence,
cache lookup or reference to the originating engine, so a solver pays the
recurrence cost once per geometry/frequency and only linear-algebra cost on
every iteration.

Baked operators hold no mutable state: they may be applied concurrently from
several threads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from time import perf_counter

import numpy as np
from scipy.sparse.linalg import LinearOperator

from coaxpy.env import (
    APPLY_KERNELS,
    apply_kernel_from_env,
    apply_timing_enabled,
    parse_int_env,
)
from coaxpy.functions.cpu_numba import (
    coaxial_replay,
    compute_replay_rows,
    rotation_replay,
)
from coaxpy.indexing import coaxial_size, max_flat, rotation_size
from coaxpy.ops import as_columns, check_out, deliver

log = logging.getLogger(__name__)


@lru_cache(maxsize=parse_int_env("COAXPY_REPLAY_CACHE_SIZE", default=64))
def replay_rows(nmax: int, rotation: bool) -> tuple[np.ndarray, np.ndarray]:
    """Read-only ``(source, target)`` rows of a replay, shared between operators."""

    source, target = compute_replay_rows(nmax, rotation)
    source.setflags(write=False)
    target.setflags(write=False)
    return source, target


@dataclass(frozen=True, eq=False)
class BakedOperator:
    """Immutable precomputed expansion transform.

    Attributes
    ----------
    nmax:
        Maximum degree fixed at bake time.
    coefficients:
        Read-only ``complex128`` array in canonical generation order.
    kernel:
        Replay kernel, ``"numba"`` or ``"numpy"``. Defaults to the value of
        ``COAXPY_APPLY_KERNEL``.
    """

    nmax: int
    coefficients: np.ndarray
    kernel: str = field(default_factory=apply_kernel_from_env)

    _rotation = False

    def __post_init__(self):
        nmax = int(self.nmax)
        coefficients = np.array(self.coefficients, dtype=np.complex128).ravel()
        expected = self.expected_size(nmax)
        if coefficients.size != expected:
            raise ValueError(
                f"{type(self).__name__} for nmax={nmax} needs {expected} coefficients, "
                f"got {coefficients.size}."
            )
        if self.kernel not in APPLY_KERNELS:
            raise ValueError(
                f"Unsupported replay kernel: {self.kernel!r}. "
                f"Expected one of {set(APPLY_KERNELS)}."
            )
        coefficients.setflags(write=False)
        object.__setattr__(self, "nmax", nmax)
        object.__setattr__(self, "coefficients", coefficients)

    @staticmethod
    def expected_size(nmax: int) -> int:  # pragma: no cover
        raise NotImplementedError

    @staticmethod
    def _replay(nmax: int, coefficients: np.ndarray, x: np.ndarray) -> np.ndarray:  # pragma: no cover
        raise NotImplementedError

    @property
    def rows(self) -> int:
        return max_flat(self.nmax)

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.rows

    def apply(self, x: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Apply the baked transform to an expansion vector or matrix.

        Parameters
        ----------
        x:
            Input of shape ``(rows,)`` or ``(rows, columns)`` with
            ``rows == (nmax + 1)**2`` for the baked ``nmax``.
        out:
            Optional output array of the same shape as ``x``.

        Returns
        -------
        numpy.ndarray
            The transformed expansion.

        Raises
        ------
        ValueError
            If the number of rows does not match the baked degree.
        """

        columns, shape = as_columns(x)
        check_out(out, shape)
        if columns.shape[0] != self.rows:
            raise ValueError(
                f"Operator baked for nmax={self.nmax} expects {self.rows} rows, "
                f"got {columns.shape[0]}."
            )

        timing = apply_timing_enabled()
        if timing:
            t0 = perf_counter()

        if self.kernel == "numba":
            result = self._replay(self.nmax, self.coefficients, columns)
        else:
            source, target = replay_rows(self.nmax, self._rotation)
            result = np.zeros_like(columns)
            np.add.at(result, target, self.coefficients[:, np.newaxis] * columns[source])

        if timing:
            log.debug(
                "%s apply (%s) took %f s",
                type(self).__name__,
                self.kernel,
                perf_counter() - t0,
            )

        return deliver(result, shape, out)

    __call__ = apply

    def as_linear_operator(self) -> LinearOperator:
        """Wrap the operator for the :mod:`scipy.sparse.linalg` solvers."""

        return LinearOperator(
            shape=self.shape,
            matvec=self.apply,
            matmat=self.apply,
            dtype=np.complex128,
        )


@dataclass(frozen=True, eq=False)
class BakedCoaxialOperator(BakedOperator):
    """Baked coaxial translation.

    Replays ``n`` ascending, ``m = -n .. n``, ``l = |m| .. nmax`` and adds
    ``c * x[n*(n+1)+m]`` to row ``l*(l+1)+m``.
    """

    _rotation = False

    @staticmethod
    def expected_size(nmax: int) -> int:
        return coaxial_size(nmax)

    @staticmethod
    def _replay(nmax: int, coefficients: np.ndarray, x: np.ndarray) -> np.ndarray:
        return coaxial_replay(nmax, coefficients, x)


@dataclass(frozen=True, eq=False)
class BakedRotationOperator(BakedOperator):
    """Baked rotation.

    Replays ``n`` ascending, ``m = -n .. n``, ``mu = -n .. n`` and adds
    ``c * x[n*(n+1)+m]`` to row ``n*(n+1)+mu``.
    """

    _rotation = True

    @staticmethod
    def expected_size(nmax: int) -> int:
        return rotation_size(nmax)

    @staticmethod
    def _replay(nmax: int, coefficients: np.ndarray, x: np.ndarray) -> np.ndarray:
        return rotation_replay(nmax, coefficients, x)
