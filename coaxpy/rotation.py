"""Rotation coefficients.

This module defines :class:`~coaxpy.rotation.RotationCoefficients`, the
re-expansion coefficients of a spherical harmonic expansion after the
coordinate axes have been rotated by the Euler angles ``(theta, phi, chi)``.
They mix orders within a single degree:

.. math::

    \\tilde{c}_n^\\mu = \\sum_{m=-n}^{n} T_n^{m \\mu} \\, c_n^m,
    \\qquad
    T_n^{m \\mu} = \\epsilon_m \\epsilon_\\mu e^{i m \\chi} e^{-i \\mu \\phi}
    d^n_{m \\mu}(\\theta),

where $d^n$ is Wigner's small d-matrix and $\\epsilon_k = (-1)^k$ for $k > 0$,
$1$ otherwise. Zero angles therefore give the identity and every degree block
is unitary for real angles.
"""

from __future__ import annotations

import logging
from time import time

import numpy as np

from coaxpy.baked import BakedRotationOperator
from coaxpy.functions.misc import coupling_a, coupling_b, normalized_legendre
from coaxpy.indexing import harmonics, nmax_from_rows, rotation_triples
from coaxpy.ops import as_columns, check_out, deliver

_ZERO = np.clongdouble(0)
# orders the recursion may descend below a cached level
_STRIDE = 32


class RotationCoefficients:
    """Cached rotation coefficients for one set of Euler angles.

    Parameters
    ----------
    theta
        Polar Euler angle.
    phi
        First azimuthal Euler angle.
    chi
        Second azimuthal Euler angle.

    Notes
    -----
    Coefficients with ``m == 0`` are computed directly from associated Legendre
    functions. For ``m > 0`` a three-term recurrence reaches up one degree and
    down one order; with ``m < 0`` the value is the complex conjugate of the
    one at ``(-m, -mu)``, so only non-negative ``m`` is cached.

    A first request at a high order fills the cache in strides of 32 orders,
    so the recursion depth stays bounded whatever the order.
    """

    def __init__(self, theta: float, phi: float, chi: float):
        self._theta = np.longdouble(theta)
        self._phi = np.longdouble(phi)
        self._chi = np.longdouble(chi)
        self._cache: dict[tuple[int, int, int], np.clongdouble] = {}

        self._cos_theta = np.cos(self._theta)
        self._sin_theta = np.sin(self._theta)
        self._e_phi = np.exp(np.clongdouble(1j) * self._phi)
        self._e_chi = np.exp(np.clongdouble(1j) * self._chi)

        self.log = logging.getLogger(self.__class__.__module__)

    @property
    def angles(self) -> tuple[float, float, float]:
        return float(self._theta), float(self._phi), float(self._chi)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def coefficient(self, n: int, m: int, mu: int) -> complex:
        """Coefficient coupling input term (n, m) to output term (n, mu).

        Returns zero when either order exceeds the degree.
        """

        if m < 0:
            self._prefill(n, -m, -mu)
        else:
            self._prefill(n, m, mu)
        return complex(self._coefficient(n, m, mu))

    __call__ = coefficient

    def _prefill(self, n: int, m: int, mu: int):
        """Cache every stride-th order below (n, m, mu) that its recursion visits.

        Order ``j`` is reached at degree ``n + m - j`` with targets within
        ``m - j`` of ``mu``.
        """

        if m <= _STRIDE or abs(mu) > n or m > n or (n, m, mu) in self._cache:
            return
        for j in range(_STRIDE, m, _STRIDE):
            degree = n + m - j
            low = max(-degree, mu - (m - j))
            high = min(degree, mu + (m - j))
            for target in range(low, high + 1):
                self._coefficient(degree, j, target)

    def _coefficient(self, n: int, m: int, mu: int) -> np.clongdouble:
        if n < 0 or abs(m) > n or abs(mu) > n:
            return _ZERO
        if m < 0:
            return np.conj(self._coefficient(n, -m, -mu))

        key = (n, m, mu)
        prior = self._cache.get(key)
        if prior is not None:
            return prior

        value = self._initial(n, mu) if m == 0 else self._recursion(n, m, mu)
        self._cache[key] = value
        return value

    def _initial(self, n: int, mu: int) -> np.clongdouble:
        legendre = np.longdouble(normalized_legendre(n, mu, float(self._cos_theta)))
        return legendre * np.exp(np.clongdouble(-1j) * mu * self._phi)

    def _factors(self, n: int, m: int, mu: int):
        """Weights of the neighbours at ``mu + 1``, ``mu - 1`` and ``mu``."""

        factor = self._e_chi / coupling_b(n + 1, m - 1)
        c_plus = (
            -factor
            * 0.5
            * coupling_b(n + 1, -mu - 1)
            * self._e_phi
            * (1 - self._cos_theta)
        )
        c_minus = (
            factor
            * 0.5
            * coupling_b(n + 1, mu - 1)
            * np.conj(self._e_phi)
            * (1 + self._cos_theta)
        )
        c_zero = -factor * coupling_a(n, mu) * self._sin_theta
        return c_plus, c_minus, c_zero

    def _recursion(self, n: int, m: int, mu: int) -> np.clongdouble:
        c_plus, c_minus, c_zero = self._factors(n, m, mu)
        return (
            c_plus * self._coefficient(n + 1, m - 1, mu + 1)
            + c_minus * self._coefficient(n + 1, m - 1, mu - 1)
            + c_zero * self._coefficient(n + 1, m - 1, mu)
        )

    def apply(self, x: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Rotate an expansion vector or matrix.

        Parameters
        ----------
        x:
            Input of shape ``(rows,)`` or ``(rows, columns)``; ``rows`` must be
            ``(nmax + 1)**2``.
        out:
            Optional output array of the same shape as ``x``.

        Returns
        -------
        numpy.ndarray
            The rotated expansion.

        Raises
        ------
        ValueError
            If the number of rows is not a perfect square.
        """

        columns, shape = as_columns(x)
        check_out(out, shape)
        nmax = nmax_from_rows(columns.shape[0])

        result = np.zeros_like(columns)
        for i, n, m in harmonics(nmax):
            for mu in range(-n, n + 1):
                result[n * (n + 1) + mu] += self.coefficient(n, m, mu) * columns[i]

        return deliver(result, shape, out)

    def bake(self, nmax: int) -> BakedRotationOperator:
        """Precompute every coefficient needed up to degree ``nmax``."""

        bake_start = time()
        coefficients = [
            self.coefficient(n, m, mu) for _, n, m, mu in rotation_triples(nmax)
        ]
        operator = BakedRotationOperator(nmax=nmax, coefficients=coefficients)
        bake_stop = time()

        self.log.info(
            "Baking rotation for nmax=%d took %f s", nmax, bake_stop - bake_start
        )
        self.log.debug("rotation cache holds %d coefficients", len(self._cache))
        return operator
