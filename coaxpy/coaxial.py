"""Coaxial translation coefficients.

This module defines :class:`~coaxpy.coaxial.CoaxialTranslation`, which computes
the coefficients re-expanding a spherical wave expansion after its origin has
been shifted along the z axis. Because the translation is coaxial, the order
``m`` is conserved and the coefficient only couples degree ``n`` of the input
to degree ``l`` of the output:

.. math::

    \\tilde{c}_l^m = \\sum_{n \\ge |m|} (E|F)_{l n}^m(t) \\, c_n^m .

The coefficients are generated by the recurrences of Gumerov & Duraiswami
(2002), starting from the closed form

.. math::

    (E|F)_{l 0}^0(t) = (-1)^l \\sqrt{2l + 1} \\, f_l(k t),

with $f_l = j_l$ for the regular-to-regular case and $f_l = h_l^{(1)}$ for the
singular-to-regular case.
"""

from __future__ import annotations

import logging
from time import time

import numpy as np

from coaxpy.baked import BakedCoaxialOperator
from coaxpy.functions.misc import coupling_a, coupling_b, spherical_radial
from coaxpy.indexing import coaxial_triples, harmonics, nmax_from_rows
from coaxpy.ops import as_columns, check_out, deliver

_ZERO = np.clongdouble(0)
# degrees the recursion may descend below a cached level
_STRIDE = 32


class CoaxialTranslation:
    """Cached coaxial translation coefficients for one translation.

    Parameters
    ----------
    distance
        Distance the expansion is translated by, along z.
    wavenumber
        (Complex) wavenumber of the medium.
    regular
        Whether the coefficients translate regular expansions (spherical
        Bessel) or irregular ones (spherical Hankel).

    Notes
    -----
    Recurrence arithmetic is carried out in ``numpy.longdouble`` precision and
    every coefficient ever requested is kept in an unbounded cache. The cache
    is not synchronized: use one instance per thread, or bake an operator with
    :meth:`bake` and share that instead.

    A first request at a high degree fills the cache upward in strides of
    32 degrees, so the recursion depth stays bounded whatever the degree.
    """

    def __init__(self, distance: float, wavenumber: complex, regular: bool = True):
        self._distance = np.longdouble(distance)
        self._wavenumber = np.clongdouble(wavenumber)
        self._regular = bool(regular)
        self._cache: dict[tuple[int, int, int], np.clongdouble] = {}

        self.log = logging.getLogger(self.__class__.__module__)

        if not self._regular and self._distance == 0:
            self.log.warning(
                "Irregular translation coefficients are singular at zero distance."
            )

    @property
    def distance(self) -> float:
        return float(self._distance)

    @property
    def wavenumber(self) -> complex:
        return complex(self._wavenumber)

    @property
    def is_regular(self) -> bool:
        return self._regular

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def coefficient(self, n: int, m: int, l: int) -> complex:
        """Coefficient coupling input term (n, m) to output term (l, m).

        Returns zero when ``|m| > min(n, l)``.
        """

        self._prefill(n, abs(m), l)
        return complex(self._coefficient(n, m, l))

    __call__ = coefficient

    def _prefill(self, n: int, m: int, l: int):
        """Cache every stride-th degree below (n, m, l) that its recursion visits.

        Level ``k`` of the recursion only reaches targets within ``n - k`` of
        ``l``; the sectorial levels ``j < m`` are filled first, then the
        general ones from ``m`` upward.
        """

        if n <= _STRIDE or (n, m, l) in self._cache or m > min(n, l):
            return
        for j in range(_STRIDE, m, _STRIDE):
            for target in range(max(j, l - (n - j)), l + (n - j) + 1):
                self._coefficient(j, j, target)
        for k in range(m + _STRIDE, n, _STRIDE):
            for target in range(max(m, l - (n - k)), l + (n - k) + 1):
                self._coefficient(k, m, target)

    def _coefficient(self, n: int, m: int, l: int) -> np.clongdouble:
        if n < 0 or l < 0 or abs(m) > n or abs(m) > l:
            return _ZERO

        key = (n, m, l)
        prior = self._cache.get(key)
        if prior is not None:
            return prior

        value = self._recurrence(n, m, l)
        self._cache[key] = value
        return value

    def _recurrence(self, n: int, m: int, l: int) -> np.clongdouble:
        if m < 0:
            return self._coefficient(n, -m, l)
        if n == 0:
            return self._initial(l)
        if m == 0:
            return self._zonal_recurrence(n, l)
        if n == m:
            return self._sectorial_recurrence(n, m, l)
        return self._offdiagonal_recurrence(n, m, l)

    def _initial(self, l: int) -> np.clongdouble:
        x = complex(self._wavenumber * self._distance)
        radial = np.clongdouble(spherical_radial(l, x, self._regular))
        sign = 1 if l % 2 == 0 else -1
        return sign * np.sqrt(np.longdouble(2 * l + 1)) * radial

    def _sectorial_recurrence(self, n: int, m: int, l: int) -> np.clongdouble:
        # n == m: step the order down along the sectorial band
        return (
            coupling_b(l, -m) * self._coefficient(m - 1, m - 1, l - 1)
            - coupling_b(l + 1, m - 1) * self._coefficient(m - 1, m - 1, l + 1)
        ) / coupling_b(m, -m)

    def _zonal_recurrence(self, n: int, l: int) -> np.clongdouble:
        return (
            coupling_a(n - 2, 0) * self._coefficient(n - 2, 0, l)
            - coupling_a(l, 0) * self._coefficient(n - 1, 0, l + 1)
            + coupling_a(l - 1, 0) * self._coefficient(n - 1, 0, l - 1)
        ) / coupling_a(n - 1, 0)

    def _offdiagonal_recurrence(self, n: int, m: int, l: int) -> np.clongdouble:
        return (
            coupling_a(n - 2, m) * self._coefficient(n - 2, m, l)
            - coupling_a(l, m) * self._coefficient(n - 1, m, l + 1)
            + coupling_a(l - 1, m) * self._coefficient(n - 1, m, l - 1)
        ) / coupling_a(n - 1, m)

    def apply(self, x: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        """Translate an expansion vector or matrix.

        Parameters
        ----------
        x:
            Input of shape ``(rows,)`` or ``(rows, columns)``; ``rows`` must be
            ``(nmax + 1)**2`` and fixes the maximum degree.
        out:
            Optional output array of the same shape as ``x``.

        Returns
        -------
        numpy.ndarray
            The translated expansion.

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
            for l in range(abs(m), nmax + 1):
                result[l * (l + 1) + m] += self.coefficient(n, m, l) * columns[i]

        return deliver(result, shape, out)

    def bake(self, nmax: int) -> BakedCoaxialOperator:
        """Precompute every coefficient needed up to degree ``nmax``.

        Returns
        -------
        BakedCoaxialOperator
            Immutable operator independent of this instance and its cache.
        """

        bake_start = time()
        coefficients = [self.coefficient(n, m, l) for _, n, m, l in coaxial_triples(nmax)]
        operator = BakedCoaxialOperator(nmax=nmax, coefficients=coefficients)
        bake_stop = time()

        self.log.info(
            "Baking coaxial translation for nmax=%d took %f s", nmax, bake_stop - bake_start
        )
        self.log.debug("coaxial cache holds %d coefficients", len(self._cache))
        return operator
