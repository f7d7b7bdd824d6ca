"""Degree/order index bookkeeping.

Expansion vectors are laid out in blocks of ``2n + 1`` entries stacked by
increasing degree ``n``:

.. math::

    i = n^2 + n + m, \\qquad -n \\le m \\le n,

so a vector holding every term up to degree ``nmax`` has ``(nmax + 1)**2``
rows. The sequential position reached by iterating ``n = 0 .. nmax`` and
``m = -n .. n`` is the same number; :func:`harmonics` yields both so call sites
that walk coefficient tables and call sites that address rows agree.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np


def max_flat(nmax: int) -> int:
    """Number of (n, m) terms with ``0 <= n <= nmax``."""

    if nmax < 0:
        raise ValueError(f"The maximum degree must be non-negative, got {nmax}.")
    return (nmax + 1) * (nmax + 1)


def flat_index(n: int, m: int) -> int:
    """Global flat index ``n*n + n + m`` of the term (n, m).

    Raises
    ------
    ValueError
        If ``|m| > n``; such a term has no row in an expansion vector.
    """

    if n < 0 or abs(m) > n:
        raise ValueError(f"(n={n}, m={m}) is not a valid degree/order pair.")
    return n * n + n + m


def degree_order(index: int) -> tuple[int, int]:
    """Inverse of :func:`flat_index`."""

    if index < 0:
        raise ValueError(f"Flat indices are non-negative, got {index}.")
    n = int(np.floor(np.sqrt(index)))
    # guard against floating point rounding for large indices
    while n * n > index:
        n -= 1
    while (n + 1) * (n + 1) <= index:
        n += 1
    return n, index - n * n - n


def nmax_from_rows(rows: int) -> int:
    """Recover the maximum degree from the row count of an expansion vector.

    Parameters
    ----------
    rows:
        Number of rows, expected to be ``(nmax + 1)**2``.

    Returns
    -------
    int
        The maximum degree ``nmax``.

    Raises
    ------
    ValueError
        If ``rows`` is not a non-zero perfect square.
    """

    if rows <= 0:
        raise ValueError(f"An expansion needs at least one row, got {rows}.")
    root = int(np.sqrt(rows))
    while root * root > rows:
        root -= 1
    while (root + 1) * (root + 1) <= rows:
        root += 1
    if root * root != rows:
        raise ValueError(
            f"The number of rows ({rows}) is not a perfect square; "
            "cannot infer the maximum degree."
        )
    return root - 1


def harmonics(nmax: int) -> Iterator[tuple[int, int, int]]:
    """Iterate ``(i, n, m)`` in local sequential order up to ``nmax``."""

    i = 0
    for n in range(nmax + 1):
        for m in range(-n, n + 1):
            yield i, n, m
            i += 1


def coaxial_triples(nmax: int) -> Iterator[tuple[int, int, int, int]]:
    """Canonical generation order of coaxial translation coefficients.

    Yields ``(i, n, m, l)`` for ``n`` ascending, ``m = -n .. n`` and
    ``l = |m| .. nmax``, where ``i`` is the local index of the source term
    (n, m). The target row is ``l*(l+1) + m``.
    """

    for i, n, m in harmonics(nmax):
        for l in range(abs(m), nmax + 1):
            yield i, n, m, l


def rotation_triples(nmax: int) -> Iterator[tuple[int, int, int, int]]:
    """Canonical generation order of rotation coefficients.

    Yields ``(i, n, m, mu)`` for ``n`` ascending, ``m = -n .. n`` and
    ``mu = -n .. n``. The target row is ``n*(n+1) + mu``.
    """

    for i, n, m in harmonics(nmax):
        for mu in range(-n, n + 1):
            yield i, n, m, mu


def coaxial_size(nmax: int) -> int:
    """Number of coefficients yielded by :func:`coaxial_triples`."""

    max_flat(nmax)
    return sum((2 * n + 1) * (nmax + 1) - n * (n + 1) for n in range(nmax + 1))


def rotation_size(nmax: int) -> int:
    """Number of coefficients yielded by :func:`rotation_triples`."""

    max_flat(nmax)
    return sum((2 * n + 1) ** 2 for n in range(nmax + 1))
