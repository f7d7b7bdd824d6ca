from numba import jit, complex128, int64

import numpy as np


@jit(nopython=True, nogil=True, cache=True)
def coaxial_replay(nmax: int, coefficients: np.ndarray, x: np.ndarray):
    """Replay baked coaxial translation coefficients on the columns of ``x``.

    Parameters
    ----------
    nmax : int
        Maximum degree the coefficients were baked for.
    coefficients : np.ndarray
        Coefficients in canonical generation order: ``n`` ascending, ``m`` from
        ``-n`` to ``n``, ``l`` from ``|m|`` to ``nmax``.
    x : np.ndarray
        Input of shape ``((nmax + 1)**2, columns)``.

    Returns
    -------
        The array ``out`` of the same shape as ``x`` with
        ``out[l*(l+1)+m] = sum_n c(n, m, l) * x[n*(n+1)+m]``.

    """
    columns = x.shape[1]
    out = np.zeros(x.shape, dtype=complex128)

    k = 0
    i = 0
    for n in range(nmax + 1):
        for m in range(-n, n + 1):
            for l in range(abs(m), nmax + 1):
                row = l * (l + 1) + m
                c = coefficients[k]
                for w in range(columns):
                    out[row, w] += c * x[i, w]
                k += 1
            i += 1

    return out


@jit(nopython=True, nogil=True, cache=True)
def rotation_replay(nmax: int, coefficients: np.ndarray, x: np.ndarray):
    """Replay baked rotation coefficients on the columns of ``x``.

    Parameters
    ----------
    nmax : int
        Maximum degree the coefficients were baked for.
    coefficients : np.ndarray
        Coefficients in canonical generation order: ``n`` ascending, ``m`` and
        then ``mu`` from ``-n`` to ``n``.
    x : np.ndarray
        Input of shape ``((nmax + 1)**2, columns)``.

    Returns
    -------
        The array ``out`` of the same shape as ``x`` with
        ``out[n*(n+1)+mu] = sum_m c(n, m, mu) * x[n*(n+1)+m]``.

    """
    columns = x.shape[1]
    out = np.zeros(x.shape, dtype=complex128)

    k = 0
    i = 0
    for n in range(nmax + 1):
        for m in range(-n, n + 1):
            for mu in range(-n, n + 1):
                row = n * (n + 1) + mu
                c = coefficients[k]
                for w in range(columns):
                    out[row, w] += c * x[i, w]
                k += 1
            i += 1

    return out


@jit(nopython=True, cache=True)
def compute_replay_rows(nmax: int, rotation: bool):
    """Source and target rows visited by a replay, in replay order.

    Parameters
    ----------
    nmax : int
        Maximum degree.
    rotation : bool
        Enumerate rotation triples instead of coaxial ones.

    Returns
    -------
        Two ``int64`` arrays ``(source, target)`` with one entry per
        coefficient.

    """
    size = 0
    for n in range(nmax + 1):
        for m in range(-n, n + 1):
            if rotation:
                size += 2 * n + 1
            else:
                size += nmax + 1 - abs(m)

    source = np.zeros(size, dtype=int64)
    target = np.zeros(size, dtype=int64)

    k = 0
    i = 0
    for n in range(nmax + 1):
        for m in range(-n, n + 1):
            if rotation:
                for mu in range(-n, n + 1):
                    source[k] = i
                    target[k] = n * (n + 1) + mu
                    k += 1
            else:
                for l in range(abs(m), nmax + 1):
                    source[k] = i
                    target[k] = l * (l + 1) + m
                    k += 1
            i += 1

    return source, target
