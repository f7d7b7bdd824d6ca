import numpy as np
from scipy.special import lpmv, spherical_jn, spherical_yn


def coupling_a(n: int, m: int) -> np.longdouble:
    r"""Coupling factor $a_n^m$ of the z-derivative recurrence.

    .. math::

        a_n^m = \sqrt{\frac{(n + 1 + |m|)(n + 1 - |m|)}{(2n + 1)(2n + 3)}}

    Args:
        n (int): Degree.
        m (int): Order.

    Returns:
        (np.longdouble): The factor, zero when ``|m| > n``.
    """
    absm = abs(m)
    if n < absm:
        return np.longdouble(0)
    return np.sqrt(
        np.longdouble((n + 1 + absm) * (n + 1 - absm))
        / np.longdouble((2 * n + 1) * (2 * n + 3))
    )


def coupling_b(n: int, m: int) -> np.longdouble:
    r"""Signed coupling factor $b_n^m$ of the sectorial recurrences.

    .. math::

        b_n^m = \operatorname{sgn}(m) \sqrt{\frac{(n - m - 1)(n - m)}{(2n - 1)(2n + 1)}}

    where $\operatorname{sgn}(m) = 1$ for $m \ge 0$ and $-1$ otherwise.

    Args:
        n (int): Degree.
        m (int): Order.

    Returns:
        (np.longdouble): The factor, zero when ``|m| > n``.
    """
    if abs(m) > n:
        return np.longdouble(0)
    numerator = (n - m - 1) * (n - m)
    if numerator == 0:
        return np.longdouble(0)
    sign = 1 if m >= 0 else -1
    return sign * np.sqrt(
        np.longdouble(numerator) / np.longdouble((2 * n - 1) * (2 * n + 1))
    )


def spherical_radial(l: int, x: complex, regular: bool = True) -> complex:
    """
    Spherical Bessel $j_l(x)$ or spherical Hankel $h_l^{(1)}(x) = j_l(x) + i y_l(x)$.

    Args:
        l (int): Degree.
        x (complex): Argument, usually the product of wavenumber and distance.
        regular (bool, optional): Select the Bessel (regular) or Hankel (irregular) family.

    Returns:
        (complex): The function value in double precision.
    """
    # the real code path of scipy is exact at x = 0
    arg = x.real if x.imag == 0 else x
    if regular:
        return complex(spherical_jn(l, arg))
    return complex(spherical_jn(l, arg) + 1j * spherical_yn(l, arg))


def normalized_legendre(n: int, m: int, cosine_theta: float) -> float:
    r"""
    Associated Legendre function scaled by $\sqrt{(n-|m|)!/(n+|m|)!}$.

    The Condon-Shortley phase of :func:`scipy.special.lpmv` is kept.

    Args:
        n (int): Degree.
        m (int): Order, only $|m|$ is used.
        cosine_theta (float): Cosine of the polar angle.

    Returns:
        (float): The scaled function value.
    """
    absm = abs(m)
    if absm > n:
        return 0.0
    norm = np.sqrt(np.prod(1 / np.arange(n - absm + 1, n + absm + 1)))
    return float(norm * lpmv(absm, n, cosine_theta))
