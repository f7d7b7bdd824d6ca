"""End-to-end checks of the baked path against fresh per-coefficient engines."""

import numpy as np

from coaxpy import CoaxialTranslation, RotationCoefficients
from coaxpy.indexing import harmonics, max_flat

NMAX = 7
DISTANCE = 1.5
WAVENUMBER = 1.7 + 0.3j


def _relative_difference(a, b):
    return np.linalg.norm(a - b) / np.linalg.norm(b)


def test_baked_translation_against_fresh_engines():
    rng = np.random.default_rng(2024)
    x = rng.normal(size=max_flat(NMAX)) + 1j * rng.normal(size=max_flat(NMAX))

    for regular in (True, False):
        baked = CoaxialTranslation(DISTANCE, WAVENUMBER, regular).bake(NMAX)

        expected = np.zeros_like(x)
        for i, n, m in harmonics(NMAX):
            for l in range(abs(m), NMAX + 1):
                engine = CoaxialTranslation(DISTANCE, WAVENUMBER, regular)
                expected[l * (l + 1) + m] += engine.coefficient(n, m, l) * x[i]

        assert _relative_difference(baked.apply(x), expected) < 1e-12


def test_baked_rotation_against_fresh_engines():
    rng = np.random.default_rng(7)
    x = rng.normal(size=max_flat(NMAX)) + 1j * rng.normal(size=max_flat(NMAX))
    angles = (2.1, -0.4, 0.9)

    baked = RotationCoefficients(*angles).bake(NMAX)

    expected = np.zeros_like(x)
    for i, n, m in harmonics(NMAX):
        for mu in range(-n, n + 1):
            engine = RotationCoefficients(*angles)
            expected[n * (n + 1) + mu] += engine.coefficient(n, m, mu) * x[i]

    assert _relative_difference(baked.apply(x), expected) < 1e-12
