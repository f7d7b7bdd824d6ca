from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError

import numpy as np
import numpy.testing as npt
import pytest

from coaxpy import (
    BakedCoaxialOperator,
    BakedRotationOperator,
    CoaxialTranslation,
    RotationCoefficients,
)
from coaxpy.baked import replay_rows
from coaxpy.indexing import coaxial_size, max_flat, rotation_size

NMAX = 5
ROWS = max_flat(NMAX)


def _engines():
    return [
        CoaxialTranslation(1.5, 2.0 + 0.1j, regular=True),
        CoaxialTranslation(1.5, 2.0 + 0.1j, regular=False),
        RotationCoefficients(0.7, 0.3, -1.1),
    ]


def _input(columns=None, seed=0):
    rng = np.random.default_rng(seed)
    size = ROWS if columns is None else (ROWS, columns)
    return rng.normal(size=size) + 1j * rng.normal(size=size)


@pytest.mark.parametrize("kernel", ["numba", "numpy"])
@pytest.mark.parametrize("columns", [None, 3])
@pytest.mark.parametrize("index", [0, 1, 2])
def test_baked_matches_engine(monkeypatch, kernel: str, columns, index: int):
    monkeypatch.setenv("COAXPY_APPLY_KERNEL", kernel)
    engine = _engines()[index]
    operator = engine.bake(NMAX)
    x = _input(columns)

    assert operator.kernel == kernel
    npt.assert_allclose(operator.apply(x), engine.apply(x), rtol=1e-12, atol=1e-9)


@pytest.mark.parametrize("index", [0, 1, 2])
def test_kernels_agree(index: int):
    engine = _engines()[index]
    numba_operator = engine.bake(NMAX)
    numpy_operator = type(numba_operator)(
        nmax=NMAX, coefficients=numba_operator.coefficients, kernel="numpy"
    )
    numba_operator = type(numba_operator)(
        nmax=NMAX, coefficients=numba_operator.coefficients, kernel="numba"
    )
    x = _input(2)

    npt.assert_allclose(numba_operator(x), numpy_operator(x), rtol=1e-12, atol=1e-9)


def test_coefficient_counts():
    translation, _, rotation = _engines()
    assert translation.bake(NMAX).coefficients.size == coaxial_size(NMAX)
    assert rotation.bake(NMAX).coefficients.size == rotation_size(NMAX)
    assert translation.bake(NMAX).shape == (ROWS, ROWS)


def test_coefficients_follow_generation_order():
    translation = CoaxialTranslation(0.8, 1.3)
    operator = translation.bake(2)
    # n = 0 block first, then n = 1 starting at m = -1
    assert operator.coefficients[0] == translation.coefficient(0, 0, 0)
    assert operator.coefficients[2] == translation.coefficient(0, 0, 2)
    assert operator.coefficients[3] == translation.coefficient(1, -1, 1)

    rotation = RotationCoefficients(0.4, 0.2, 0.1)
    operator = rotation.bake(1)
    assert operator.coefficients[1] == rotation.coefficient(1, -1, -1)
    assert operator.coefficients[-1] == rotation.coefficient(1, 1, 1)


def test_rejects_wrong_number_of_rows():
    operator = _engines()[0].bake(NMAX)
    with pytest.raises(ValueError):
        operator.apply(np.zeros(max_flat(NMAX - 1), dtype=complex))
    with pytest.raises(ValueError):
        operator.apply(np.zeros((ROWS + 1, 2), dtype=complex))


def test_rejects_wrong_number_of_coefficients():
    with pytest.raises(ValueError):
        BakedCoaxialOperator(nmax=2, coefficients=np.zeros(coaxial_size(2) - 1))
    with pytest.raises(ValueError):
        BakedRotationOperator(nmax=2, coefficients=np.zeros(coaxial_size(2)))


def test_rejects_unknown_kernel():
    with pytest.raises(ValueError):
        BakedRotationOperator(
            nmax=1, coefficients=np.zeros(rotation_size(1)), kernel="cuda"
        )


def test_operator_is_immutable():
    operator = _engines()[2].bake(2)
    assert not operator.coefficients.flags.writeable
    with pytest.raises(ValueError):
        operator.coefficients[0] = 1.0
    with pytest.raises(FrozenInstanceError):
        operator.nmax = 3


def test_coefficients_are_copied_at_construction():
    coefficients = np.ones(rotation_size(1), dtype=complex)
    operator = BakedRotationOperator(nmax=1, coefficients=coefficients)
    coefficients[:] = 0

    assert np.all(operator.coefficients == 1)


def test_replay_rows_are_shared_and_read_only():
    source, target = replay_rows(3, False)
    assert replay_rows(3, False)[0] is source
    assert source.size == target.size == coaxial_size(3)
    assert not source.flags.writeable


def test_apply_into_output():
    operator = _engines()[1].bake(NMAX)
    x = _input(2)
    out = np.full((ROWS, 2), 7.0 + 1j)

    returned = operator.apply(x, out=out)

    assert returned is out
    npt.assert_allclose(out, operator.apply(x))
    with pytest.raises(ValueError):
        operator.apply(x, out=np.zeros(ROWS, dtype=complex))
    with pytest.raises(ValueError):
        operator.apply(x, out=np.zeros((ROWS, 2)))
    with pytest.raises(ValueError):
        operator.apply(x, out=np.zeros((ROWS, 2), dtype=np.complex64))


def test_real_input_is_promoted():
    operator = _engines()[0].bake(NMAX)
    x = np.arange(ROWS, dtype=float)

    result = operator.apply(x)

    assert result.dtype == np.complex128
    npt.assert_allclose(result, operator.apply(x.astype(complex)))


def test_linear_operator():
    operator = _engines()[0].bake(NMAX)
    linear = operator.as_linear_operator()
    x = _input()
    matrix = _input(4, seed=1)

    assert linear.shape == (ROWS, ROWS)
    npt.assert_allclose(linear.matvec(x), operator.apply(x))
    npt.assert_allclose(linear.matmat(matrix), operator.apply(matrix))


def test_outlives_engine():
    engine = CoaxialTranslation(1.5, 2.0)
    x = _input()
    expected = engine.apply(x)
    operator = engine.bake(NMAX)
    del engine

    npt.assert_allclose(operator.apply(x), expected, rtol=1e-13, atol=1e-13)


@pytest.mark.parametrize("kernel", ["numba", "numpy"])
def test_concurrent_application(kernel: str):
    baked = _engines()[1].bake(NMAX)
    operator = BakedCoaxialOperator(
        nmax=NMAX, coefficients=baked.coefficients, kernel=kernel
    )
    inputs = [_input(2, seed=seed) for seed in range(16)]
    expected = [operator.apply(x) for x in inputs]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(operator.apply, inputs))

    for result, reference in zip(results, expected):
        npt.assert_array_equal(result, reference)


def test_apply_timing_is_logged(monkeypatch, caplog):
    monkeypatch.setenv("COAXPY_APPLY_TIMING", "1")
    operator = _engines()[2].bake(2)

    with caplog.at_level("DEBUG", logger="coaxpy.baked"):
        operator.apply(np.ones(max_flat(2), dtype=complex))

    assert any("BakedRotationOperator apply" in r.getMessage() for r in caplog.records)


def test_negative_degree_is_rejected():
    with pytest.raises(ValueError):
        CoaxialTranslation(1.0, 1.0).bake(-1)
    with pytest.raises(ValueError):
        RotationCoefficients(0.1, 0.2, 0.3).bake(-1)
