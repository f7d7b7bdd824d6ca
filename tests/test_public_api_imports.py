def test_public_imports() -> None:
    # A lightweight contract test: keep the most common imports stable.
    import coaxpy

    assert hasattr(coaxpy, "__version__")

    from coaxpy import (  # noqa: F401
        BakedCoaxialOperator,
        BakedOperator,
        BakedRotationOperator,
        CoaxialTranslation,
        Config,
        RotationCoefficients,
    )
