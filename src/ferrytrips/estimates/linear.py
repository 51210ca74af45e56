"""Linear model evaluation."""

from __future__ import annotations

from collections.abc import Sequence


def apply_linear_model(
    features: Sequence[float],
    coefficients: Sequence[float],
    intercept: float,
) -> float:
    """Return ``intercept + sum(coefficient_i * feature_i)``.

    Raises
    ------
    ValueError
        The vector lengths differ; the model was trained on another feature layout.
    """
    if len(features) != len(coefficients):
        raise ValueError(
            f"Feature vector has {len(features)} values but model has {len(coefficients)} coefficients"
        )
    return intercept + sum(c * f for c, f in zip(coefficients, features, strict=True))
