# ABOUTME: Small numeric helpers shared by the pointer and keyboard calculators.
# ABOUTME: Wraps numpy so empty or degenerate series never yield NaN.

from typing import Sequence, Tuple

import numpy as np

Point = Tuple[float, float]


def euclidean(a: Point, b: Point) -> float:
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def path_length(points: Sequence[Point]) -> float:
    if len(points) < 2:
        return 0.0
    coords = np.asarray(points, dtype=float)
    steps = np.diff(coords, axis=0)
    return float(np.hypot(steps[:, 0], steps[:, 1]).sum())


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def population_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=0))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """
    Standard deviation divided by mean; 0.0 for a single value or a zero mean.
    """

    avg = mean(values)
    if avg == 0.0:
        return 0.0
    return population_std(values) / avg
