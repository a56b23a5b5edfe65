import math
from typing import Iterable, List, Optional, Sequence


class InsufficientSampleError(ValueError):
    """Raised when a sample is smaller than a detector requires."""


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def std_dev(values: Sequence[float], mean_value: Optional[float] = None) -> float:
    """Sample standard deviation (N-1). Zero for fewer than two values."""
    if len(values) < 2:
        return 0.0
    m = mean(values) if mean_value is None else mean_value
    return math.sqrt(sum((v - m) ** 2 for v in values) / (len(values) - 1))


def z_score(value: float, mean_value: float, std_dev_value: float) -> float:
    """Distance from the mean in standard deviations; 0 when there is no spread."""
    if std_dev_value == 0:
        return 0.0
    return (value - mean_value) / std_dev_value


def percentile(values: Sequence[float], fraction: float) -> float:
    """Nearest-rank percentile, e.g. 0.5 for p50. Returns 0 for an empty sample."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.floor(fraction * len(ordered))
    return ordered[min(index, len(ordered) - 1)]


class Sample:
    """
    A validated numeric sample with its mean and sample standard deviation.

    Constructing a Sample with fewer than ``minimum`` values raises
    InsufficientSampleError, so detectors state their precondition once.
    """

    def __init__(self, values: Iterable[Optional[float]], minimum: int = 1):
        self.values: List[float] = [float(v) for v in values if v is not None]
        if len(self.values) < minimum:
            raise InsufficientSampleError(
                f"Need at least {minimum} values, got {len(self.values)}"
            )
        self.mean = mean(self.values)
        self.std_dev = std_dev(self.values, self.mean)

    def __len__(self):
        return len(self.values)

    def z_score(self, value: float) -> float:
        return z_score(value, self.mean, self.std_dev)

    def percentile(self, fraction: float) -> float:
        return percentile(self.values, fraction)
