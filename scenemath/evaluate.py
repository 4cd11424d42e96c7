"""Accuracy metrics for the float32 matrix routines.

This module compares Matrix results against float64 references from
scipy.linalg and collects the errors and timings of an accuracy run.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Dict, List, Optional

import numpy as np
from scipy import linalg

from scenemath.matrix import Matrix

logger = logging.getLogger(__name__)


def determinant_error(matrix: Matrix) -> float:
    """Absolute error of Matrix.determinant against scipy.linalg.det.

    Args:
        matrix: Square matrix

    Returns:
        |det_float32 - det_float64|
    """
    det = matrix.determinant()
    if det is None:
        raise ValueError(f"Determinant undefined for {matrix.rows}x{matrix.cols} matrix")

    reference = linalg.det(matrix.to_numpy().astype(np.float64))
    return float(abs(det - reference))


def inverse_error(matrix: Matrix) -> float:
    """Max absolute entry error of Matrix.inverse against scipy.linalg.inv.

    Args:
        matrix: Square matrix

    Returns:
        Largest entry-wise difference, or inf if Matrix.inverse found no inverse
    """
    inverse = matrix.inverse()
    if inverse is None:
        logger.warning(f"No inverse for {matrix.rows}x{matrix.cols} matrix")
        return float('inf')

    reference = linalg.inv(matrix.to_numpy().astype(np.float64))
    return float(np.max(np.abs(inverse.to_numpy() - reference)))


def identity_residual(matrix: Matrix, inverse: Matrix) -> float:
    """Max absolute deviation of matrix @ inverse from the identity.

    Args:
        matrix: Square matrix
        inverse: Candidate inverse of `matrix`

    Returns:
        Largest entry-wise difference from the identity
    """
    product = matrix.multiply(inverse).to_numpy()
    identity = np.eye(product.shape[0], dtype=np.float32)
    return float(np.max(np.abs(product - identity)))


class Timer:
    """Utility class for timing operations as a context manager or decorator, with laps."""

    def __init__(self, name: str = "Timer", logger: Optional[logging.Logger] = None):
        """Initialize timer.

        Args:
            name: Timer name for logging
            logger: Logger to use (if None, uses module logger)
        """
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self.start_time = None
        self.end_time = None
        self._laps: Dict[str, float] = {}
        self._last_lap = None

    def start(self) -> None:
        self.start_time = time.perf_counter()
        self.end_time = None
        self._laps = {}
        self._last_lap = self.start_time

    def stop(self) -> float:
        """Stop the timer and return elapsed time.

        Returns:
            Elapsed time in seconds
        """
        if self.start_time is None:
            self.logger.warning(f"{self.name}: Timer stopped without being started")
            return 0.0

        self.end_time = time.perf_counter()
        elapsed = self.end_time - self.start_time
        self.logger.debug(f"{self.name}: {elapsed:.4f}s")
        return elapsed

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def timeit(self, func: Callable) -> Callable:
        """Decorator running every call of `func` inside this timer.

        Args:
            func: Function to time

        Returns:
            Wrapped function; the timer holds the duration of the last call
        """
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with self:
                return func(*args, **kwargs)

        return wrapper

    def lap(self, name: str) -> float:
        """Record the time since the previous lap (or the start) under `name`.

        Starts the timer if it is not running yet.

        Args:
            name: Lap name

        Returns:
            Lap time in seconds
        """
        if self.start_time is None:
            self.start()

        current_time = time.perf_counter()
        lap_time = current_time - self._last_lap
        self._last_lap = current_time
        self._laps[name] = lap_time

        self.logger.debug(f"{self.name} - {name}: {lap_time:.4f}s")
        return lap_time

    @property
    def laps(self) -> Dict[str, float]:
        """Recorded lap times by name, in recording order."""
        return dict(self._laps)

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds, up to stop() or up to now if still running."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time


class MatrixMetrics:
    """Collects per-size accuracy statistics of an evaluation run."""

    def __init__(self, tolerance: float = 1e-5):
        """Initialize metrics container.

        Args:
            tolerance: Identity residual below which an inverse counts as accurate
        """
        self.tolerance = tolerance
        self._samples: Dict[int, Dict[str, List[float]]] = {}
        self._singular: Dict[int, int] = {}
        self.stage_timings: Dict[str, float] = {}

    def record(self, matrix: Matrix) -> None:
        """Evaluate one square matrix and store its errors."""
        n = matrix.rows
        samples = self._samples.setdefault(
            n, {"det_error": [], "inv_error": [], "residual": []}
        )

        samples["det_error"].append(determinant_error(matrix))

        inverse = matrix.inverse()
        if inverse is None:
            self._singular[n] = self._singular.get(n, 0) + 1
            return

        samples["inv_error"].append(inverse_error(matrix))
        samples["residual"].append(identity_residual(matrix, inverse))

    def update_stage_timing(self, stage_name: str, time_s: float) -> None:
        self.stage_timings[stage_name] = time_s

    def to_dict(self) -> Dict:
        """Convert metrics to a JSON-serialisable dictionary.

        Returns:
            Dictionary keyed by matrix size plus stage timings
        """
        sizes = {}
        for n, samples in sorted(self._samples.items()):
            residuals = samples["residual"]
            sizes[str(n)] = {
                "trials": len(samples["det_error"]),
                "singular": self._singular.get(n, 0),
                "max_det_error": max(samples["det_error"], default=0.0),
                "mean_det_error": float(np.mean(samples["det_error"])) if samples["det_error"] else 0.0,
                "max_inv_error": max(samples["inv_error"], default=0.0),
                "max_residual": max(residuals, default=0.0),
                "within_tolerance": sum(r < self.tolerance for r in residuals),
            }

        return {
            "tolerance": self.tolerance,
            "sizes": sizes,
            "stage_timings": dict(self.stage_timings),
        }

    def summary(self) -> str:
        """Generate a human-readable summary of metrics.

        Returns:
            Summary string
        """
        data = self.to_dict()
        lines = ["Matrix Accuracy:"]

        for n, stats in data["sizes"].items():
            lines.append(
                f"  {n}x{n}: {stats['trials']} trials, {stats['singular']} singular, "
                f"max det error {stats['max_det_error']:.3e}, "
                f"max inverse error {stats['max_inv_error']:.3e}, "
                f"{stats['within_tolerance']} within tolerance"
            )

        if self.stage_timings:
            lines.append("  Stage timings:")
            for stage, time_s in self.stage_timings.items():
                lines.append(f"    {stage}: {time_s:.2f}s")

        return "\n".join(lines)
