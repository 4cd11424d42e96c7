#!/usr/bin/env python3
"""
Matrix Accuracy Check

This script measures how far the float32 determinant and inverse routines
drift from float64 references on random matrices of each configured size.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from scenemath.evaluate import MatrixMetrics, Timer
from scenemath.matrix import Matrix
from scripts.run_scene import configured_log_level, load_config, setup_file_logging


# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger("accuracy")


def random_matrices(n: int, trials: int, rng: np.random.Generator) -> List[Matrix]:
    """Draw square matrices with entries uniform in [-5, 5].

    Args:
        n: Matrix size
        trials: Number of matrices
        rng: Random generator

    Returns:
        List of n x n matrices
    """
    return [Matrix(rng.uniform(-5.0, 5.0, size=(n, n))) for _ in range(trials)]


def check_accuracy(
    output_dir: str,
    config_path: Optional[str] = None,
    sizes: Optional[List[int]] = None,
    trials: Optional[int] = None
) -> Dict:
    """Run the accuracy check and write report.json.

    Args:
        output_dir: Path to output directory
        config_path: Path to configuration file
        sizes: Matrix sizes overriding the configured ones
        trials: Trials per size overriding the configured count

    Returns:
        Dictionary of accuracy metrics
    """
    os.makedirs(output_dir, exist_ok=True)

    # Set up file logging
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    file_handler = setup_file_logging(output_dir)

    try:
        full_config = load_config(config_path)
        root_logger.setLevel(configured_log_level(full_config))

        config = full_config["evaluate"]
        if sizes is None:
            sizes = config["sizes"]
        if trials is None:
            trials = config["trials"]
        if trials < 0:
            raise ValueError(f"Trials per size must be non-negative, got {trials}")

        rng = np.random.default_rng(config.get("seed"))
        metrics = MatrixMetrics(tolerance=config.get("tolerance", 1e-5))

        timer = Timer("Accuracy", logger)
        timer.start()
        for n in sizes:
            for matrix in tqdm(random_matrices(n, trials, rng), desc=f"{n}x{n} matrices"):
                metrics.record(matrix)
            metrics.update_stage_timing(f"{n}x{n}", timer.lap(f"{n}x{n}"))
        timer.stop()

        report = metrics.to_dict()
        report_file = os.path.join(output_dir, "report.json")
        with open(report_file, "w") as f:
            json.dump(report, f, indent=2)

        logger.info(metrics.summary())
        logger.info(f"Report written to {report_file}")
    finally:
        root_logger.removeHandler(file_handler)
        root_logger.setLevel(previous_level)
        file_handler.close()

    return report


def main():
    """Main function to parse arguments and run the accuracy check."""
    parser = argparse.ArgumentParser(description="Matrix Accuracy Check")
    parser.add_argument(
        "--output", "-o", dest="output_dir", default="results/accuracy",
        help="Path to output directory"
    )
    parser.add_argument(
        "--sizes", "-n", dest="sizes", type=int, nargs="+", default=None,
        help="Matrix sizes to check"
    )
    parser.add_argument(
        "--trials", "-t", dest="trials", type=int, default=None,
        help="Random matrices per size"
    )
    parser.add_argument(
        "--config", "-c", dest="config_path", default=None,
        help="Path to configuration file"
    )

    args = parser.parse_args()

    try:
        check_accuracy(args.output_dir, args.config_path, args.sizes, args.trials)
    except Exception as e:
        logger.exception(f"Error running accuracy check: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
