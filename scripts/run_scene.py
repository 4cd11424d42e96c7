#!/usr/bin/env python3
"""
Scene Preparation

This script builds the viewer's scene from the configuration, applies the
scale factor, orders polygon outlines clockwise and projects every cube onto
the configured plane, then writes the resulting geometry to scene.json.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, Optional

import yaml

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from scenemath.evaluate import Timer
from scenemath.geometry import Plane
from scenemath.scene import Axes, Cube, Polygon, Scene


# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger("scene")


def load_config(config_path: Optional[str] = None) -> Dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    # Default config path
    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return config


def setup_file_logging(output_dir: str) -> logging.Handler:
    """Attach a handler writing log.txt into the output directory.

    Args:
        output_dir: Path to output directory

    Returns:
        The handler, to be removed and closed by the caller
    """
    file_handler = logging.FileHandler(os.path.join(output_dir, "log.txt"))
    file_handler.setFormatter(logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"))
    logging.getLogger().addHandler(file_handler)
    return file_handler


def configured_log_level(config: Dict) -> str:
    """Log level from the `logging` section, INFO when absent or empty."""
    return (config.get("logging") or {}).get("level", "INFO")


def describe_scene(scene: Scene, plane: Plane) -> Dict:
    """Collect the geometry the renderer needs from a prepared scene.

    Args:
        scene: Scene with scaled and sorted primitives
        plane: Plane the cubes are projected onto

    Returns:
        JSON-serialisable description of the scene
    """
    primitives = []
    for primitive in scene:
        entry = primitive.to_dict()
        if isinstance(primitive, Cube):
            entry["projected_corners"] = primitive.project_onto_plane(plane).tolist()
        elif isinstance(primitive, Polygon):
            entry["n_triangles"] = len(primitive.triangles())
        elif isinstance(primitive, Axes):
            entry["n_segments"] = len(primitive.segments())
        primitives.append(entry)

    return {
        "scale": scene.scale_factor,
        "plane": {
            "normal": plane.normal.tolist(),
            "point": plane.point.tolist(),
        },
        "primitives": primitives,
    }


def run_scene(
    output_dir: str,
    config_path: Optional[str] = None,
    scale: Optional[float] = None
) -> Dict:
    """Prepare the configured scene and write scene.json.

    Args:
        output_dir: Path to output directory
        config_path: Path to configuration file
        scale: Scale factor overriding the configured one

    Returns:
        Scene description written to scene.json
    """
    os.makedirs(output_dir, exist_ok=True)

    # Set up file logging
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    file_handler = setup_file_logging(output_dir)

    try:
        config = load_config(config_path)
        scene_config = config["scene"]
        root_logger.setLevel(configured_log_level(config))

        if scale is not None:
            scene_config["scale"] = scale

        with Timer("Build scene", logger) as timer:
            scene = Scene.from_config(scene_config)
            plane = Plane(scene_config["plane"]["normal"], scene_config["plane"]["point"])
        logger.info(f"Built {len(scene)} primitives in {timer.elapsed:.3f}s")

        scene.scale_all(scene_config.get("scale", 1.0))

        for polygon in scene.of_type(Polygon):
            polygon.sort_clockwise()

        description = Timer("Describe scene", logger).timeit(describe_scene)(scene, plane)

        scene_file = os.path.join(output_dir, "scene.json")
        with open(scene_file, "w") as f:
            json.dump(description, f, indent=2)
        logger.info(f"Scene written to {scene_file}")
    finally:
        root_logger.removeHandler(file_handler)
        root_logger.setLevel(previous_level)
        file_handler.close()

    return description


def main():
    """Main function to parse arguments and prepare the scene."""
    parser = argparse.ArgumentParser(description="Scene Preparation")
    parser.add_argument(
        "--output", "-o", dest="output_dir", default="results/scene",
        help="Path to output directory"
    )
    parser.add_argument(
        "--scale", "-s", dest="scale", type=float, default=None,
        help="Scale factor applied to every primitive"
    )
    parser.add_argument(
        "--config", "-c", dest="config_path", default=None,
        help="Path to configuration file"
    )

    args = parser.parse_args()

    try:
        run_scene(args.output_dir, args.config_path, args.scale)
    except Exception as e:
        logger.exception(f"Error preparing scene: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
