"""Tests for the command-line scripts.

This module runs scene preparation and the accuracy check end to end on the
repository configuration, writing into a temporary directory.
"""

import json
import logging
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

import yaml

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from scripts import check_accuracy, run_scene


class TestScripts(unittest.TestCase):
    """Test the scene and accuracy scripts."""

    @classmethod
    def setUpClass(cls):
        """Create a temporary directory for script outputs."""
        cls.test_output_dir = tempfile.mkdtemp()

    @classmethod
    def tearDownClass(cls):
        """Clean up test fixtures."""
        if hasattr(cls, 'test_output_dir') and os.path.exists(cls.test_output_dir):
            shutil.rmtree(cls.test_output_dir)

    def test_load_default_config(self):
        config = run_scene.load_config()
        self.assertIn("scene", config)
        self.assertIn("evaluate", config)

    def test_run_scene(self):
        output_dir = os.path.join(self.test_output_dir, "scene")
        description = run_scene.run_scene(output_dir)

        scene_file = os.path.join(output_dir, "scene.json")
        self.assertTrue(os.path.exists(scene_file))
        self.assertTrue(os.path.exists(os.path.join(output_dir, "log.txt")))
        with open(scene_file) as f:
            self.assertEqual(json.load(f), description)

        kinds = [p["type"] for p in description["primitives"]]
        self.assertEqual(kinds, ["cube", "polygon", "axes"])

        cube = description["primitives"][0]
        self.assertEqual(len(cube["projected_corners"]), 8)
        for corner in cube["projected_corners"]:
            self.assertAlmostEqual(corner[1], 0.0, delta=1e-6)

        polygon = description["primitives"][1]
        self.assertEqual(
            polygon["points"],
            [[0, 0, 0], [0, 0, 4], [4, 0, 4], [4, 0, 0]]
        )
        self.assertEqual(polygon["n_triangles"], 4)

    def test_run_scene_scale_override(self):
        output_dir = os.path.join(self.test_output_dir, "scaled")
        description = run_scene.run_scene(output_dir, scale=2.0)

        self.assertEqual(description["scale"], 2.0)
        cube = description["primitives"][0]
        self.assertEqual(cube["width"], 4.0)
        self.assertEqual(cube["p0"], [2.0, 0.0, 2.0])

    def test_run_scene_custom_config(self):
        config = {
            "scene": {
                "scale": 1.0,
                "plane": {"normal": [0, 0, 1], "point": [0, 0, 0]},
                "polygons": [{"points": [[0, 0, 0], [1, 0, 0]]}],
            },
        }
        config_path = os.path.join(self.test_output_dir, "bad_config.yaml")
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)

        # Two points cannot form a polygon
        with self.assertRaises(ValueError):
            run_scene.run_scene(os.path.join(self.test_output_dir, "bad"), config_path)

    def test_check_accuracy(self):
        output_dir = os.path.join(self.test_output_dir, "accuracy")
        report = check_accuracy.check_accuracy(output_dir, sizes=[2, 3], trials=5)

        self.assertTrue(os.path.exists(os.path.join(output_dir, "report.json")))
        self.assertEqual(sorted(report["sizes"]), ["2", "3"])
        for stats in report["sizes"].values():
            self.assertEqual(stats["trials"], 5)
            self.assertLess(stats["max_det_error"], 1e-2)
        self.assertEqual(set(report["stage_timings"]), {"2x2", "3x3"})

    def test_check_accuracy_logs_to_file(self):
        output_dir = os.path.join(self.test_output_dir, "accuracy_log")
        check_accuracy.check_accuracy(output_dir, sizes=[2], trials=2)

        self.assertIn("log.txt", os.listdir(output_dir))
        with open(os.path.join(output_dir, "log.txt")) as f:
            self.assertIn("Report written to", f.read())

    def test_check_accuracy_explicit_empty_overrides(self):
        """Zero trials and an empty size list are used as given."""
        no_trials = check_accuracy.check_accuracy(
            os.path.join(self.test_output_dir, "no_trials"), sizes=[2, 3], trials=0
        )
        self.assertEqual(no_trials["sizes"], {})
        self.assertEqual(set(no_trials["stage_timings"]), {"2x2", "3x3"})

        no_sizes = check_accuracy.check_accuracy(
            os.path.join(self.test_output_dir, "no_sizes"), sizes=[], trials=3
        )
        self.assertEqual(no_sizes["sizes"], {})
        self.assertEqual(no_sizes["stage_timings"], {})

    def test_check_accuracy_negative_trials(self):
        with self.assertRaises(ValueError):
            check_accuracy.check_accuracy(
                os.path.join(self.test_output_dir, "negative"), sizes=[2], trials=-1
            )

    def test_root_log_level_restored(self):
        """Scripts apply the configured level only while they run."""
        config = run_scene.load_config()
        config["logging"] = {"level": "ERROR"}
        config_path = os.path.join(self.test_output_dir, "error_level.yaml")
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)

        root_logger = logging.getLogger()
        previous_level = root_logger.level
        try:
            root_logger.setLevel(logging.WARNING)
            run_scene.run_scene(os.path.join(self.test_output_dir, "level_scene"), config_path)
            self.assertEqual(root_logger.level, logging.WARNING)

            check_accuracy.check_accuracy(
                os.path.join(self.test_output_dir, "level_accuracy"), config_path, sizes=[2], trials=1
            )
            self.assertEqual(root_logger.level, logging.WARNING)
        finally:
            root_logger.setLevel(previous_level)

    def test_empty_logging_section(self):
        """A `logging:` key without a value falls back to INFO."""
        self.assertEqual(run_scene.configured_log_level({"logging": None}), "INFO")
        self.assertEqual(run_scene.configured_log_level({}), "INFO")
        self.assertEqual(run_scene.configured_log_level({"logging": {"level": "DEBUG"}}), "DEBUG")

        config = run_scene.load_config()
        config["logging"] = None
        config_path = os.path.join(self.test_output_dir, "empty_logging.yaml")
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)

        description = run_scene.run_scene(os.path.join(self.test_output_dir, "empty_logging"), config_path)
        self.assertEqual(len(description["primitives"]), 3)


if __name__ == "__main__":
    unittest.main()
