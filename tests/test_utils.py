"""Tests for utils: config loading, interpolation, weighted pick and colours."""

from __future__ import annotations

import json
import logging

import numpy as np
import pytest

from logger_setup import setup_logging
from utils import (
    build_cdf,
    clamp,
    hex_to_rgb,
    lerp,
    lerp_color,
    load_config,
    random_range,
    weighted_pick,
)


class TestInterpolation:
    def test_lerp(self):
        assert lerp(30.0, 100.0, 0.0) == 30.0
        assert lerp(30.0, 100.0, 1.0) == 100.0
        assert lerp(0.0, 10.0, 0.25) == 2.5

    def test_clamp(self):
        assert clamp(5, 0, 1) == 1
        assert clamp(-5, 0, 1) == 0
        assert clamp(0.5, 0, 1) == 0.5

    def test_random_range_bounds(self):
        rng = np.random.default_rng(0)
        values = [random_range(rng, -2.0, 3.0) for _ in range(1000)]
        assert min(values) >= -2.0 and max(values) < 3.0


class TestWeightedPick:
    items = ["dominant", "secondary", "accent"]

    def test_cdf(self):
        np.testing.assert_allclose(build_cdf([0.7, 0.2, 0.1]), [0.7, 0.9, 1.0])

    @pytest.mark.parametrize("draw, expected", [
        (0.0, "dominant"),
        (0.7, "dominant"),
        (0.75, "secondary"),
        (0.95, "accent"),
    ])
    def test_bucket_boundaries(self, draw, expected):
        cdf = build_cdf([0.7, 0.2, 0.1])
        assert weighted_pick(self.items, cdf, np.random.default_rng(0), draw=draw) == expected

    def test_draw_past_last_bucket_resolves_to_last_item(self):
        cdf = build_cdf([0.5, 0.3])
        assert weighted_pick(["a", "b"], cdf, np.random.default_rng(0), draw=0.9) == "b"

    def test_distribution_follows_weights(self):
        rng = np.random.default_rng(11)
        cdf = build_cdf([0.7, 0.2, 0.1])
        picks = [weighted_pick(self.items, cdf, rng) for _ in range(10_000)]
        assert picks.count("dominant") / len(picks) == pytest.approx(0.7, abs=0.03)
        assert picks.count("accent") / len(picks) == pytest.approx(0.1, abs=0.02)


class TestColor:
    def test_hex_to_rgb(self):
        assert hex_to_rgb(0xF0F8FF) == (240, 248, 255)

    def test_lerp_color_endpoints(self):
        assert lerp_color(0x000000, 0xFFFFFF, 0.0) == 0x000000
        assert lerp_color(0x000000, 0xFFFFFF, 1.0) == 0xFFFFFF

    def test_lerp_color_midpoint(self):
        assert lerp_color(0x000000, 0x6464C8, 0.5) == 0x323264


class TestConfig:
    def test_load_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"master_seed": 3}))
        assert load_config(str(path)) == {"master_seed": 3}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.json"))

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_config(str(path))

    def test_setup_logging_writes_run_log(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "run_id": "test_run",
            "logging": {"level": "DEBUG", "format": "%(levelname)s %(message)s"},
        }))
        logger = setup_logging(str(path), log_root=str(tmp_path / "runs"))
        try:
            log_file = tmp_path / "runs" / "test_run" / "scene.log"
            assert log_file.exists()
            assert logger is logging.getLogger("ambient_scene")
            assert not logger.propagate
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
