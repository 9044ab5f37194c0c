# utils.py
"""
Utility functions shared by the scenes.

Configuration loading plus the small interpolation, randomness and colour
helpers used by the particle systems and the aurora.
"""
import json
import logging
import numpy as np
from typing import Dict, Any, Sequence

logger = logging.getLogger("ambient_scene")

def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logger.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logger.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logger.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logger.error(f"Error decoding JSON from {path}.")
        raise

def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t

def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)

def random_range(rng: np.random.Generator, low: float, high: float) -> float:
    """Uniform float in [low, high) drawn from the given generator."""
    return low + rng.random() * (high - low)

# --- Weighted selection ---
#
# build_cdf(weights) -> np.ndarray:
#   - Inputs: weights summing to 1 (not normalized here).
#   - Outputs: running sums, cdf[i] = weights[0] + ... + weights[i].
#
# weighted_pick(items, cdf, rng) -> item:
#   - Returns items[i] for the first i with draw <= cdf[i]. A draw past the
#     last bucket (weights summing to less than 1) resolves to the last item.

def build_cdf(weights: Sequence[float]) -> np.ndarray:
    return np.cumsum(np.asarray(weights, dtype=np.float64))

def weighted_pick(items: Sequence[Any], cdf: np.ndarray, rng: np.random.Generator, draw=None):
    """
    Picks one item using a prebuilt CDF and a binary search. `draw` overrides
    the random number in [0, 1) and exists for deterministic callers.
    """
    r = rng.random() if draw is None else draw
    index = int(np.searchsorted(cdf, r, side='left'))
    if index >= len(items):
        return items[-1]
    return items[index]

# --- Colour helpers ---
# Colours are 0xRRGGBB integers in the palettes and (R, G, B) tuples for pygame.

def hex_to_rgb(color: int) -> tuple:
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)

def lerp_color(color1: int, color2: int, t: float) -> int:
    """Interpolates two 0xRRGGBB colours channel by channel."""
    r1, g1, b1 = hex_to_rgb(color1)
    r2, g2, b2 = hex_to_rgb(color2)
    r = int(round(r1 + (r2 - r1) * t))
    g = int(round(g1 + (g2 - g1) * t))
    b = int(round(b1 + (b2 - b1) * t))
    return (r << 16) | (g << 8) | b
