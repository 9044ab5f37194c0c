# aurora.py

import logging
import math
from collections import namedtuple

import numpy as np
import pygame

import constants
from noise_field import NoiseField
from scene_host import Scene, Layer, SceneContext
from utils import random_range, lerp_color, hex_to_rgb

logger = logging.getLogger("ambient_scene")

# Static per-band parameters, drawn once when the bands are built.
AuroraBand = namedtuple('AuroraBand', [
    'color_index', 'base_y', 'amplitude', 'phase_offset',
    'speed_multiplier', 'noise_scale', 'thickness'
])

# Gradient strips drawn per band, top edge to bottom edge
STRIPS_PER_BAND = 8

# Bands occupy the upper part of the sky: base heights run from
# BAND_TOP_FRACTION to BAND_TOP_FRACTION + BAND_SPREAD_FRACTION of the height.
BAND_TOP_FRACTION = 0.1
BAND_SPREAD_FRACTION = 0.35


class Aurora(Scene):
    """
    Flowing bands of light built from layered 3D noise, with time as the
    third axis.

    Data Contract:
    - Inputs:
        - rng (np.random.Generator): Draws band parameters and the noise seed.
        - band_count (int), resolution (int): Bands, and points per band edge.
        - intensity (float): Peak strip opacity in [0, 1].
    - Side Effects: Rebuilds all bands on resize.
    - Invariants: After update(), self.strips holds band_count * STRIPS_PER_BAND
      polygons for draw().
    """
    layer = Layer.SCENE

    def __init__(self, rng: np.random.Generator, band_count: int = 5, resolution: int = 80,
                 intensity: float = 0.4, noise=None):
        self.rng = rng
        self.band_count = band_count
        self.resolution = resolution
        self.intensity = intensity
        self.noise = noise if noise is not None else NoiseField(seed=int(rng.integers(2**32)))
        self.colors = constants.AURORA_COLORS
        self.bands = []
        self.strips = []
        self.width = 0
        self.height = 0
        self._band_surface = None

    def on_add(self, context: SceneContext):
        self.width = context.width
        self.height = context.height
        self._create_bands()
        logger.info(f"Aurora created with {self.band_count} bands.")

    def _create_bands(self):
        rng = self.rng
        self.bands = []
        for i in range(self.band_count):
            self.bands.append(AuroraBand(
                color_index=i % len(self.colors),
                base_y=self.height * (BAND_TOP_FRACTION + (i / self.band_count) * BAND_SPREAD_FRACTION),
                amplitude=random_range(rng, 30.0, 80.0),
                phase_offset=random_range(rng, 0.0, 2.0 * math.pi),
                speed_multiplier=random_range(rng, 0.8, 1.2),
                noise_scale=random_range(rng, 0.001, 0.003),
                thickness=random_range(rng, 40.0, 100.0),
            ))
        self.strips = []

    def band_edges(self, band: AuroraBand, elapsed: float):
        """
        Returns (xs, top, bottom): the sample columns and the band's top and
        bottom edge heights at time `elapsed`.
        """
        xs = np.linspace(0.0, self.width, self.resolution + 1)
        row = band.base_y * 0.01

        # Two noise frequencies layered for the undulating top edge
        primary = self.noise.fractal_3d_array(
            xs * band.noise_scale, row,
            elapsed * 0.15 * band.speed_multiplier + band.phase_offset,
            octaves=3
        )
        secondary = self.noise.fractal_3d_array(
            xs * band.noise_scale * 2.0, row + 100.0,
            elapsed * 0.1 * band.speed_multiplier,
            octaves=2
        )
        top = band.base_y + primary * band.amplitude + secondary * band.amplitude * 0.5

        # Single octave: identical to sample_3d at each column
        thickness_noise = self.noise.fractal_3d_array(xs * 0.005, 0.0, elapsed * 0.2, octaves=1)
        bottom = top + band.thickness * NoiseField.map_range(thickness_noise, 0.5, 1.5)
        return xs, top, bottom

    def update(self, delta: float, elapsed: float):
        strips = []
        for band in self.bands:
            xs, top, bottom = self.band_edges(band, elapsed)
            color1 = self.colors[band.color_index]
            color2 = self.colors[(band.color_index + 1) % len(self.colors)]
            span = bottom - top

            for s in range(STRIPS_PER_BAND):
                st = s / STRIPS_PER_BAND
                # Strips are most opaque mid-band and fade toward both edges
                alpha = self.intensity * (1.0 - abs(st - 0.5) * 1.5)
                upper = top + span * st
                lower = top + span * (st + 1.0 / STRIPS_PER_BAND)
                polygon = list(zip(xs.tolist(), upper.tolist()))
                polygon.extend(zip(xs[::-1].tolist(), lower[::-1].tolist()))
                color = (*hex_to_rgb(lerp_color(color1, color2, st)), int(alpha * 255))
                strips.append((color, polygon))
        self.strips = strips

    def on_resize(self, width: int, height: int):
        self.width = width
        self.height = height
        self._create_bands()

    def on_destroy(self):
        self.bands = []
        self.strips = []
        self._band_surface = None

    def draw(self, surface: pygame.Surface):
        """
        Draws each band on its own scratch layer and blits it onto `surface`.
        Strips within a band tile without overlap; overlapping bands blend.
        """
        size = surface.get_size()
        if self._band_surface is None or self._band_surface.get_size() != size:
            self._band_surface = pygame.Surface(size, pygame.SRCALPHA)
        band_surface = self._band_surface

        for start in range(0, len(self.strips), STRIPS_PER_BAND):
            dirty = None
            for color, polygon in self.strips[start:start + STRIPS_PER_BAND]:
                rect = pygame.draw.polygon(band_surface, color, polygon)
                dirty = rect if dirty is None else dirty.union(rect)
            surface.blit(band_surface, dirty.topleft, dirty)
            band_surface.fill((0, 0, 0, 0), dirty)
