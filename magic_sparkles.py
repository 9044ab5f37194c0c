# magic_sparkles.py

import math

import pygame

import constants
from particle_system import ParticleSystem
from scene_host import Layer
from utils import lerp, clamp, random_range, build_cdf, weighted_pick, hex_to_rgb

# Sparkles float in the upper part of the viewport.
SPAWN_HEIGHT_FRACTION = 0.8

SIZE_RANGE = (2.0, 6.0)       # Star radius in pixels, far -> near
LIFETIME_RANGE = (5.0, 15.0)  # Seconds
FADE_TIME = 1.0               # Seconds of fade-in and fade-out

# Drift added to the base velocity at full flow (pixels per second)
FLOW_DRIFT_X = 15.0
FLOW_DRIFT_Y = 10.0

# Inner vertices of the four-pointed star, as a fraction of the outer radius
STAR_INNER_RATIO = 0.3

_STAR_POINTS = []
for _k in range(8):
    _angle = _k * math.pi / 4.0 - math.pi / 2.0
    _radius = 1.0 if _k % 2 == 0 else STAR_INNER_RATIO * math.sqrt(2.0)
    _STAR_POINTS.append((math.cos(_angle) * _radius, math.sin(_angle) * _radius))


class MagicSparkles(ParticleSystem):
    """
    Floating four-pointed sparkles that drift lazily, twinkle and pulse.

    Each sparkle lives for a random lifetime, fading in and out at its ends,
    and is respawned elsewhere when it expires or drifts off screen.
    Colours are picked from a palette, optionally weighted.
    """
    layer = Layer.EFFECTS
    margins = (20.0, 20.0, 20.0, 20.0)

    flow_spatial_scale = 0.005
    flow_time_scale = 0.1
    flow_time_factor = 0.5

    def __init__(self, rng, particle_count: int = 50, colors=None, weights=None,
                 noise=None, max_pool_size=None):
        super().__init__(particle_count, rng, noise=noise, max_pool_size=max_pool_size)
        self.colors = list(colors) if colors else list(constants.SPARKLE_COLORS)
        if weights is None:
            weights = [1.0 / len(self.colors)] * len(self.colors)
        elif len(weights) != len(self.colors):
            raise ValueError(f"Got {len(weights)} weights for {len(self.colors)} colors.")
        self.color_cdf = build_cdf(weights)

    def initialize_particle(self, particle, at_edge):
        rng = self.rng

        # Sparkles appear anywhere; `at_edge` only decides whether the particle
        # starts mid-life (initial fill) or fades in from age 0 (respawn).
        particle.x = random_range(rng, 0.0, self.width)
        particle.y = random_range(rng, 0.0, self.height * SPAWN_HEIGHT_FRACTION)

        particle.base_scale = lerp(*SIZE_RANGE, particle.depth)
        particle.scale = particle.base_scale
        particle.color = weighted_pick(self.colors, self.color_cdf, rng)

        particle.vx = random_range(rng, -5.0, 5.0)
        particle.vy = random_range(rng, -3.0, 3.0)

        particle.twinkle_speed = random_range(rng, 2.0, 5.0)
        particle.twinkle_offset = random_range(rng, 0.0, 2.0 * math.pi)
        particle.pulse_speed = random_range(rng, 1.0, 3.0)
        particle.pulse_offset = random_range(rng, 0.0, 2.0 * math.pi)

        particle.lifetime = random_range(rng, *LIFETIME_RANGE)
        particle.age = 0.0 if at_edge else random_range(rng, 0.0, particle.lifetime)

        particle.rotation_speed = random_range(rng, -1.0, 1.0)
        particle.base_alpha = 0.8
        particle.alpha = particle.base_alpha

    def advance_particle(self, particle, delta, elapsed, flow_x, flow_y):
        fade = particle.life_fade(FADE_TIME)

        twinkle = math.sin(elapsed * particle.twinkle_speed + particle.twinkle_offset)
        particle.alpha = (0.4 + twinkle * 0.4) * fade

        pulse = math.sin(elapsed * particle.pulse_speed + particle.pulse_offset)
        particle.scale = particle.base_scale * (0.8 + pulse * 0.3)

        particle.x += (particle.vx + flow_x * FLOW_DRIFT_X) * delta
        particle.y += (particle.vy + flow_y * FLOW_DRIFT_Y) * delta
        particle.rotation += particle.rotation_speed * delta

    def draw_particle(self, surface, particle):
        cos_r = math.cos(particle.rotation)
        sin_r = math.sin(particle.rotation)
        size = particle.scale
        # The star is drawn on its own small surface so overlapping sparkles blend
        extent = int(math.ceil(size)) + 1
        left = int(particle.x) - extent
        top = int(particle.y) - extent
        points = [
            (particle.x - left + (px * cos_r - py * sin_r) * size,
             particle.y - top + (px * sin_r + py * cos_r) * size)
            for px, py in _STAR_POINTS
        ]
        alpha = int(clamp(particle.alpha, 0.0, 1.0) * 255)
        sprite = pygame.Surface((extent * 2 + 1, extent * 2 + 1), pygame.SRCALPHA)
        pygame.draw.polygon(sprite, (*hex_to_rgb(particle.color), alpha), points)
        surface.blit(sprite, (left, top))
