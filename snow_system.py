# snow_system.py

import math

import pygame

import constants
from particle_system import ParticleSystem
from utils import lerp, random_range, hex_to_rgb

# Spawn band: flakes enter from just above the top edge, spread slightly wider
# than the viewport so gusts do not leave empty columns at the sides.
SPAWN_X_OVERSCAN = 50.0
SPAWN_Y_RANGE = (-50.0, -10.0)

# Depth parametrization (far -> near)
SIZE_RANGE = (1.0, 4.0)         # Radius in pixels
FALL_SPEED_RANGE = (30.0, 100.0)  # Pixels per second
ALPHA_RANGE = (0.3, 0.9)

FLOW_DRIFT = 20.0   # Horizontal pixels per second at full flow and depth 1
WIND_DRIFT = 50.0   # Horizontal pixels per second at full wind and depth 1
ROTATING_DEPTH = 0.7


class SnowSystem(ParticleSystem):
    """
    Heavy snowfall with wind gusts, flow-field drift, wobble and depth layers.

    Flakes fall from the top edge; far flakes are small, slow and faint,
    near flakes large, fast and bright. A flake is recycled when it falls
    below the viewport or is blown out at either side.
    """
    # No top margin: freshly spawned flakes start above the viewport.
    margins = (60.0, math.inf, 60.0, 20.0)

    flow_spatial_scale = 0.003
    flow_time_scale = 0.2

    def __init__(self, rng, particle_count: int = 400, wind_strength: float = 1.0,
                 noise=None, max_pool_size=None):
        super().__init__(particle_count, rng, noise=noise, wind_strength=wind_strength,
                         max_pool_size=max_pool_size)
        self.color = hex_to_rgb(constants.SNOW_WHITE)
        # Pre-rendered flake sprites keyed by (radius, alpha)
        self._sprites = {}

    def initialize_particle(self, particle, at_edge):
        rng = self.rng
        depth = particle.depth

        particle.x = random_range(rng, -SPAWN_X_OVERSCAN, self.width + SPAWN_X_OVERSCAN)
        if at_edge:
            particle.y = random_range(rng, *SPAWN_Y_RANGE)
        else:
            particle.y = random_range(rng, 0.0, self.height)

        particle.base_scale = lerp(*SIZE_RANGE, depth)
        particle.scale = particle.base_scale
        particle.vx = 0.0
        particle.vy = lerp(*FALL_SPEED_RANGE, depth)
        particle.base_alpha = lerp(*ALPHA_RANGE, depth)
        particle.alpha = particle.base_alpha
        particle.color = constants.SNOW_WHITE

        particle.wobble_speed = random_range(rng, 1.0, 3.0)
        particle.wobble_offset = random_range(rng, 0.0, 2.0 * math.pi)
        particle.wobble_amount = random_range(rng, 10.0, 30.0)

        # Only the larger, nearer flakes visibly spin
        particle.rotation_speed = random_range(rng, -2.0, 2.0) if depth > ROTATING_DEPTH else 0.0

    def advance_particle(self, particle, delta, elapsed, flow_x, flow_y):
        depth = particle.depth
        particle.vx = flow_x * FLOW_DRIFT * depth + self.wind * WIND_DRIFT * depth
        wobble = math.sin(elapsed * particle.wobble_speed + particle.wobble_offset) * particle.wobble_amount * depth

        particle.x += (particle.vx + wobble) * delta
        particle.y += particle.vy * delta

        if particle.rotation_speed:
            particle.rotation += particle.rotation_speed * delta

    def _sprite(self, radius: int, alpha: int) -> pygame.Surface:
        key = (radius, alpha)
        sprite = self._sprites.get(key)
        if sprite is None:
            sprite = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
            pygame.draw.circle(sprite, (*self.color, alpha), (radius, radius), radius)
            self._sprites[key] = sprite
        return sprite

    def draw_particle(self, surface, particle):
        # blit blends overlapping flakes
        radius = max(1, int(round(particle.scale)))
        sprite = self._sprite(radius, int(particle.alpha * 255))
        surface.blit(sprite, (int(particle.x) - radius, int(particle.y) - radius))
