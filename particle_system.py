# particle_system.py

import logging
from abc import abstractmethod
from operator import attrgetter

import numpy as np
import pygame

import constants
from noise_field import NoiseField
from object_pool import ObjectPool
from particle import Particle, ParticleState
from scene_host import Scene, Layer, SceneContext
from utils import lerp, random_range

logger = logging.getLogger("ambient_scene")

_depth_key = attrgetter('depth')


class ParticleSystem(Scene):
    """
    Generic lifecycle controller for a pooled particle scene.

    Owns one ObjectPool of Particle entities and one NoiseField. Each frame it
    blends the global wind, samples the flow field for every live particle in
    one batch, lets the concrete scene integrate motion and derive visuals,
    recycles particles that left the visible domain or outlived their
    lifetime, and re-sorts the live list by depth.

    Data Contract:
    - Inputs:
        - particle_count (int): Number of live particles, constant for the
          system's running lifetime.
        - rng (np.random.Generator): Source of every random draw. The noise
          seed is derived from it unless `noise` is given.
        - noise (NoiseField | None): Injected noise field.
        - wind_strength (float): Scale of the global wind; 0 disables it.
        - max_pool_size (int | None): Optional hard cap passed to the pool.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Acquires and releases pool entities.
    - Invariants: len(self.particles) == particle_count after on_add() and
      until dispose(). Every entry of self.particles is ALIVE and checked
      out of the pool. self.particles is sorted by ascending depth after
      every update().
    """
    layer = Layer.PARTICLES

    # Distance beyond each edge (left, top, right, bottom) a particle may
    # travel before it is recycled.
    margins = (60.0, 60.0, 60.0, 60.0)

    # Flow-field sampling: spatial frequency, time frequency, and a factor on
    # elapsed time applied before the time frequency.
    flow_spatial_scale = 0.01
    flow_time_scale = 0.1
    flow_time_factor = 1.0

    def __init__(self, particle_count: int, rng: np.random.Generator, noise=None,
                 wind_strength: float = 0.0, max_pool_size=None):
        self.particle_count = particle_count
        self.rng = rng
        self.noise = noise if noise is not None else NoiseField(seed=int(rng.integers(2**32)))
        self.wind_strength = wind_strength
        self.max_pool_size = max_pool_size

        self.pool = None
        self.particles = []
        self.width = 0
        self.height = 0

        # --- Global wind state ---
        self.wind = 0.0
        self.target_wind = 0.0
        self.wind_timer = 0.0

        # --- Counters for throttled logging ---
        self.recycled_count = 0
        self.frame_count = 0

    # --- Scene lifecycle ---

    def on_add(self, context: SceneContext):
        """Creates the pool and fills the viewport with the initial particles."""
        if context.width <= 0 or context.height <= 0:
            raise ValueError(f"Viewport must have a positive area, got {context.width}x{context.height}.")
        self.width = context.width
        self.height = context.height

        self.pool = ObjectPool(self.create_particle, self.particle_count, max_size=self.max_pool_size)
        for _ in range(self.particle_count):
            self.spawn(at_edge=False)
        self.particles.sort(key=_depth_key)

        logger.info(f"{type(self).__name__} created with {self.particle_count} particles "
                    f"in a {self.width}x{self.height} viewport.")

    def update(self, delta: float, elapsed: float):
        """
        Advances every live particle by `delta` seconds.

        Recycled particles are replaced in the same slot of self.particles, so
        the loop neither skips nor revisits an entry; a replacement is first
        advanced on the next frame.
        """
        self.frame_count += 1
        if self.wind_strength:
            self._update_wind(delta)

        count = len(self.particles)
        if count:
            particles = self.particles
            xs = np.fromiter((p.x + p.noise_offset for p in particles), dtype=np.float64, count=count)
            ys = np.fromiter((p.y for p in particles), dtype=np.float64, count=count)
            flow_x, flow_y = self.noise.flow_field_array(
                xs, ys, elapsed * self.flow_time_factor,
                self.flow_spatial_scale, self.flow_time_scale
            )
            flow_x = flow_x.tolist()
            flow_y = flow_y.tolist()

            for i in range(count):
                particle = particles[i]
                particle.age += delta
                self.advance_particle(particle, delta, elapsed, flow_x[i], flow_y[i])
                if self.should_recycle(particle):
                    self._recycle(i)

        # Nearer particles draw last. Depth never changes while a particle is
        # alive, so only fresh replacements are out of order here.
        self.particles.sort(key=_depth_key)

    def on_resize(self, width: int, height: int):
        # Existing particles drift out naturally and respawn against the new edges.
        self.width = width
        self.height = height
        logger.debug(f"{type(self).__name__} resized to {width}x{height}.")

    def on_destroy(self):
        self.dispose()

    def draw(self, surface: pygame.Surface):
        for particle in self.particles:
            if particle.visible and particle.alpha > 0.0:
                self.draw_particle(surface, particle)

    # --- Lifecycle operations ---

    def spawn(self, at_edge: bool, slot=None) -> Particle:
        """
        Checks a particle out of the pool and brings it to life.

        With `at_edge` the scene places it at its entry edge (steady-state
        respawn); otherwise anywhere in the viewport (initial fill). The
        particle is appended to the live list, or written into index `slot`.
        """
        particle = self.pool.acquire(self._begin_spawn)
        self.initialize_particle(particle, at_edge)
        particle.visible = True
        particle.state = ParticleState.ALIVE

        if slot is None:
            self.particles.append(particle)
        else:
            self.particles[slot] = particle
        return particle

    def _begin_spawn(self, particle: Particle):
        particle.state = ParticleState.SPAWNING
        particle.depth = self.rng.random()
        particle.noise_offset = self.rng.random() * constants.NOISE_OFFSET_RANGE
        particle.age = 0.0

    def _recycle(self, index: int):
        """Returns the particle at `index` to the pool and respawns into its slot."""
        particle = self.particles[index]
        particle.state = ParticleState.RECYCLING
        self.pool.release(particle, self.reset_particle)
        self.spawn(at_edge=True, slot=index)
        self.recycled_count += 1

    def despawn(self, particle: Particle):
        """
        Removes a live particle without a replacement. Only for hosts that
        deliberately shrink a system; update() never calls it. Popping keeps
        the live list in depth order.
        """
        self.particles.pop(self.particles.index(particle))
        particle.state = ParticleState.RECYCLING
        self.pool.release(particle, self.reset_particle)

    def dispose(self):
        """Disposes the pool. No further update() calls are allowed."""
        if self.pool is None:
            return
        stats = self.pool.stats()
        self.pool.dispose(self.cleanup_particle)
        self.particles = []
        self.pool = None
        logger.info(f"{type(self).__name__} disposed ({stats.total} pooled particles, "
                    f"{self.recycled_count} recycled over {self.frame_count} frames).")

    def _update_wind(self, delta: float):
        # Blend toward a periodically re-randomized target for gradual gusts.
        self.wind_timer += delta
        if self.wind_timer > constants.WIND_CHANGE_INTERVAL:
            self.target_wind = random_range(self.rng, -1.0, 1.0) * self.wind_strength
            self.wind_timer = 0.0
        self.wind = lerp(self.wind, self.target_wind, delta * constants.WIND_BLEND_RATE)

    # --- Policy hooks ---

    def should_recycle(self, particle: Particle) -> bool:
        return self.is_out_of_bounds(particle) or particle.age > particle.lifetime

    def is_out_of_bounds(self, particle: Particle) -> bool:
        left, top, right, bottom = self.margins
        return (particle.x < -left or particle.x > self.width + right
                or particle.y < -top or particle.y > self.height + bottom)

    def create_particle(self) -> Particle:
        """Pool factory."""
        return Particle()

    def reset_particle(self, particle: Particle):
        particle.reset()
        particle.state = ParticleState.RECYCLING

    def cleanup_particle(self, particle: Particle):
        particle.visible = False
        particle.state = ParticleState.DISPOSED

    @property
    def alive_count(self) -> int:
        return sum(1 for p in self.particles if p.state is ParticleState.ALIVE)

    def stats(self) -> dict:
        """Snapshot for throttled logging and tests."""
        return {
            'alive': self.alive_count,
            'recycled': self.recycled_count,
            'frames': self.frame_count,
            'wind': self.wind,
            'pool': self.pool.stats() if self.pool is not None else None,
        }

    # --- Scene-specific behaviour ---

    @abstractmethod
    def initialize_particle(self, particle: Particle, at_edge: bool):
        """Assigns position, velocity and visual parameters. depth and noise_offset are already set."""

    @abstractmethod
    def advance_particle(self, particle: Particle, delta: float, elapsed: float,
                         flow_x: float, flow_y: float):
        """Integrates one frame of motion and derives alpha, scale and rotation."""

    @abstractmethod
    def draw_particle(self, surface: pygame.Surface, particle: Particle):
        ...
