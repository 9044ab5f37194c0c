# particle.py

import math
from enum import Enum

from utils import clamp


class ParticleState(Enum):
    """Lifecycle of a pooled particle."""
    SPAWNING = "spawning"    # Checked out of the pool, attributes being assigned
    ALIVE = "alive"          # Updated and drawn every frame
    RECYCLING = "recycling"  # Parked in the pool's free list, waiting for a respawn
    DISPOSED = "disposed"    # The owning system was torn down


class Particle:
    """
    A single mutable particle drawn from an ObjectPool.

    Every scene uses the same entity type; each scene only fills the
    attributes it animates. Oscillator attributes come in (speed, offset)
    pairs where the offset is a random phase, so particles sharing a
    frequency never pulse in lockstep.

    Data Contract:
    - Invariants: depth is assigned once at spawn and stays fixed until the
      particle is recycled. age never decreases while the particle is ALIVE.
      lifetime is math.inf for scenes that only recycle on leaving the screen.
    """
    def __init__(self):
        self.reset()
        self.state = ParticleState.RECYCLING

    def reset(self):
        """Clears every per-spawn attribute back to a neutral value."""
        # Motion
        self.x = 0.0
        self.y = 0.0
        self.vx = 0.0
        self.vy = 0.0

        # Parallax depth: 0 = far back, 1 = front
        self.depth = 0.0

        # Lifetime
        self.age = 0.0
        self.lifetime = math.inf

        # Offset into the shared noise field
        self.noise_offset = 0.0

        # Transient visual attributes, re-derived every frame
        self.alpha = 0.0
        self.scale = 1.0
        self.rotation = 0.0
        self.visible = False

        # Per-spawn visual parameters
        self.base_alpha = 0.0
        self.base_scale = 1.0
        self.rotation_speed = 0.0
        self.color = 0xFFFFFF

        # Oscillators
        self.wobble_speed = 0.0
        self.wobble_offset = 0.0
        self.wobble_amount = 0.0
        self.twinkle_speed = 0.0
        self.twinkle_offset = 0.0
        self.pulse_speed = 0.0
        self.pulse_offset = 0.0

    def life_fade(self, fade_time: float = 1.0) -> float:
        """
        Opacity multiplier for lifetime-bounded particles: ramps 0 -> 1 over the
        first `fade_time` seconds and 1 -> 0 over the last `fade_time` seconds.
        """
        if self.age < fade_time:
            fade = self.age / fade_time
        elif self.age > self.lifetime - fade_time:
            fade = (self.lifetime - self.age) / fade_time
        else:
            fade = 1.0
        return clamp(fade, 0.0, 1.0)

    def __repr__(self):
        return (f"Particle(state={self.state.name}, pos=({self.x:.1f}, {self.y:.1f}), "
                f"depth={self.depth:.2f}, age={self.age:.2f})")
