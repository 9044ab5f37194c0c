"""Tests for the particle lifecycle controller and its snow/sparkle scenes."""

from __future__ import annotations

import numpy as np
import pygame
import pytest

from magic_sparkles import MagicSparkles
from noise_field import NoiseField
from particle import ParticleState
from scene_host import SceneContext
from snow_system import SnowSystem

FRAME = 1.0 / 60.0


def run_frames(system, frames, delta=FRAME, start=0.0):
    elapsed = start
    for _ in range(frames):
        elapsed += delta
        system.update(delta, elapsed)
    return elapsed


@pytest.fixture
def snow(rng, context):
    system = SnowSystem(rng, particle_count=100)
    system.on_add(context)
    return system


@pytest.fixture
def sparkles(rng, context):
    system = MagicSparkles(rng, particle_count=40)
    system.on_add(context)
    return system


class TestSpawn:
    def test_initial_fill(self, snow, context):
        assert len(snow.particles) == 100
        assert snow.alive_count == 100
        for p in snow.particles:
            assert 0.0 <= p.depth <= 1.0
            assert 0.0 <= p.y <= context.height
            assert p.visible

    def test_initial_fill_is_depth_sorted(self, snow):
        depths = [p.depth for p in snow.particles]
        assert depths == sorted(depths)

    def test_pool_sized_to_particle_count(self, snow):
        stats = snow.pool.stats()
        assert (stats.available, stats.active, stats.total) == (0, 100, 100)

    def test_depth_drives_size_speed_alpha(self, snow):
        far = min(snow.particles, key=lambda p: p.depth)
        near = max(snow.particles, key=lambda p: p.depth)
        assert far.scale < near.scale
        assert far.vy < near.vy
        assert far.alpha < near.alpha

    def test_edge_spawn_above_viewport(self, snow):
        particle = snow.spawn(at_edge=True)
        assert -50.0 <= particle.y <= -10.0
        assert particle.state is ParticleState.ALIVE

    def test_zero_area_viewport_rejected(self, rng):
        system = SnowSystem(rng, particle_count=10)
        with pytest.raises(ValueError):
            system.on_add(SceneContext(0, 600))

    def test_injected_noise_is_used(self, rng, context):
        noise = NoiseField(seed=5)
        system = SnowSystem(rng, particle_count=5, noise=noise)
        assert system.noise is noise


class TestUpdate:
    def test_particle_count_invariant(self, snow):
        elapsed = 0.0
        for _ in range(600):
            elapsed += FRAME
            snow.update(FRAME, elapsed)
            assert snow.alive_count == 100
        assert snow.recycled_count > 0
        stats = snow.pool.stats()
        assert (stats.active, stats.total) == (100, 100)

    def test_sorted_by_depth_after_update(self, snow):
        run_frames(snow, 120)
        depths = [p.depth for p in snow.particles]
        assert depths == sorted(depths)

    def test_depth_stable_and_age_advances(self, snow):
        before = {id(p): (p.depth, p.age) for p in snow.particles}
        snow.update(FRAME, FRAME)
        assert snow.recycled_count == 0
        for p in snow.particles:
            depth, age = before[id(p)]
            assert p.depth == depth
            assert p.age == pytest.approx(age + FRAME)

    def test_snow_falls(self, snow):
        before = {id(p): p.y for p in snow.particles}
        snow.update(0.1, 0.1)
        assert all(p.y > before[id(p)] for p in snow.particles)

    def test_recycle_on_boundary_exit(self, snow, context):
        particle = snow.particles[0]
        particle.x = context.width + 100.0
        particle.y = 0.0

        snow.update(FRAME, FRAME)

        assert snow.recycled_count == 1
        assert snow.alive_count == 100
        # The pool hands the same entity straight back for the replacement
        assert particle.state is ParticleState.ALIVE
        assert particle.x <= context.width + 60.0
        assert particle.y < 0.0
        assert particle.age == 0.0

    def test_recycle_keeps_every_other_particle(self, snow, context):
        others = {id(p) for p in snow.particles[1:]}
        snow.particles[0].x = -200.0
        snow.update(FRAME, FRAME)
        assert others <= {id(p) for p in snow.particles}

    def test_displacement_independent_of_frame_rate(self, context):
        coarse = SnowSystem(np.random.default_rng(8), particle_count=30, wind_strength=0.0)
        fine = SnowSystem(np.random.default_rng(8), particle_count=30, wind_strength=0.0)
        coarse.on_add(context)
        fine.on_add(context)
        before = [p.y for p in coarse.particles]

        coarse.update(0.1, 0.1)
        run_frames(fine, 10, delta=0.01)

        assert coarse.recycled_count == fine.recycled_count == 0
        for start, a, b in zip(before, coarse.particles, fine.particles):
            assert a.y - start == pytest.approx(a.vy * 0.1)
            assert b.y - start == pytest.approx(a.y - start)

    def test_deterministic_for_same_seed(self, context):
        a = SnowSystem(np.random.default_rng(3), particle_count=30)
        b = SnowSystem(np.random.default_rng(3), particle_count=30)
        a.on_add(context)
        b.on_add(context)
        run_frames(a, 90)
        run_frames(b, 90)
        assert [(p.x, p.y) for p in a.particles] == [(p.x, p.y) for p in b.particles]


class TestWind:
    def test_blends_toward_target(self, snow):
        snow.wind = 0.0
        snow.target_wind = 1.0
        snow.update(0.1, 0.1)
        assert snow.wind == pytest.approx(0.05)

    def test_target_rerandomized_after_interval(self, snow):
        run_frames(snow, 200)  # a little over three seconds
        assert snow.target_wind != 0.0
        assert -1.0 <= snow.target_wind <= 1.0

    def test_no_wind_without_strength(self, rng, context):
        system = SnowSystem(rng, particle_count=10, wind_strength=0.0)
        system.on_add(context)
        run_frames(system, 300)
        assert system.wind == 0.0


class TestSparkles:
    def test_lifetime_expiry_recycles(self, sparkles):
        particle = sparkles.particles[0]
        particle.age = particle.lifetime + 1.0
        sparkles.update(1e-6, 1e-6)
        assert sparkles.recycled_count == 1
        assert particle.age == 0.0
        assert sparkles.alive_count == 40

    def test_alpha_fades_in_after_respawn(self, sparkles):
        particle = sparkles.spawn(at_edge=True)
        sparkles.advance_particle(particle, 0.0, 0.0, 0.0, 0.0)
        assert particle.alpha == 0.0

    def test_oscillators_phase_shifted_per_particle(self, sparkles):
        first, second = sparkles.particles[0], sparkles.particles[1]
        for particle, offset in ((first, 0.0), (second, 1.5)):
            particle.lifetime = 10.0
            particle.age = 5.0
            particle.twinkle_speed = 2.0
            particle.pulse_speed = 2.0
            particle.twinkle_offset = offset
            particle.pulse_offset = offset
            sparkles.advance_particle(particle, 0.0, 1.0, 0.0, 0.0)
        assert first.alpha != pytest.approx(second.alpha)
        assert first.scale / first.base_scale != pytest.approx(second.scale / second.base_scale)

    def test_count_invariant_over_lifetimes(self, sparkles):
        run_frames(sparkles, 40, delta=0.5)
        assert sparkles.alive_count == 40
        assert sparkles.recycled_count > 0

    def test_weighted_colors(self, rng, context):
        colors = [0x111111, 0x222222, 0x333333]
        system = MagicSparkles(rng, particle_count=25, colors=colors, weights=[1.0, 0.0, 0.0])
        system.on_add(context)
        assert {p.color for p in system.particles} == {0x111111}

    def test_weight_count_mismatch_rejected(self, rng):
        with pytest.raises(ValueError):
            MagicSparkles(rng, colors=[0x111111, 0x222222], weights=[1.0])


class TestTeardown:
    def test_dispose_marks_particles(self, snow):
        particles = list(snow.particles)
        snow.on_destroy()
        assert snow.particles == []
        assert snow.pool is None
        assert all(p.state is ParticleState.DISPOSED for p in particles)

    def test_despawn_keeps_depth_order(self, snow):
        victim = snow.particles[10]
        snow.despawn(victim)
        assert len(snow.particles) == 99
        assert victim not in snow.particles
        assert snow.pool.stats().active == 99
        depths = [p.depth for p in snow.particles]
        assert depths == sorted(depths)


class TestDraw:
    def test_draw_onto_alpha_surface(self, snow, sparkles):
        surface = pygame.Surface((800, 600), pygame.SRCALPHA)
        snow.update(FRAME, FRAME)
        sparkles.update(FRAME, 2.0)
        snow.draw(surface)
        sparkles.draw(surface)
        assert surface.get_bounding_rect().width > 0

    def test_overlapping_flakes_blend(self, snow):
        surface = pygame.Surface((800, 600), pygame.SRCALPHA)
        for particle in snow.particles:
            particle.visible = False
        bright, faint = snow.particles[0], snow.particles[1]
        for particle, alpha in ((bright, 0.9), (faint, 0.3)):
            particle.visible = True
            particle.x, particle.y = 400.0, 300.0
            particle.scale = 3.0
            particle.alpha = alpha
        snow.draw(surface)
        assert surface.get_at((400, 300)).a > int(0.9 * 255) - 5
