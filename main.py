# main.py

import pygame
import constants
import logging
import logger_setup
import numpy as np
from utils import load_config, hex_to_rgb
from scene_host import SceneHost
from particle_system import ParticleSystem
from aurora import Aurora
from snow_system import SnowSystem
from magic_sparkles import MagicSparkles

# Get the application's dedicated logger
logger = logging.getLogger("ambient_scene")

import cProfile, pstats

def build_scenes(scene_config, rng):
    """
    Instantiates the enabled scenes from the 'scenes' config section.
    Every scene draws from the single master RNG.
    """
    scenes = []

    aurora_cfg = scene_config.get('aurora', {})
    if aurora_cfg.get('enabled', True):
        scenes.append(Aurora(
            rng,
            band_count=aurora_cfg.get('band_count', 5),
            resolution=aurora_cfg.get('resolution', 80),
            intensity=aurora_cfg.get('intensity', 0.4),
        ))

    snow_cfg = scene_config.get('snow', {})
    if snow_cfg.get('enabled', True):
        scenes.append(SnowSystem(
            rng,
            particle_count=snow_cfg.get('particle_count', 400),
            wind_strength=snow_cfg.get('wind_strength', 1.0),
            max_pool_size=snow_cfg.get('max_pool_size'),
        ))

    sparkle_cfg = scene_config.get('sparkles', {})
    if sparkle_cfg.get('enabled', True):
        scenes.append(MagicSparkles(
            rng,
            particle_count=sparkle_cfg.get('particle_count', 50),
            weights=sparkle_cfg.get('weights'),
            max_pool_size=sparkle_cfg.get('max_pool_size'),
        ))

    return scenes

def log_scene_stats(host, frame):
    """Throttled per-scene statistics (pool occupancy, recycling, wind)."""
    for scene in host.scenes:
        if not isinstance(scene, ParticleSystem):
            continue
        stats = scene.stats()
        pool = stats['pool']
        logger.debug(
            f"Frame={frame}, "
            f"Scene={type(scene).__name__}, "
            f"Alive={stats['alive']}, "
            f"Recycled={stats['recycled']}, "
            f"Wind={stats['wind']:+.3f}, "
            f"PoolAvailable={pool.available}, "
            f"PoolActive={pool.active}, "
            f"PoolTotal={pool.total}"
        )

def run_frame_loop(host, screen, clock, run_control):
    """
    The main frame loop. Runs until the window is closed or, when
    run_control['max_frames'] is positive, for that many frames.
    """
    running = True
    frame = 0
    max_frames = run_control.get('max_frames', 0)
    log_throttle = run_control.get('log_throttle_frames', 300)
    background = hex_to_rgb(constants.SKY_TOP)

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                host.resize(event.w, event.h)

        # Seconds since the previous frame, clamped so a stall does not teleport particles
        delta = min(clock.tick(constants.FPS) / 1000.0, constants.MAX_FRAME_DELTA)
        host.tick(delta)

        screen.fill(background)
        host.draw(screen)
        pygame.display.flip()
        frame += 1

        # --- Logging (throttled) ---
        if log_throttle and frame % log_throttle == 0:
            logger.info(f"Frame {frame}, elapsed {host.elapsed:.1f}s, fps {clock.get_fps():.1f}")
            log_scene_stats(host, frame)

        if max_frames and frame >= max_frames:
            logger.info(f"Reached max_frames ({max_frames}). Stopping.")
            running = False

def main():
    """
    Main function to initialize and run the ambient scene.
    """
    # --- Setup ---
    logger_setup.setup_logging()
    config = load_config('config.json')
    run_control = config.get('run_control', {})

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    host = SceneHost(constants.WIDTH, constants.HEIGHT)
    for scene in build_scenes(config.get('scenes', {}), rng):
        host.add_scene(scene)

    profiler = None
    if run_control.get('profile', False):
        profiler = cProfile.Profile()
        profiler.enable()

    try:
        run_frame_loop(host, screen, clock, run_control)
    finally:
        if profiler is not None:
            profiler.disable()
            logger.info("Profiling complete. Printing stats...")
            stats = pstats.Stats(profiler).sort_stats('cumtime')
            stats.print_stats(20) # Print the top 20 time-consuming functions

        host.destroy()
        logger.info("Application shutting down.")
        pygame.quit()

if __name__ == "__main__":
    main()
