# scene_host.py
"""
Scene lifecycle interface and the host that drives it.

Every animated element of the scene implements the Scene interface. The
SceneHost owns the list of scenes, accumulates elapsed time, forwards
resizes and draws the scenes back to front by layer.
"""
import logging
from abc import ABC, abstractmethod
from collections import namedtuple
from enum import IntEnum

import pygame

logger = logging.getLogger("ambient_scene")

# Passed to Scene.on_add: the viewport the scene is attached to.
SceneContext = namedtuple('SceneContext', ['width', 'height'])


class Layer(IntEnum):
    """Render layers, drawn in ascending order (first = back)."""
    BACKGROUND = 0
    SCENE = 1
    PARTICLES = 2
    EFFECTS = 3
    OVERLAY = 4


class Scene(ABC):
    """
    Capability interface shared by every animated scene.

    Data Contract:
    - on_add(context) is called exactly once before the first update.
    - update(delta, elapsed) is called once per frame; both in seconds.
    - on_resize(width, height) may be called between frames.
    - on_destroy() is called once at teardown; no further calls follow.
    - draw(surface) renders the current state onto a per-pixel-alpha surface.
    """
    layer = Layer.SCENE

    @abstractmethod
    def on_add(self, context: SceneContext):
        ...

    @abstractmethod
    def update(self, delta: float, elapsed: float):
        ...

    @abstractmethod
    def on_resize(self, width: int, height: int):
        ...

    @abstractmethod
    def on_destroy(self):
        ...

    @abstractmethod
    def draw(self, surface: pygame.Surface):
        ...


class SceneHost:
    """
    Drives a set of scenes from an external frame loop.

    Data Contract:
    - Inputs: width, height (int) - The initial viewport size in pixels.
    - Side Effects: Calls the Scene lifecycle methods of every added scene.
    - Invariants: elapsed is the sum of every delta passed to tick().
      Scenes in the same layer are updated and drawn in insertion order.
    """
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.scenes = []
        self.elapsed = 0.0
        self._layer_surface = None

    def add_scene(self, scene: Scene):
        self.scenes.append(scene)
        # sort() is stable, so insertion order survives within a layer
        self.scenes.sort(key=lambda s: s.layer)
        scene.on_add(SceneContext(self.width, self.height))
        logger.info(f"Scene added: {type(scene).__name__} (layer={scene.layer.name}).")
        return self

    def remove_scene(self, scene: Scene):
        if scene in self.scenes:
            self.scenes.remove(scene)
            scene.on_destroy()
            logger.info(f"Scene removed: {type(scene).__name__}.")
        return self

    def tick(self, delta: float):
        """Advances every scene by one frame of `delta` seconds."""
        self.elapsed += delta
        for scene in self.scenes:
            scene.update(delta, self.elapsed)

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height
        self._layer_surface = None
        for scene in self.scenes:
            scene.on_resize(width, height)
        logger.info(f"Viewport resized to {width}x{height}.")

    def draw(self, screen: pygame.Surface):
        """
        Draws every scene back to front. Each scene renders onto a cleared
        per-pixel-alpha layer that is then blended onto `screen`.
        """
        size = screen.get_size()
        if self._layer_surface is None or self._layer_surface.get_size() != size:
            self._layer_surface = pygame.Surface(size, pygame.SRCALPHA)

        for scene in self.scenes:
            self._layer_surface.fill((0, 0, 0, 0))
            scene.draw(self._layer_surface)
            screen.blit(self._layer_surface, (0, 0))

    def destroy(self):
        """Tears down every scene. The host holds no scenes afterwards."""
        for scene in self.scenes:
            scene.on_destroy()
        logger.info(f"SceneHost destroyed ({len(self.scenes)} scenes).")
        self.scenes = []
