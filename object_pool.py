# object_pool.py

import logging
from collections import namedtuple

logger = logging.getLogger("ambient_scene")

# Read-only snapshot of pool occupancy, for monitoring and tests.
PoolStats = namedtuple('PoolStats', ['available', 'active', 'total'])


class PoolExhaustedError(RuntimeError):
    """Raised by a capped pool when no free entity is left and the cap is reached."""


class InvalidReleaseError(ValueError):
    """Raised by a strict pool when an entity that is not checked out is released."""


class PoolDisposedError(RuntimeError):
    """Raised when a pool is used after dispose()."""


class ObjectPool:
    """
    A generic arena of reusable mutable entities. Entities are handed out with
    acquire() and taken back with release(); nothing is allocated on the hot
    path unless the free list runs dry.

    Data Contract:
    - Inputs:
        - factory (callable): No-argument function returning a fresh entity.
        - initial_size (int): Number of entities pre-allocated into the free list.
        - max_size (int | None): Hard cap on total entities. None means the
          pool grows on demand and acquire() never fails.
        - strict (bool): When True, releasing an entity that is not active
          raises InvalidReleaseError instead of being ignored.
    - Outputs: None. This class manages its internal collections.
    - Side Effects: Calls `factory` at construction, on growth and on expand().
    - Invariants: available + active == total at every observation point.
      Every entity lives in exactly one of the free list or the active set.
      Entities are never destroyed individually; only dispose() empties the pool.
    """
    def __init__(self, factory, initial_size: int = 100, max_size=None, strict: bool = False):
        if max_size is not None and initial_size > max_size:
            raise ValueError(f"initial_size ({initial_size}) exceeds max_size ({max_size}).")

        self.factory = factory
        self.max_size = max_size
        self.strict = strict
        self._free = [factory() for _ in range(initial_size)]
        self._active = set()
        self._disposed = False

        logger.debug(f"ObjectPool created with {initial_size} entities (max_size={max_size}).")

    def _check_usable(self):
        if self._disposed:
            raise PoolDisposedError("ObjectPool has been disposed.")

    def acquire(self, initializer=None):
        """
        Hands out one entity, applying `initializer(entity)` if given.

        Pops from the free list, or calls the factory when the free list is
        empty. With max_size set and the cap reached, raises PoolExhaustedError.
        """
        self._check_usable()
        if self._free:
            entity = self._free.pop()
        else:
            total = len(self._active)
            if self.max_size is not None and total >= self.max_size:
                raise PoolExhaustedError(f"ObjectPool exhausted at max_size={self.max_size}.")
            entity = self.factory()
            logger.debug(f"ObjectPool grew to {total + 1} entities.")

        self._active.add(entity)
        if initializer is not None:
            initializer(entity)
        return entity

    def release(self, entity, reset=None):
        """
        Returns an active entity to the free list, applying `reset(entity)`
        first. Releasing an entity that is not active is a no-op (or an
        InvalidReleaseError in strict mode).
        """
        self._check_usable()
        if not self.is_active(entity):
            if self.strict:
                raise InvalidReleaseError("Released an entity that is not checked out of this pool.")
            return
        self._active.remove(entity)
        if reset is not None:
            reset(entity)
        self._free.append(entity)

    def release_all(self, reset=None):
        """Releases every active entity, e.g. on scene reset."""
        self._check_usable()
        for entity in self._active:
            if reset is not None:
                reset(entity)
            self._free.append(entity)
        self._active.clear()

    def expand(self, count: int):
        """Pre-allocates `count` more entities into the free list."""
        self._check_usable()
        if self.max_size is not None:
            room = self.max_size - (len(self._free) + len(self._active))
            if count > room:
                logger.warning(f"ObjectPool.expand({count}) clamped to {room} by max_size={self.max_size}.")
                count = max(room, 0)
        for _ in range(count):
            self._free.append(self.factory())

    def dispose(self, cleanup=None):
        """
        Calls `cleanup(entity)` on every entity, free and active, then empties
        both collections. The pool cannot be used afterwards.
        """
        self._check_usable()
        if cleanup is not None:
            for entity in self._free:
                cleanup(entity)
            for entity in self._active:
                cleanup(entity)
        disposed_count = len(self._free) + len(self._active)
        self._free = []
        self._active.clear()
        self._disposed = True
        logger.debug(f"ObjectPool disposed ({disposed_count} entities).")

    def is_active(self, entity) -> bool:
        return entity in self._active

    def stats(self) -> PoolStats:
        available = len(self._free)
        active = len(self._active)
        return PoolStats(available=available, active=active, total=available + active)
