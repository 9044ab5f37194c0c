# noise_field.py

import logging
import math
import numpy as np
import numba

logger = logging.getLogger("ambient_scene")

# --- Simplex Lattice Constants ---
# Skew/unskew factors for the 2D, 3D and 4D simplex grids.
_F2 = 0.5 * (math.sqrt(3.0) - 1.0)
_G2 = (3.0 - math.sqrt(3.0)) / 6.0
_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0
_F4 = (math.sqrt(5.0) - 1.0) / 4.0
_G4 = (5.0 - math.sqrt(5.0)) / 20.0

# Offset applied to the second flow-field sample so its x/y inputs land in an
# unrelated region of the noise domain.
FLOW_FIELD_DECORRELATION_OFFSET = 100.0

# Gradient directions. The 2D kernel reuses the x/y components of _GRAD3.
_GRAD3 = np.array([
    [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
    [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
    [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1]
], dtype=np.float64)

_GRAD4 = np.array([
    [0, 1, 1, 1], [0, 1, 1, -1], [0, 1, -1, 1], [0, 1, -1, -1],
    [0, -1, 1, 1], [0, -1, 1, -1], [0, -1, -1, 1], [0, -1, -1, -1],
    [1, 0, 1, 1], [1, 0, 1, -1], [1, 0, -1, 1], [1, 0, -1, -1],
    [-1, 0, 1, 1], [-1, 0, 1, -1], [-1, 0, -1, 1], [-1, 0, -1, -1],
    [1, 1, 0, 1], [1, 1, 0, -1], [1, -1, 0, 1], [1, -1, 0, -1],
    [-1, 1, 0, 1], [-1, 1, 0, -1], [-1, -1, 0, 1], [-1, -1, 0, -1],
    [1, 1, 1, 0], [1, 1, -1, 0], [1, -1, 1, 0], [1, -1, -1, 0],
    [-1, 1, 1, 0], [-1, 1, -1, 0], [-1, -1, 1, 0], [-1, -1, -1, 0]
], dtype=np.float64)

# --- JIT-Compiled Noise Kernels ---
# Plain functions over scalars and a permutation array, as required by
# Numba's nopython mode. The NoiseField class below only owns the table.

@numba.jit(nopython=True)
def _clamp_unit(value):
    """Clamps a kernel result into [-1, 1]."""
    if value > 1.0:
        return 1.0
    if value < -1.0:
        return -1.0
    return value

@numba.jit(nopython=True)
def _simplex_2d(x, y, perm):
    """Single-octave 2D simplex noise."""
    s = (x + y) * _F2
    i = math.floor(x + s)
    j = math.floor(y + s)
    t = (i + j) * _G2
    x0 = x - (i - t)
    y0 = y - (j - t)

    # Lower or upper triangle of the skewed cell
    if x0 > y0:
        i1, j1 = 1, 0
    else:
        i1, j1 = 0, 1

    x1 = x0 - i1 + _G2
    y1 = y0 - j1 + _G2
    x2 = x0 - 1.0 + 2.0 * _G2
    y2 = y0 - 1.0 + 2.0 * _G2

    ii = int(i) & 255
    jj = int(j) & 255

    n0 = 0.0
    t0 = 0.5 - x0 * x0 - y0 * y0
    if t0 > 0.0:
        g = perm[ii + perm[jj]] % 12
        t0 *= t0
        n0 = t0 * t0 * (_GRAD3[g, 0] * x0 + _GRAD3[g, 1] * y0)

    n1 = 0.0
    t1 = 0.5 - x1 * x1 - y1 * y1
    if t1 > 0.0:
        g = perm[ii + i1 + perm[jj + j1]] % 12
        t1 *= t1
        n1 = t1 * t1 * (_GRAD3[g, 0] * x1 + _GRAD3[g, 1] * y1)

    n2 = 0.0
    t2 = 0.5 - x2 * x2 - y2 * y2
    if t2 > 0.0:
        g = perm[ii + 1 + perm[jj + 1]] % 12
        t2 *= t2
        n2 = t2 * t2 * (_GRAD3[g, 0] * x2 + _GRAD3[g, 1] * y2)

    return _clamp_unit(70.0 * (n0 + n1 + n2))

@numba.jit(nopython=True)
def _simplex_3d(x, y, z, perm):
    """Single-octave 3D simplex noise."""
    s = (x + y + z) * _F3
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    t = (i + j + k) * _G3
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)

    # Pick the tetrahedron of the skewed cube that contains the point
    if x0 >= y0:
        if y0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 1, 0
        elif x0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 0, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 1, 0, 1
    else:
        if y0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 0, 1, 1
        elif x0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 0, 1, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 1, 1, 0

    x1 = x0 - i1 + _G3
    y1 = y0 - j1 + _G3
    z1 = z0 - k1 + _G3
    x2 = x0 - i2 + 2.0 * _G3
    y2 = y0 - j2 + 2.0 * _G3
    z2 = z0 - k2 + 2.0 * _G3
    x3 = x0 - 1.0 + 3.0 * _G3
    y3 = y0 - 1.0 + 3.0 * _G3
    z3 = z0 - 1.0 + 3.0 * _G3

    ii = int(i) & 255
    jj = int(j) & 255
    kk = int(k) & 255

    n0 = 0.0
    t0 = 0.6 - x0 * x0 - y0 * y0 - z0 * z0
    if t0 > 0.0:
        g = perm[ii + perm[jj + perm[kk]]] % 12
        t0 *= t0
        n0 = t0 * t0 * (_GRAD3[g, 0] * x0 + _GRAD3[g, 1] * y0 + _GRAD3[g, 2] * z0)

    n1 = 0.0
    t1 = 0.6 - x1 * x1 - y1 * y1 - z1 * z1
    if t1 > 0.0:
        g = perm[ii + i1 + perm[jj + j1 + perm[kk + k1]]] % 12
        t1 *= t1
        n1 = t1 * t1 * (_GRAD3[g, 0] * x1 + _GRAD3[g, 1] * y1 + _GRAD3[g, 2] * z1)

    n2 = 0.0
    t2 = 0.6 - x2 * x2 - y2 * y2 - z2 * z2
    if t2 > 0.0:
        g = perm[ii + i2 + perm[jj + j2 + perm[kk + k2]]] % 12
        t2 *= t2
        n2 = t2 * t2 * (_GRAD3[g, 0] * x2 + _GRAD3[g, 1] * y2 + _GRAD3[g, 2] * z2)

    n3 = 0.0
    t3 = 0.6 - x3 * x3 - y3 * y3 - z3 * z3
    if t3 > 0.0:
        g = perm[ii + 1 + perm[jj + 1 + perm[kk + 1]]] % 12
        t3 *= t3
        n3 = t3 * t3 * (_GRAD3[g, 0] * x3 + _GRAD3[g, 1] * y3 + _GRAD3[g, 2] * z3)

    return _clamp_unit(32.0 * (n0 + n1 + n2 + n3))

@numba.jit(nopython=True)
def _corner_4d(t, x, y, z, w, g):
    """Contribution of one 4D simplex corner."""
    if t <= 0.0:
        return 0.0
    t *= t
    return t * t * (_GRAD4[g, 0] * x + _GRAD4[g, 1] * y + _GRAD4[g, 2] * z + _GRAD4[g, 3] * w)

@numba.jit(nopython=True)
def _simplex_4d(x, y, z, w, perm):
    """Single-octave 4D simplex noise."""
    s = (x + y + z + w) * _F4
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    l = math.floor(w + s)
    t = (i + j + k + l) * _G4
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)
    w0 = w - (l - t)

    # Rank each axis by magnitude to find the traversal order of the simplex
    rank_x = 0
    rank_y = 0
    rank_z = 0
    rank_w = 0
    if x0 > y0:
        rank_x += 1
    else:
        rank_y += 1
    if x0 > z0:
        rank_x += 1
    else:
        rank_z += 1
    if x0 > w0:
        rank_x += 1
    else:
        rank_w += 1
    if y0 > z0:
        rank_y += 1
    else:
        rank_z += 1
    if y0 > w0:
        rank_y += 1
    else:
        rank_w += 1
    if z0 > w0:
        rank_z += 1
    else:
        rank_w += 1

    i1 = 1 if rank_x >= 3 else 0
    j1 = 1 if rank_y >= 3 else 0
    k1 = 1 if rank_z >= 3 else 0
    l1 = 1 if rank_w >= 3 else 0
    i2 = 1 if rank_x >= 2 else 0
    j2 = 1 if rank_y >= 2 else 0
    k2 = 1 if rank_z >= 2 else 0
    l2 = 1 if rank_w >= 2 else 0
    i3 = 1 if rank_x >= 1 else 0
    j3 = 1 if rank_y >= 1 else 0
    k3 = 1 if rank_z >= 1 else 0
    l3 = 1 if rank_w >= 1 else 0

    x1 = x0 - i1 + _G4
    y1 = y0 - j1 + _G4
    z1 = z0 - k1 + _G4
    w1 = w0 - l1 + _G4
    x2 = x0 - i2 + 2.0 * _G4
    y2 = y0 - j2 + 2.0 * _G4
    z2 = z0 - k2 + 2.0 * _G4
    w2 = w0 - l2 + 2.0 * _G4
    x3 = x0 - i3 + 3.0 * _G4
    y3 = y0 - j3 + 3.0 * _G4
    z3 = z0 - k3 + 3.0 * _G4
    w3 = w0 - l3 + 3.0 * _G4
    x4 = x0 - 1.0 + 4.0 * _G4
    y4 = y0 - 1.0 + 4.0 * _G4
    z4 = z0 - 1.0 + 4.0 * _G4
    w4 = w0 - 1.0 + 4.0 * _G4

    ii = int(i) & 255
    jj = int(j) & 255
    kk = int(k) & 255
    ll = int(l) & 255

    g0 = perm[ii + perm[jj + perm[kk + perm[ll]]]] % 32
    g1 = perm[ii + i1 + perm[jj + j1 + perm[kk + k1 + perm[ll + l1]]]] % 32
    g2 = perm[ii + i2 + perm[jj + j2 + perm[kk + k2 + perm[ll + l2]]]] % 32
    g3 = perm[ii + i3 + perm[jj + j3 + perm[kk + k3 + perm[ll + l3]]]] % 32
    g4 = perm[ii + 1 + perm[jj + 1 + perm[kk + 1 + perm[ll + 1]]]] % 32

    n0 = _corner_4d(0.6 - x0 * x0 - y0 * y0 - z0 * z0 - w0 * w0, x0, y0, z0, w0, g0)
    n1 = _corner_4d(0.6 - x1 * x1 - y1 * y1 - z1 * z1 - w1 * w1, x1, y1, z1, w1, g1)
    n2 = _corner_4d(0.6 - x2 * x2 - y2 * y2 - z2 * z2 - w2 * w2, x2, y2, z2, w2, g2)
    n3 = _corner_4d(0.6 - x3 * x3 - y3 * y3 - z3 * z3 - w3 * w3, x3, y3, z3, w3, g3)
    n4 = _corner_4d(0.6 - x4 * x4 - y4 * y4 - z4 * z4 - w4 * w4, x4, y4, z4, w4, g4)

    return _clamp_unit(27.0 * (n0 + n1 + n2 + n3 + n4))

@numba.jit(nopython=True)
def _fractal_2d(x, y, octaves, lacunarity, persistence, scale, perm):
    """
    Fractal Brownian motion over _simplex_2d. The sum is divided by the total
    amplitude so the result stays in [-1, 1] for any octave count.
    """
    value = 0.0
    amplitude = 1.0
    frequency = scale
    max_value = 0.0
    for _ in range(octaves):
        value += amplitude * _simplex_2d(x * frequency, y * frequency, perm)
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return value / max_value

@numba.jit(nopython=True)
def _fractal_3d(x, y, z, octaves, lacunarity, persistence, scale, perm):
    """Fractal Brownian motion over _simplex_3d (see _fractal_2d)."""
    value = 0.0
    amplitude = 1.0
    frequency = scale
    max_value = 0.0
    for _ in range(octaves):
        value += amplitude * _simplex_3d(x * frequency, y * frequency, z * frequency, perm)
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return value / max_value

@numba.jit(nopython=True)
def _fractal_3d_batch(xs, ys, zs, octaves, lacunarity, persistence, scale, perm, out):
    """Evaluates _fractal_3d element-wise over three equally sized arrays."""
    for n in range(xs.shape[0]):
        out[n] = _fractal_3d(xs[n], ys[n], zs[n], octaves, lacunarity, persistence, scale, perm)

@numba.jit(nopython=True)
def _flow_field_batch(xs, ys, t, spatial_scale, octaves, lacunarity, persistence, perm, out_x, out_y):
    """
    Evaluates the flow field for every (xs[n], ys[n]) at the already
    time-scaled coordinate t.
    """
    for n in range(xs.shape[0]):
        sx = xs[n] * spatial_scale
        sy = ys[n] * spatial_scale
        out_x[n] = _fractal_3d(sx, sy, t, octaves, lacunarity, persistence, 1.0, perm)
        out_y[n] = _fractal_3d(
            sx + FLOW_FIELD_DECORRELATION_OFFSET,
            sy + FLOW_FIELD_DECORRELATION_OFFSET,
            t, octaves, lacunarity, persistence, 1.0, perm
        )


class NoiseField:
    """
    Seeded coherent-noise generator with fractal layering and a flow-field
    sampling mode.

    Data Contract:
    - Inputs: seed (int | None) - Seeds the permutation table. When None the
      table is randomly initialized.
    - Outputs: Every query returns a float (or float array) in [-1, 1].
    - Side Effects: None. Queries only read the permutation table.
    - Invariants: For a fixed seed and fixed inputs every query returns the
      same value, on this instance and on any other instance built with the
      same seed.
    """
    def __init__(self, seed=None):
        self.seed = seed
        rng = np.random.default_rng(seed)
        table = rng.permutation(256).astype(np.int64)
        # Doubled so corner hashes can index past 255 without wrapping.
        self._perm = np.concatenate([table, table])
        logger.debug(f"NoiseField created (seed={seed}).")

    def sample_2d(self, x: float, y: float) -> float:
        return _simplex_2d(float(x), float(y), self._perm)

    def sample_3d(self, x: float, y: float, z: float) -> float:
        """Single-octave 3D noise. Use z as time for an animated 2D field."""
        return _simplex_3d(float(x), float(y), float(z), self._perm)

    def sample_4d(self, x: float, y: float, z: float, w: float) -> float:
        return _simplex_4d(float(x), float(y), float(z), float(w), self._perm)

    def fractal_2d(self, x: float, y: float, octaves: int = 4, lacunarity: float = 2.0,
                   persistence: float = 0.5, scale: float = 1.0) -> float:
        """
        Sums `octaves` layers of sample_2d. Frequency starts at `scale` and is
        multiplied by `lacunarity` per layer; amplitude starts at 1 and is
        multiplied by `persistence`. Requires octaves >= 1.
        """
        return _fractal_2d(float(x), float(y), int(octaves), float(lacunarity),
                           float(persistence), float(scale), self._perm)

    def fractal_3d(self, x: float, y: float, z: float, octaves: int = 4, lacunarity: float = 2.0,
                   persistence: float = 0.5, scale: float = 1.0) -> float:
        """Same layering as fractal_2d, over sample_3d."""
        return _fractal_3d(float(x), float(y), float(z), int(octaves), float(lacunarity),
                           float(persistence), float(scale), self._perm)

    def fractal_3d_array(self, xs, ys, zs, octaves: int = 4, lacunarity: float = 2.0,
                         persistence: float = 0.5, scale: float = 1.0) -> np.ndarray:
        """
        Vectorized fractal_3d. Inputs are broadcast against each other and the
        result has the broadcast shape.
        """
        xs, ys, zs = np.broadcast_arrays(
            np.asarray(xs, dtype=np.float64),
            np.asarray(ys, dtype=np.float64),
            np.asarray(zs, dtype=np.float64),
        )
        shape = xs.shape
        out = np.empty(xs.size, dtype=np.float64)
        _fractal_3d_batch(
            np.ascontiguousarray(xs).ravel(), np.ascontiguousarray(ys).ravel(),
            np.ascontiguousarray(zs).ravel(), int(octaves), float(lacunarity),
            float(persistence), float(scale), self._perm, out
        )
        return out.reshape(shape)

    def flow_field(self, x: float, y: float, time: float, spatial_scale: float = 0.01,
                   time_scale: float = 0.1, octaves: int = 4) -> tuple:
        """
        Returns a (dx, dy) drift vector, each component in [-1, 1], that varies
        smoothly in space and time. Suitable for wind and drift forces.
        """
        t = float(time) * float(time_scale)
        sx = float(x) * float(spatial_scale)
        sy = float(y) * float(spatial_scale)
        dx = _fractal_3d(sx, sy, t, int(octaves), 2.0, 0.5, 1.0, self._perm)
        dy = _fractal_3d(
            sx + FLOW_FIELD_DECORRELATION_OFFSET, sy + FLOW_FIELD_DECORRELATION_OFFSET,
            t, int(octaves), 2.0, 0.5, 1.0, self._perm
        )
        return dx, dy

    def flow_field_array(self, xs: np.ndarray, ys: np.ndarray, time: float,
                         spatial_scale: float = 0.01, time_scale: float = 0.1,
                         octaves: int = 4) -> tuple:
        """
        Vectorized flow_field over 1D position arrays. Returns (dx, dy) arrays.
        Particle systems call this once per frame for all live particles.
        """
        xs = np.ascontiguousarray(xs, dtype=np.float64)
        ys = np.ascontiguousarray(ys, dtype=np.float64)
        out_x = np.empty(xs.shape[0], dtype=np.float64)
        out_y = np.empty(xs.shape[0], dtype=np.float64)
        _flow_field_batch(
            xs, ys, float(time) * float(time_scale), float(spatial_scale),
            int(octaves), 2.0, 0.5, self._perm, out_x, out_y
        )
        return out_x, out_y

    @staticmethod
    def map_range(value: float, low: float, high: float) -> float:
        """Maps a noise value from [-1, 1] onto [low, high]."""
        return low + (value + 1.0) * 0.5 * (high - low)
