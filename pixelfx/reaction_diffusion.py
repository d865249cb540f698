"""
Pixel FX — Reaction-Diffusion
Gray-Scott simulation seeded from a pattern, colour-mapped and composited
over the source frame.
"""

import logging

import numpy as np

from engine.blend import composite, resolve_blend_mode
from engine.buffers import convolve_3x3
from engine.safety import MAX_RD_ITERATIONS, clamp_count

logger = logging.getLogger(__name__)

# Corners 0.05, edges 0.2, centre -1
LAPLACIAN_KERNEL = (
    (0.05, 0.2, 0.05),
    (0.2, -1.0, 0.2),
    (0.05, 0.2, 0.05),
)

PATTERNS = ("random", "center", "stripes", "spots")

RD_PRESETS = {
    "coral": {"feed_rate": 0.0545, "kill_rate": 0.062},
    "mitosis": {"feed_rate": 0.0367, "kill_rate": 0.0649},
    "spots": {"feed_rate": 0.0175, "kill_rate": 0.051},
    "stripes": {"feed_rate": 0.055, "kill_rate": 0.062},
    "bubbles": {"feed_rate": 0.012, "kill_rate": 0.05},
    "worms": {"feed_rate": 0.054, "kill_rate": 0.063},
    "maze": {"feed_rate": 0.029, "kill_rate": 0.057},
    "holes": {"feed_rate": 0.039, "kill_rate": 0.058},
}
# preset=0 means custom feed/kill; 1..8 index into this order
RD_PRESET_ORDER = list(RD_PRESETS.keys())

COLOR_SCHEMES = ("organic", "fire", "zebra", "psychedelic")

SPOT_SPACING = 30
SPOT_RADIUS = 5


def resolve_pattern(pattern) -> str:
    if isinstance(pattern, str):
        return pattern if pattern in PATTERNS else "random"
    idx = int(pattern)
    return PATTERNS[idx] if 0 <= idx < len(PATTERNS) else "random"


def _disc(radius: int) -> np.ndarray:
    d = np.arange(-radius, radius + 1)
    return d[np.newaxis, :] ** 2 + d[:, np.newaxis] ** 2 <= radius * radius


def seed_pattern(width: int, height: int, pattern="random", rng=None) -> np.ndarray:
    """Initial concentration of chemical B (1.0 where seeded, else 0.0)."""
    rng = rng if rng is not None else np.random.default_rng()
    pattern = resolve_pattern(pattern)
    b = np.zeros((height, width), dtype=np.float32)

    if pattern == "center":
        ys, xs = np.mgrid[0:height, 0:width]
        radius = min(width, height) / 10
        dx = xs - width // 2
        dy = ys - height // 2
        b[dx * dx + dy * dy < radius * radius] = 1.0
    elif pattern == "stripes":
        b[:, np.arange(width) % 20 < 10] = 1.0
    elif pattern == "spots":
        r = SPOT_RADIUS
        disc = _disc(r)
        for y in range(0, height, SPOT_SPACING):
            for x in range(0, width, SPOT_SPACING):
                cx = int(np.floor(x + rng.random() * SPOT_SPACING))
                cy = int(np.floor(y + rng.random() * SPOT_SPACING))
                # paint only the clipped (2r+1)^2 window around the spot
                x0, x1 = max(cx - r, 0), min(cx + r + 1, width)
                y0, y1 = max(cy - r, 0), min(cy + r + 1, height)
                if x0 >= x1 or y0 >= y1:
                    continue
                window = disc[y0 - cy + r:y1 - cy + r, x0 - cx + r:x1 - cx + r]
                b[y0:y1, x0:x1][window] = 1.0
    else:
        size = width * height
        count = int(np.ceil(size * 0.1))
        b.reshape(-1)[rng.integers(0, size, count)] = 1.0
    return b


def simulate(width: int, height: int, feed_rate=0.055, kill_rate=0.062, diffusion_a=1.0,
             diffusion_b=0.5, iterations=100, initial_pattern="random", seed=None):
    """Run the Gray-Scott model and return the (a, b) concentration grids.

    Both grids are (H, W) float32 in [0, 1] after every step. Border cells
    use clamp-to-edge neighbours. New values land in a second pair of
    arrays which are swapped in each step.
    """
    iterations = clamp_count(iterations, MAX_RD_ITERATIONS, "iterations")
    rng = np.random.default_rng(seed)

    a = np.ones((height, width), dtype=np.float32)
    b = seed_pattern(width, height, initial_pattern, rng)
    next_a = np.empty_like(a)
    next_b = np.empty_like(b)
    decay = kill_rate + feed_rate

    for _ in range(iterations):
        lap_a = convolve_3x3(a, LAPLACIAN_KERNEL)
        lap_b = convolve_3x3(b, LAPLACIAN_KERNEL)
        reaction = a * b * b
        np.clip(a + (diffusion_a * lap_a - reaction + feed_rate * (1 - a)), 0, 1, out=next_a)
        np.clip(b + (diffusion_b * lap_b + reaction - decay * b), 0, 1, out=next_b)
        a, next_a = next_a, a
        b, next_b = next_b, b

    return a, b


def colorize(a: np.ndarray, b: np.ndarray, scheme=0) -> np.ndarray:
    """Map concentrations to an (H, W, 3) uint8 image."""
    a = a.astype(np.float64)
    b = b.astype(np.float64)
    scheme = COLOR_SCHEMES.index(scheme) if isinstance(scheme, str) else int(scheme)

    if scheme == 1:
        rgb = np.stack([(1 - a) * 255, b * 200, a * 50], axis=-1)
    elif scheme == 2:
        zebra = np.where(b > 0.3, 255.0, 0.0)
        rgb = np.stack([zebra, zebra, zebra], axis=-1)
    elif scheme == 3:
        rgb = np.stack([
            np.sin(b * np.pi * 8) * 127 + 128,
            np.sin(a * np.pi * 6 + np.pi / 3) * 127 + 128,
            np.sin((a + b) * np.pi * 4 + np.pi * 2 / 3) * 127 + 128,
        ], axis=-1)
    else:
        rgb = np.stack([a * 50, (1 - b) * 200 + 55, b * 255], axis=-1)
    return np.clip(np.floor(rgb), 0, 255).astype(np.uint8)


def reaction_diffusion(frame, pool=None, preset=0, feed_rate=0.055, kill_rate=0.062,
                       diffusion_a=1.0, diffusion_b=0.5, iterations=100, pattern=0,
                       color_scheme=0, opacity=0.8, blend_mode=5, seed=42):
    """Gray-Scott pattern overlay. A non-zero preset replaces feed/kill rates."""
    h, w = frame.shape[:2]
    preset = int(preset)
    if 1 <= preset <= len(RD_PRESET_ORDER):
        name = RD_PRESET_ORDER[preset - 1]
        logger.debug("reaction_diffusion: using preset %s", name)
        feed_rate = RD_PRESETS[name]["feed_rate"]
        kill_rate = RD_PRESETS[name]["kill_rate"]

    a, b = simulate(w, h, feed_rate, kill_rate, diffusion_a, diffusion_b,
                    int(iterations), pattern, int(seed))
    layer = colorize(a, b, color_scheme)
    frame[...] = composite(frame, layer, resolve_blend_mode(blend_mode), opacity)
    return frame
