"""
Pixel FX — Effects Registry
Maps effect ids to generators and their parameter schemas, resolves legacy
aliases, and runs generators against caller pixel buffers.

Every effect is a function: (frame: np.ndarray, **params) -> np.ndarray
Effects that accept a `pool` keyword see the full (H, W, 4) RGBA frame and
may borrow scratch buffers; all others see an (H, W, 3) RGB copy and the
source alpha is reattached afterwards.
"""

import difflib
import functools
import inspect
import logging

import numpy as np

from engine.buffers import BufferPool, as_frame
from engine.params import Param, resolve_params, schema_defaults
from engine.safety import EngineError, UnknownEffectError, validate_buffer
from pixelfx.categories import (
    CATEGORY_ORDER,
    EFFECT_CATEGORIES,
    get_all_effects,
    get_effect_category,
    get_effects_for_category,
)
from pixelfx.escape import julia_set, mandelbrot
from pixelfx.flow_field import flow_field, vector_field
from pixelfx.fractal import fractal_displacement, fractal_mirror, psychedelic_kaleidoscope
from pixelfx.glitch import unified_glitch
from pixelfx.graphic import advanced_dithering, unified_pattern, unified_sketch
from pixelfx.legacy import (
    HIDDEN_LEGACY_EFFECTS,
    LEGACY_EFFECT_ALIASES,
    UnifiedAlias,
    get_unified_effect,
    is_legacy_effect,
    should_hide_from_ui,
)
from pixelfx.optics import unified_blur, unified_glow
from pixelfx.photo import clarity, light_leak, orton, smart_sharpen
from pixelfx.reaction_diffusion import reaction_diffusion
from pixelfx.tone import brightness, contrast, hue, invert, saturation, unified_mono, unified_vintage
from pixelfx.utility import edge_detection, posterize, sharpen, threshold, vignette
from pixelfx.warp import mosaic, unified_warp

logger = logging.getLogger(__name__)

MAX_QUERY_LEN = 200

_BLEND = Param("Blend Mode", 0, 5, 0, 1)

# Master registry: id -> fn, category, label, settings schema, description
EFFECTS = {
    # === ADJUST ===
    "brightness": {
        "fn": brightness,
        "category": "Adjust",
        "label": "Brightness",
        "settings": {"amount": Param("Amount", -1, 1, 0, 0.01)},
        "description": "Lighten or darken every channel",
    },
    "contrast": {
        "fn": contrast,
        "category": "Adjust",
        "label": "Contrast",
        "settings": {"amount": Param("Amount", -100, 100, 0, 1)},
        "description": "Linear contrast around mid-grey",
    },
    "saturation": {
        "fn": saturation,
        "category": "Adjust",
        "label": "Saturation",
        "settings": {"amount": Param("Amount", 0, 5, 1, 0.05)},
        "description": "Boost or remove colour saturation",
    },
    "hue": {
        "fn": hue,
        "category": "Adjust",
        "label": "Hue",
        "settings": {"degrees": Param("Rotation", 0, 360, 0, 1)},
        "description": "Rotate the hue wheel",
    },
    "invert": {
        "fn": invert,
        "category": "Adjust",
        "label": "Invert",
        "settings": {"amount": Param("Amount", 0, 1, 1, 0.01)},
        "description": "Full or partial colour inversion",
    },
    "clarity": {
        "fn": clarity,
        "category": "Adjust",
        "label": "Clarity",
        "settings": {
            "amount": Param("Amount", -100, 100, 50, 1),
            "radius": Param("Radius", 0.1, 5, 1, 0.1),
            "preserve_highlights": Param("Preserve Highlights", 0, 100, 50, 1),
            "preserve_shadows": Param("Preserve Shadows", 0, 100, 50, 1),
        },
        "description": "Local contrast and detail with highlight and shadow protection",
    },

    # === STUDIOS ===
    "unifiedBlur": {
        "fn": unified_blur,
        "category": "Studios",
        "label": "Blur Studio",
        "settings": {
            "preset": Param("Style", 0, 4, 0, 1),
            "radius": Param("Radius", 0, 50, 5, 1),
            "angle": Param("Angle", 0, 360, 0, 1),
            "focus": Param("Focus Position", 0, 1, 0.5, 0.01),
            "focus_width": Param("Focus Width", 0.05, 1, 0.2, 0.01),
        },
        "description": "Gaussian, bokeh, tilt-shift, motion and radial blur",
    },
    "unifiedGlow": {
        "fn": unified_glow,
        "category": "Studios",
        "label": "Glow Studio",
        "settings": {
            "preset": Param("Style", 0, 4, 0, 1),
            "radius": Param("Radius", 1, 50, 15, 1),
            "intensity": Param("Intensity", 0, 2, 0.6, 0.05),
            "threshold": Param("Threshold", 0, 255, 180, 1),
        },
        "description": "Bloom, dreamy, neon, bioluminescence and halation glows",
    },
    "unifiedSketch": {
        "fn": unified_sketch,
        "category": "Studios",
        "label": "Sketch Studio",
        "settings": {
            "preset": Param("Style", 0, 4, 0, 1),
            "intensity": Param("Intensity", 0, 1, 1, 0.01),
            "line_weight": Param("Line Weight", 1, 5, 1, 1),
            "detail": Param("Detail", 0, 1, 0.5, 0.01),
        },
        "description": "Pencil, crosshatch, etched, ink wash and bold outline drawing",
    },
    "unifiedPattern": {
        "fn": unified_pattern,
        "category": "Studios",
        "label": "Pattern Studio",
        "settings": {
            "preset": Param("Style", 0, 4, 0, 1),
            "size": Param("Cell Size", 2, 40, 8, 1),
            "angle": Param("Angle", 0, 180, 45, 1),
            "intensity": Param("Intensity", 0, 1, 1, 0.01),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "Halftone, dot screen, line screen, stipple and dither patterns",
    },
    "unifiedGlitch": {
        "fn": unified_glitch,
        "category": "Studios",
        "label": "Glitch Studio",
        "settings": {
            "preset": Param("Style", 0, 6, 0, 1),
            "amount": Param("Amount", 0, 100, 10, 1),
            "intensity": Param("Intensity", 0, 1, 0.5, 0.01),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "RGB shift, chromatic, scanlines, VHS, glitch art, databend and pixel sort",
    },
    "unifiedVintage": {
        "fn": unified_vintage,
        "category": "Studios",
        "label": "Vintage Studio",
        "settings": {
            "preset": Param("Style", 0, 5, 0, 1),
            "intensity": Param("Intensity", 0, 1, 1, 0.01),
            "grain": Param("Grain", 0, 1, 0.2, 0.01),
            "vignette": Param("Vignette", 0, 1, 0.4, 0.01),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "Sepia, old photo, faded, cross process, scratched film and polaroid looks",
    },
    "unifiedWarp": {
        "fn": unified_warp,
        "category": "Studios",
        "label": "Warp Studio",
        "settings": {
            "preset": Param("Style", 0, 7, 0, 1),
            "amount": Param("Amount", -1, 1, 0.5, 0.01),
            "size": Param("Size", 1, 64, 10, 1),
            "segments": Param("Segments", 2, 16, 6, 1),
            "center_x": Param("Center X", 0, 1, 0.5, 0.01),
            "center_y": Param("Center Y", 0, 1, 0.5, 0.01),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "Pixelate, swirl, kaleidoscope, fisheye, spherize, wave, geometric and shatter",
    },
    "unifiedMono": {
        "fn": unified_mono,
        "category": "Studios",
        "label": "Mono Studio",
        "settings": {
            "preset": Param("Style", 0, 4, 0, 1),
            "intensity": Param("Intensity", 0, 1, 1, 0.01),
            "threshold": Param("Threshold", 0, 255, 128, 1),
            "shadow_hue": Param("Shadow Hue", 0, 360, 220, 1),
            "highlight_hue": Param("Highlight Hue", 0, 360, 40, 1),
        },
        "description": "Grayscale, black & white, duotone, split tone and gradient map",
    },
    "advancedDithering": {
        "fn": advanced_dithering,
        "category": "Studios",
        "label": "Dithering Studio",
        "settings": {
            "preset": Param("Algorithm", 0, 5, 0, 1),
            "levels": Param("Levels", 2, 16, 2, 1),
            "palette": Param("Palette", 0, 3, 0, 1),
            "scale": Param("Pixel Scale", 1, 8, 1, 1),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "Error-diffusion, ordered and blue-noise dithering with retro palettes",
    },
    "lightLeak": {
        "fn": light_leak,
        "category": "Studios",
        "label": "Light Leak",
        "settings": {
            "preset": Param("Style", 0, 3, 0, 1),
            "strength": Param("Strength", 0, 2, 1, 0.05),
            "angle": Param("Angle", 0, 360, 0, 1),
        },
        "description": "Warm sunset, cool morning, vintage film and neon light leaks",
    },
    "orton": {
        "fn": orton,
        "category": "Studios",
        "label": "Orton Effect",
        "settings": {
            "intensity": Param("Intensity", 0, 1, 0.7, 0.01),
            "radius": Param("Radius", 0, 50, 15, 1),
            "contrast": Param("Contrast", 0, 2, 1.3, 0.05),
            "saturation": Param("Saturation", 0, 2, 1.2, 0.05),
            "exposure": Param("Exposure", 0, 2, 1.4, 0.05),
            "blend": Param("Blend", 0, 1, 0.6, 0.01),
        },
        "description": "Dreamy glow from a sharp layer screened with an overexposed blur",
    },
    "mosaic": {
        "fn": mosaic,
        "category": "Studios",
        "label": "Mosaic",
        "settings": {
            "size": Param("Tile Size", 2, 64, 12, 1),
            "grout": Param("Grout Width", 0, 8, 1, 1),
            "grout_shade": Param("Grout Shade", 0, 1, 0.35, 0.01),
        },
        "description": "Square tiles separated by dark grout lines",
    },

    # === GENERATIVE ===
    "fractalDisplacement": {
        "fn": fractal_displacement,
        "category": "Generative",
        "label": "Fractal Displacement",
        "settings": {
            "fractal_type": Param("Fractal", 0, 3, 0, 1),
            "scale": Param("Scale", 0.0001, 0.05, 0.002, 0.0001),
            "strength": Param("Strength", 0, 200, 50, 1),
            "iterations": Param("Iterations", 1, 100, 20, 1),
            "center_x": Param("Center X", -2, 2, 0, 0.01),
            "center_y": Param("Center Y", -2, 2, 0, 0.01),
            "color_mode": Param("Color Mode", 0, 2, 0, 1),
            "phoenix_p": Param("Phoenix P", -1, 1, 0.5626, 0.0001),
            "phoenix_q": Param("Phoenix Q", -1, 1, -0.5, 0.0001),
        },
        "description": "Displace pixels through Newton, Burning Ship, Tricorn or Phoenix fields",
    },
    "psychedelicKaleidoscope": {
        "fn": psychedelic_kaleidoscope,
        "category": "Generative",
        "label": "Psychedelic Kaleidoscope",
        "settings": {
            "segments": Param("Segments", 2, 16, 6, 1),
            "twist": Param("Twist", -5, 5, 1, 0.1),
            "zoom": Param("Zoom", 0.1, 5, 1.5, 0.1),
            "time": Param("Time", 0, 100, 0, 0.1),
            "color_shift": Param("Color Shift", 0, 2, 0.5, 0.01),
        },
        "description": "Kaleidoscope fold with fractal perturbation and hue rotation",
    },
    "fractalMirror": {
        "fn": fractal_mirror,
        "category": "Generative",
        "label": "Fractal Mirror",
        "settings": {
            "divisions": Param("Divisions", 1, 16, 4, 1),
            "offset": Param("Offset", 0, 1, 0.1, 0.01),
            "recursion": Param("Recursion", 1, 6, 3, 1),
            "blend": Param("Blend", 0, 1, 0.5, 0.01),
        },
        "description": "Recursive block mirroring",
    },
    "mandelbrot": {
        "fn": mandelbrot,
        "category": "Generative",
        "label": "Mandelbrot",
        "settings": {
            "center_x": Param("Center X", -2.5, 2.5, 0, 0.001),
            "center_y": Param("Center Y", -2.5, 2.5, 0, 0.001),
            "zoom": Param("Zoom", 0.1, 1000, 1, 0.1),
            "iterations": Param("Iterations", 10, 500, 100, 1),
            "color_scheme": Param("Color Scheme", 0, 3, 0, 1),
            "blend_mode": _BLEND,
            "opacity": Param("Opacity", 0, 1, 0.5, 0.01),
        },
        "description": "Mandelbrot set overlay",
    },
    "juliaSet": {
        "fn": julia_set,
        "category": "Generative",
        "label": "Julia Set",
        "settings": {
            "c_real": Param("C Real", -2, 2, -0.7, 0.001),
            "c_imag": Param("C Imaginary", -2, 2, 0.27, 0.001),
            "zoom": Param("Zoom", 0.1, 1000, 1, 0.1),
            "iterations": Param("Iterations", 10, 500, 100, 1),
            "color_scheme": Param("Color Scheme", 0, 3, 3, 1),
            "blend_mode": _BLEND,
            "opacity": Param("Opacity", 0, 1, 0.5, 0.01),
        },
        "description": "Julia set overlay",
    },
    "reactionDiffusion": {
        "fn": reaction_diffusion,
        "category": "Generative",
        "label": "Reaction Diffusion",
        "settings": {
            "preset": Param("Preset", 0, 8, 0, 1),
            "feed_rate": Param("Feed Rate", 0.01, 0.1, 0.055, 0.001),
            "kill_rate": Param("Kill Rate", 0.04, 0.08, 0.062, 0.001),
            "diffusion_a": Param("Diffusion A", 0.1, 1.0, 1.0, 0.01),
            "diffusion_b": Param("Diffusion B", 0.1, 1.0, 0.5, 0.01),
            "iterations": Param("Iterations", 1, 500, 100, 1),
            "pattern": Param("Initial Pattern", 0, 3, 0, 1),
            "color_scheme": Param("Color Scheme", 0, 3, 0, 1),
            "opacity": Param("Opacity", 0, 1, 0.8, 0.01),
            "blend_mode": Param("Blend Mode", 0, 5, 5, 1),
            "seed": Param("Seed", 0, 9999, 42, 1),
        },
        "description": "Gray-Scott reaction-diffusion patterns",
    },
    "flowField": {
        "fn": flow_field,
        "category": "Generative",
        "label": "Flow Field",
        "settings": {
            "scale": Param("Scale", 0.001, 0.1, 0.01, 0.001),
            "strength": Param("Strength", 0, 50, 10, 0.5),
            "particles": Param("Particles", 100, 10000, 1000, 100),
            "field_type": Param("Field Type", 0, 3, 0, 1),
            "blend": Param("Blend", 0, 1, 0.7, 0.01),
            "seed": Param("Seed", 1, 9999, 42, 1),
            "steps": Param("Steps", 1, 100, 20, 1),
        },
        "description": "Particles advected through a noise field leave glowing trails",
    },
    "vectorField": {
        "fn": vector_field,
        "category": "Generative",
        "label": "Vector Field",
        "settings": {
            "scale": Param("Scale", 0.001, 0.1, 0.02, 0.001),
            "spacing": Param("Spacing", 5, 100, 20, 1),
            "length": Param("Length", 1, 100, 15, 1),
            "thickness": Param("Thickness", 1, 6, 2, 1),
            "color_mode": Param("Color Mode", 0, 2, 0, 1),
        },
        "description": "Arrow plot of a noise vector field over the darkened image",
    },

    # === UTILITY ===
    "threshold": {
        "fn": threshold,
        "category": "Utility",
        "label": "Threshold",
        "settings": {"level": Param("Level", 0, 255, 128, 1)},
        "description": "Black and white split on luminance",
    },
    "posterize": {
        "fn": posterize,
        "category": "Utility",
        "label": "Posterize",
        "settings": {"levels": Param("Levels", 2, 32, 4, 1)},
        "description": "Reduce colour levels per channel",
    },
    "edgeDetection": {
        "fn": edge_detection,
        "category": "Utility",
        "label": "Edge Detection",
        "settings": {
            "threshold": Param("Threshold", 0.01, 1, 0.3, 0.01),
            "mode": Param("Mode", 0, 2, 0, 1),
        },
        "description": "Sobel edges: white on black, overlay or neon",
    },
    "sharpen": {
        "fn": sharpen,
        "category": "Utility",
        "label": "Sharpen",
        "settings": {"amount": Param("Amount", 0, 3, 1, 0.05)},
        "description": "3x3 sharpen kernel",
    },
    "smartSharpen": {
        "fn": smart_sharpen,
        "category": "Utility",
        "label": "Smart Sharpen",
        "settings": {
            "preset": Param("Style", 0, 5, 1, 1),
            "strength": Param("Strength", 0, 3, 1, 0.05),
        },
        "description": "Edge-aware sharpening with noise reduction",
    },
    "vignette": {
        "fn": vignette,
        "category": "Utility",
        "label": "Vignette",
        "settings": {
            "strength": Param("Strength", 0, 1, 0.5, 0.01),
            "radius": Param("Radius", 0, 1, 0.75, 0.01),
            "softness": Param("Softness", 0.01, 1, 0.5, 0.01),
        },
        "description": "Darken toward the corners",
    },
}

CATEGORIES = {name: data["description"] for name, data in EFFECT_CATEGORIES.items()}


def _describe(name: str, entry: dict) -> dict:
    return {
        "name": name,
        "label": entry["label"],
        "description": entry["description"],
        "settings": entry["settings"],
        "params": schema_defaults(entry["settings"]),
        "category": entry["category"],
    }


def resolve_effect(effect_id: str) -> tuple[str, int | None]:
    """Implementation id and forced preset for an effect id.

    Legacy aliases are checked first, then the registry.

    Raises:
        UnknownEffectError: If the id is neither.
    """
    alias = get_unified_effect(effect_id)
    if alias is not None:
        logger.debug("Resolved legacy effect %s -> %s preset %d", effect_id, alias.unified, alias.preset)
        return alias.unified, alias.preset
    if effect_id in EFFECTS:
        return effect_id, None
    known = list(EFFECTS) + list(LEGACY_EFFECT_ALIASES)
    raise UnknownEffectError(effect_id, difflib.get_close_matches(str(effect_id), known, n=3))


def get_effect(name: str):
    """Get an effect by id (aliases included). Returns (fn, default_params)."""
    impl_id, preset = resolve_effect(name)
    entry = EFFECTS[impl_id]
    defaults = schema_defaults(entry["settings"])
    if preset is not None:
        defaults["preset"] = preset
    return entry["fn"], defaults


def list_effects(category: str = None) -> list[dict]:
    """List all registered effects.

    Args:
        category: Optional filter — only return effects in this category.
    """
    return [_describe(name, entry) for name, entry in EFFECTS.items()
            if not category or entry["category"] == category]


def list_categories() -> list[str]:
    """Return ordered list of category names."""
    return list(CATEGORY_ORDER)


def search_effects(query: str, max_query_len: int = MAX_QUERY_LEN) -> list[dict]:
    """Search effects by id, label or description substring."""
    if len(query) > max_query_len:
        raise ValueError(f"Search query too long (max {max_query_len} chars)")
    q = query.lower()
    return [
        _describe(name, entry) for name, entry in EFFECTS.items()
        if q in name.lower() or q in entry["label"].lower() or q in entry["description"].lower()
    ]


def apply_effect(effect_id: str, parameters: dict | None = None):
    """Resolve an effect id and its parameters.

    Legacy aliases map to their studio and the alias preset overrides any
    caller-supplied `preset`. Values are clamped to the schema, missing
    ones filled from defaults, unknown keys dropped.

    Returns:
        (generator_fn, resolved_params)

    Raises:
        UnknownEffectError: If the id is not an alias or registered effect.
    """
    impl_id, preset = resolve_effect(effect_id)
    entry = EFFECTS[impl_id]
    values = dict(parameters or {})
    if preset is not None:
        values["preset"] = preset
    return entry["fn"], resolve_params(entry["settings"], values)


@functools.lru_cache(maxsize=None)
def _takes_pool(fn) -> bool:
    return "pool" in inspect.signature(fn).parameters


def transform(source, width: int, height: int, generator_fn, resolved_params: dict,
              pool: BufferPool | None = None) -> np.ndarray:
    """Run a generator against a caller buffer.

    The source is never written. The result is a flat uint8 buffer of
    width * height * 4 acquired from `pool` and owned by the caller, who
    may hand it back with pool.release().

    Raises:
        PixelBufferError: If the buffer length does not match the dimensions.
    """
    flat = validate_buffer(source, width, height)
    w, h = int(width), int(height)
    pool = pool if pool is not None else BufferPool()

    out = pool.acquire_copy(flat)
    frame = as_frame(out, w, h)
    try:
        if _takes_pool(generator_fn):
            wet = generator_fn(frame, pool=pool, **resolved_params)
            if wet is not frame:
                frame[...] = wet
        else:
            # RGBA gate: RGB effects never see alpha; the source alpha stays in place
            wet = generator_fn(np.ascontiguousarray(frame[..., :3]), **resolved_params)
            if wet.shape[:2] != (h, w):
                raise EngineError(
                    f"{getattr(generator_fn, '__name__', generator_fn)} returned "
                    f"{wet.shape[1]}x{wet.shape[0]}, expected {w}x{h}"
                )
            frame[..., :3] = wet[..., :3]
    except Exception:
        pool.release(out)
        raise
    return out


def render(effect_id: str, parameters: dict | None, source, width: int, height: int,
           pool: BufferPool | None = None) -> np.ndarray:
    """apply_effect + transform in one call."""
    fn, params = apply_effect(effect_id, parameters)
    return transform(source, width, height, fn, params, pool=pool)


__all__ = [
    "EFFECTS", "CATEGORIES", "CATEGORY_ORDER", "EFFECT_CATEGORIES",
    "HIDDEN_LEGACY_EFFECTS", "LEGACY_EFFECT_ALIASES", "UnifiedAlias",
    "apply_effect", "get_all_effects", "get_effect", "get_effect_category",
    "get_effects_for_category", "get_unified_effect", "is_legacy_effect",
    "list_categories", "list_effects", "render", "resolve_effect", "search_effects",
    "should_hide_from_ui", "transform",
]
