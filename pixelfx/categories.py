"""
Pixel FX — Effect Categories
UI grouping of the effects this engine ships.
"""

from types import MappingProxyType

EFFECT_CATEGORIES = MappingProxyType({
    "Adjust": {
        "icon": "⚙️",
        "description": "Basic image adjustments",
        "effects": ("brightness", "contrast", "saturation", "hue", "invert", "clarity"),
    },
    "Studios": {
        "icon": "🎨",
        "description": "Effect studios with multiple style presets",
        "effects": (
            "unifiedBlur",        # Gaussian, Bokeh, Tilt-Shift, Motion, Radial
            "unifiedGlow",        # Bloom, Dreamy, Neon, Bioluminescence, Halation
            "unifiedSketch",      # Pencil, Crosshatch, Etched, Ink Wash, Bold Outline
            "unifiedPattern",     # Halftone, Dot Screen, Line Screen, Stipple, Dither
            "unifiedGlitch",      # RGB Shift, Chromatic, Scanlines, VHS, Glitch Art, Databend, Pixel Sort
            "unifiedVintage",     # Sepia, Old Photo, Faded, Cross Process, Scratched, Polaroid
            "unifiedWarp",        # Pixelate, Swirl, Kaleidoscope, Fisheye, Spherize, Wave, Geometric, Shatter
            "unifiedMono",        # Grayscale, B&W, Duotone, Split Tone, Gradient Map
            "advancedDithering",  # Floyd-Steinberg, Atkinson, Ordered, Sierra, Jarvis, Blue Noise
            "lightLeak",          # Warm Sunset, Cool Morning, Vintage Film, Neon Glow
        ),
    },
    "Generative": {
        "icon": "🌀",
        "description": "Procedural fractals, simulations and fields",
        "effects": (
            "fractalDisplacement",
            "psychedelicKaleidoscope",
            "fractalMirror",
            "mandelbrot",
            "juliaSet",
            "reactionDiffusion",
            "flowField",
            "vectorField",
        ),
    },
    "Utility": {
        "icon": "🔧",
        "description": "Utility effects and edge detection",
        "effects": ("threshold", "posterize", "edgeDetection", "sharpen", "smartSharpen", "vignette"),
    },
})

CATEGORY_ORDER = list(EFFECT_CATEGORIES.keys())


def get_effect_category(effect_id: str) -> str | None:
    for name, data in EFFECT_CATEGORIES.items():
        if effect_id in data["effects"]:
            return name
    return None


def get_all_effects() -> list[str]:
    """Every catalogued effect id, in category order."""
    effects = []
    for data in EFFECT_CATEGORIES.values():
        effects.extend(data["effects"])
    return effects


def get_effects_for_category(category: str) -> list[str]:
    data = EFFECT_CATEGORIES.get(category)
    return list(data["effects"]) if data else []
