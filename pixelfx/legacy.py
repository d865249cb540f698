"""
Pixel FX — Legacy Effect Aliases
Old single-purpose effect ids that now live as presets inside a unified
studio. They stay callable for saved documents but are hidden from the UI.

Both tables are built once at import and are read-only.
"""

from types import MappingProxyType
from typing import NamedTuple


class UnifiedAlias(NamedTuple):
    unified: str
    preset: int


HIDDEN_LEGACY_EFFECTS = frozenset({
    # unifiedBlur
    "blur", "bokeh", "depthBlur", "tiltShiftMiniature",
    # unifiedGlow
    "bloom", "bioluminescence", "neonGlowEdges", "orton",
    # unifiedSketch
    "pencilSketch", "crosshatch",
    # unifiedPattern
    "halftone", "dotScreen", "stippling", "halftonePattern",
    # unifiedGlitch
    "rgbShift", "chromaticAberration", "scanLines", "glitchArt", "databending",
    "pixelSort", "chromaticGlitch",
    # unifiedVintage
    "sepia", "oldPhoto", "scratchedFilm",
    # unifiedWarp
    "pixelate", "swirl", "kaleidoscope", "kaleidoscopeFracture", "fisheyeWarp",
    "dispersionShatter", "mosaic",
    # unifiedMono
    "grayscale", "blackAndWhite", "duotone",
    # advancedDithering
    "atkinsonDithering", "orderedDithering", "blueNoiseDithering", "retroDithering",
    "retroPalette",
})

LEGACY_EFFECT_ALIASES = MappingProxyType({
    "blur": UnifiedAlias("unifiedBlur", 0),
    "bokeh": UnifiedAlias("unifiedBlur", 1),
    "depthBlur": UnifiedAlias("unifiedBlur", 2),
    "tiltShiftMiniature": UnifiedAlias("unifiedBlur", 2),

    "bloom": UnifiedAlias("unifiedGlow", 0),
    "neonGlowEdges": UnifiedAlias("unifiedGlow", 2),
    "halationGlow": UnifiedAlias("unifiedGlow", 4),
    "bioluminescence": UnifiedAlias("unifiedGlow", 3),

    "pencilSketch": UnifiedAlias("unifiedSketch", 0),
    "crosshatch": UnifiedAlias("unifiedSketch", 1),
    "etchedLines": UnifiedAlias("unifiedSketch", 2),
    "inkWash": UnifiedAlias("unifiedSketch", 3),
    "inkOutlinePop": UnifiedAlias("unifiedSketch", 4),

    "halftone": UnifiedAlias("unifiedPattern", 0),
    "dotScreen": UnifiedAlias("unifiedPattern", 1),
    "stippling": UnifiedAlias("unifiedPattern", 3),

    "rgbShift": UnifiedAlias("unifiedGlitch", 0),
    "chromaticAberration": UnifiedAlias("unifiedGlitch", 1),
    "scanLines": UnifiedAlias("unifiedGlitch", 2),
    "glitchArt": UnifiedAlias("unifiedGlitch", 4),
    "chromaticGlitch": UnifiedAlias("unifiedGlitch", 4),
    "databending": UnifiedAlias("unifiedGlitch", 5),
    "pixelSort": UnifiedAlias("unifiedGlitch", 6),

    "sepia": UnifiedAlias("unifiedVintage", 0),
    "oldPhoto": UnifiedAlias("unifiedVintage", 1),
    "scratchedFilm": UnifiedAlias("unifiedVintage", 4),
    "retroRaster": UnifiedAlias("unifiedVintage", 2),

    "pixelate": UnifiedAlias("unifiedWarp", 0),
    "swirl": UnifiedAlias("unifiedWarp", 1),
    "kaleidoscope": UnifiedAlias("unifiedWarp", 2),
    "kaleidoscopeFracture": UnifiedAlias("unifiedWarp", 2),
    "fisheyeWarp": UnifiedAlias("unifiedWarp", 3),
    "pixelExplosion": UnifiedAlias("unifiedWarp", 7),
    "dispersionShatter": UnifiedAlias("unifiedWarp", 7),
    "geometric": UnifiedAlias("unifiedWarp", 6),

    "grayscale": UnifiedAlias("unifiedMono", 0),
    "blackAndWhite": UnifiedAlias("unifiedMono", 1),
    "duotone": UnifiedAlias("unifiedMono", 2),
    "gradientMap": UnifiedAlias("unifiedMono", 4),

    "retroDithering": UnifiedAlias("advancedDithering", 0),
    "atkinsonDithering": UnifiedAlias("advancedDithering", 1),
    "orderedDithering": UnifiedAlias("advancedDithering", 2),
    "blueNoiseDithering": UnifiedAlias("advancedDithering", 5),
    "halftonePattern": UnifiedAlias("advancedDithering", 2),
    "retroPalette": UnifiedAlias("advancedDithering", 1),
    "colorQuantization": UnifiedAlias("advancedDithering", 0),
})


def is_legacy_effect(effect_id: str) -> bool:
    return effect_id in HIDDEN_LEGACY_EFFECTS


def should_hide_from_ui(effect_id: str) -> bool:
    return effect_id in HIDDEN_LEGACY_EFFECTS


def get_unified_effect(effect_id: str) -> UnifiedAlias | None:
    """Unified studio + preset for a legacy id, or None if it is not an alias."""
    return LEGACY_EFFECT_ALIASES.get(effect_id)
