"""cornifer/constants.py — Fixed numbers shared across the room pipeline."""

# Level text layout (0-indexed line numbers)
HEADER_LINE = 1
TILES_LINE = 11
CANONICAL_LINES = (0, HEADER_LINE, TILES_LINE)

# Header defaults
DEFAULT_WATER_LEVEL = -1

# Cutout visibility search (tiles)
CUTOUT_SEARCH_DISTANCE = 20
CUTOUT_MAX_DISTANCE = 30

# Rasterizer gray levels
GRAY_SOLID = 0.0
GRAY_FLOOR = 0.35
GRAY_SLOPE = 0.4
GRAY_BEAM = 0.35
GRAY_WALL = 0.75
GRAY_OPEN = 1.0

# Rows faded to black at the bottom of a deathpit room
DEATHPIT_ROWS = 5

# Water flux midpoint: level = (1 - avg * 22/20) * height + 2
WATER_FLUX_SCALE = 22.0 / 20.0
WATER_FLUX_OFFSET = 2

# Placed-object handle length units per tile of filter radius
FILTER_RADIUS_DIVISOR = 20.0

# Effect names consumed by the rasterizer and loader
EFFECT_INVERTED_WATER = "InvertedWater"
EFFECT_WATER_FLUX_MIN = "WaterFluxMinLevel"
EFFECT_WATER_FLUX_MAX = "WaterFluxMaxLevel"
EFFECT_LETHAL_WATER = "LethalWater"

# Playable characters seeded into objects that a filter touches
PLAYABLE_SLUGCATS: tuple[str, ...] = (
    "White",
    "Yellow",
    "Red",
    "Gourmand",
    "Artificer",
    "Rivulet",
    "Spear",
    "Saint",
)

# Placed-object token coordinates are in room pixels
PIXELS_PER_TILE = 20.0
