from typing import Dict, Final, Tuple

# Card geometry: 2.5in x 3.5in
CARD_ASPECT_RATIO: Final[float] = 2.5 / 3.5
CARD_ASPECT_TOLERANCE: Final[Tuple[float, float]] = (0.65, 0.75)
MIN_CARD_AREA_FRACTION: Final[float] = 0.20

# Warp target size (w, h)
WARP_W: Final[int] = 900
WARP_H: Final[int] = 1260

# Preprocessing primitives
NORMALIZE_CONTRAST: Final[float] = 1.1
UNSHARP_RADIUS: Final[float] = 0.8
BRIGHTEN_AMOUNT: Final[float] = 0.2
DENOISE_NOISE_LEVEL: Final[float] = 0.02
DENOISE_SHARPNESS: Final[float] = 0.40
DARK_PIXEL_LEVEL: Final[int] = 128

# Section crops (normalized y1,y2,x1,x2)
ROI_TOP_SECTION = (0.0, 0.20, 0.0, 1.0)
ROI_HP_SECTION = (0.0, 0.20, 0.60, 1.0)

# OCR
OCR_TOP_CANDIDATES: Final[int] = 5
MIN_CANDIDATE_LENGTH: Final[int] = 2
OCR_ALT_PSMS: Final[Tuple[int, ...]] = (7, 13)
OCR_ALT_CONFIDENCE_DISCOUNT: Final[float] = 0.9
OCR_LINE_PADDING: Final[int] = 4

# Minimum text height as a fraction of image height, per strategy value
MIN_TEXT_HEIGHT: Final[Dict[str, float]] = {
    "focused": 0.01,
    "edges": 0.02,
    "top_section": 0.02,
    "hp_section": 0.03,
}
DEFAULT_MIN_TEXT_HEIGHT: Final[float] = 0.015

# Field extraction vocabularies
POKEMON_TYPES: Final[Tuple[str, ...]] = (
    "Normal", "Fire", "Water", "Grass", "Electric", "Ice", "Fighting", "Poison",
    "Ground", "Flying", "Psychic", "Bug", "Rock", "Ghost", "Dragon", "Dark",
    "Steel", "Fairy", "Colorless", "Lightning", "Metal",
)

# Card-text terms that never appear in a card name. Variant suffixes (V, GX, EX,
# VMAX, VSTAR) belong to names and must not be listed here.
CARD_TERMS: Final[Tuple[str, ...]] = (
    "HP", "Pokemon", "Trainer", "Energy", "Basic", "Stage", "Attack", "Weakness",
    "Resistance", "Retreat", "Evolves", "Item", "Supporter", "Stadium", "Tool",
    "Special",
)

TEMPLATE_KEYWORDS: Final[Tuple[str, ...]] = ("pokemon", "trainer", "energy")

NAME_SUFFIXES: Final[Tuple[str, ...]] = (" V", " GX", " EX", " VMAX", " VSTAR")

SET_ABBREVIATIONS: Final[Tuple[str, ...]] = (
    "SV", "SWSH", "SM", "XY", "BW", "DP", "PL", "RG", "EX", "NEO", "GYM", "TR",
    "BS", "POGO", "CRE", "VIV", "DAA", "RCL", "SSH", "CPA", "HIF", "UNB", "TEU",
    "LOT", "CES", "FLI", "UPR", "CIN", "SUM",
)

KNOWN_SET_NAMES: Final[Tuple[str, ...]] = (
    "Sword & Shield", "Brilliant Stars", "Astral Radiance", "Lost Origin",
    "Silver Tempest", "Crown Zenith", "Scarlet & Violet", "Paldea Evolved",
    "Obsidian Flames",
)

# Frequently scanned names; a name candidate containing one gets a bonus
KNOWN_POKEMON_NAMES: Final[Tuple[str, ...]] = (
    "Pikachu", "Charizard", "Bulbasaur", "Squirtle", "Eevee", "Mewtwo", "Gengar",
    "Lucario", "Gardevoir", "Rayquaza", "Snorlax", "Jigglypuff", "Gyarados", "Mew",
    "Dragonite", "Blastoise", "Venusaur", "Machamp", "Alakazam", "Tyranitar",
    "Umbreon", "Espeon", "Vaporeon", "Jolteon", "Flareon", "Glaceon", "Leafeon",
    "Sylveon", "Arcanine", "Lapras", "Zapdos", "Articuno", "Moltres", "Lugia",
    "Ho-Oh", "Celebi", "Suicune", "Entei", "Raikou", "Dialga", "Palkia", "Giratina",
)

# Field scores
NUMBER_SCORE: Final[int] = 3
HP_SCORE: Final[int] = 3
SET_SEEDED_SCORE: Final[int] = 3
SET_NAME_SCORE: Final[int] = 3
KNOWN_NAME_CONTAINS_BONUS: Final[int] = 5
KNOWN_NAME_EXACT_BONUS: Final[int] = 8
KNOWN_NAME_VARIANT_BONUS: Final[int] = 10

# Catalog
CATALOG_PAGE_SIZE: Final[int] = 10
CATALOG_WIDE_PAGE_SIZE: Final[int] = 20
RATE_LIMIT_INTERVAL_S: Final[float] = 0.2
BACKOFF_S = [0.2, 1.0, 3.0]
RETRYABLE_STATUS: Final[Tuple[int, ...]] = (429, 500, 502, 503, 504)

# Relevance scoring table
SCORE_EXACT_NAME: Final[int] = 10
SCORE_PARTIAL_NAME: Final[int] = 5
SCORE_EXACT_NUMBER: Final[int] = 8
SCORE_SET_MATCH: Final[int] = 6
SCORE_HP_MATCH: Final[int] = 4
SCORE_RECENT_SET: Final[int] = 3
SCORE_NAME_TOKENS_MAX: Final[int] = 10
RECENT_SET_WINDOW_DAYS: Final[int] = 730
TOKEN_MATCH_CUTOFF: Final[float] = 85.0
