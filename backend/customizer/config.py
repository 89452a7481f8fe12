"""
Central configuration module for the product customizer backend.

Loads environment variables and defines the constants shared by the
region editor, the variant/view resolver, the pixel projector, the price
aggregator and the cart snapshot serializer.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")

CF_ACCOUNT_ID = os.getenv("CF_ACCOUNT_ID", "")
R2_ACCESS_KEY = os.getenv("R2_ACCESS_KEY", "")
R2_SECRET_KEY = os.getenv("R2_SECRET_KEY", "")
R2_BUCKET = os.getenv("R2_BUCKET", "customizer-previews")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

DEFINITIONS_TABLE = os.getenv("DEFINITIONS_TABLE", "product_definitions")
CARTS_TABLE = os.getenv("CARTS_TABLE", "carts")

IMAGE_PROXY_TIMEOUT_SECONDS = float(os.getenv("IMAGE_PROXY_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Region geometry (all values are percentages of the owning image)
# ---------------------------------------------------------------------------
MIN_REGION_SIZE_PCT = 5.0
MAX_REGION_EXTENT_PCT = 100.0

MAX_REGIONS_PER_VIEW = 3
MAX_VIEWS_PER_COLLECTION = 4

# Geometry of a freshly added region; each existing region offsets the
# next one by NEW_REGION_STAGGER_PCT on both axes.
NEW_REGION_ORIGIN_PCT = 10.0
NEW_REGION_STAGGER_PCT = 5.0
NEW_REGION_WIDTH_PCT = 30.0
NEW_REGION_HEIGHT_PCT = 20.0

# ---------------------------------------------------------------------------
# Live stage projection
# ---------------------------------------------------------------------------
# Interactive hit-area is widened horizontally beyond the artwork bounds.
# Height is never expanded.
WIDTH_EXPANSION_FACTOR = 1.6

# Redraw cadence used by the asyncio frame scheduler for drag coalescing.
FRAME_INTERVAL_SECONDS = 1 / 60

# ---------------------------------------------------------------------------
# Decoration techniques
# ---------------------------------------------------------------------------
EMBROIDERY_TECHNIQUE = "Embroidery"

CUSTOMIZATION_TECHNIQUES: list[str] = [
    EMBROIDERY_TECHNIQUE,
    "DTF",
    "DTG",
    "Sublimation",
    "Screen Printing",
]

# ---------------------------------------------------------------------------
# Attributes & grouping
# ---------------------------------------------------------------------------
COLOR_ATTRIBUTE = "Color"
SIZE_ATTRIBUTE = "Size"

# Attribute names recognised as color when detecting the grouping attribute.
COLOR_ATTRIBUTE_ALIASES: set[str] = {"color", "colour"}

# Attribute names that never drive a view override.
SIZE_ATTRIBUTE_ALIASES: set[str] = {"size", "talla"}

# ---------------------------------------------------------------------------
# Placeholders & fallbacks
# ---------------------------------------------------------------------------
PLACEHOLDER_VIEW_IMAGE_URL = "https://placehold.co/600x600/eee/ccc.png?text=New+View"
FALLBACK_VIEW_IMAGE_URL = "https://placehold.co/700x700.png"

# Used when a product has no saved default views yet.
FALLBACK_DEFAULT_VIEW: dict = {
    "name": "Front View",
    "image_url": FALLBACK_VIEW_IMAGE_URL,
    "ai_hint": "product mockup",
    "price": 0.0,
    "regions": [
        {"id": "default_area", "name": "Default Area", "x": 25, "y": 25, "width": 50, "height": 50},
    ],
}

# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
CART_KEY_PREFIX = "cs_cart_"

# Element fields carrying inline binary image payloads; stripped from the
# persisted cart snapshot.
INLINE_PAYLOAD_FIELDS: tuple[str, ...] = ("data_url", "dataUrl")
