"""
Supabase client for the customizer: product definitions and carts.

Definitions live in one row per (owner_id, product_id); writes are merge
upserts of the fields given. Carts are a single JSON array per cart key,
always read and rewritten whole.
"""

import logging
from functools import lru_cache

from supabase import Client, create_client

from customizer.config import CARTS_TABLE, DEFINITIONS_TABLE, SUPABASE_SERVICE_KEY, SUPABASE_URL
from customizer.errors import PersistenceError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Client:
    """Create the Supabase client on first use."""
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)


# ---------------------------------------------------------------------------
# Product definitions
# ---------------------------------------------------------------------------

def get_definition(owner_id: str, product_id: str) -> dict | None:
    """Fetch the stored definition document. Returns the row dict or None."""
    try:
        result = (
            get_client()
            .table(DEFINITIONS_TABLE)
            .select("*")
            .eq("owner_id", owner_id)
            .eq("product_id", product_id)
            .execute()
        )
    except Exception as e:
        logger.error("[supabase_client] get_definition error for %s/%s: %s", owner_id, product_id, e)
        raise PersistenceError(str(e)) from e

    if result.data:
        return result.data[0]
    return None


def save_definition(owner_id: str, product_id: str, fields: dict) -> None:
    """Merge *fields* into the definition row, creating it when missing."""
    row = {
        "owner_id": owner_id,
        "product_id": product_id,
        "updated_at": "now()",
    }
    for key, value in fields.items():
        if key not in ("owner_id", "product_id"):
            row[key] = value

    try:
        get_client().table(DEFINITIONS_TABLE).upsert(row, on_conflict="owner_id,product_id").execute()
    except Exception as e:
        logger.error("[supabase_client] save_definition error for %s/%s: %s", owner_id, product_id, e)
        raise PersistenceError(str(e)) from e

    logger.info("[supabase_client] Saved definition %s/%s (%d fields)", owner_id, product_id, len(fields))


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------

def load_cart(cart_key: str) -> list[dict]:
    """Return the stored cart items, or an empty list."""
    try:
        result = (
            get_client()
            .table(CARTS_TABLE)
            .select("items")
            .eq("key", cart_key)
            .execute()
        )
    except Exception as e:
        logger.error("[supabase_client] load_cart error for '%s': %s", cart_key, e)
        raise PersistenceError(str(e)) from e

    if result.data:
        return result.data[0].get("items") or []
    return []


def save_cart(cart_key: str, items: list[dict]) -> None:
    """Replace the whole cart array for *cart_key*."""
    try:
        get_client().table(CARTS_TABLE).upsert({
            "key": cart_key,
            "items": items,
            "updated_at": "now()",
        }).execute()
    except Exception as e:
        logger.error("[supabase_client] save_cart error for '%s': %s", cart_key, e)
        raise PersistenceError(str(e)) from e
