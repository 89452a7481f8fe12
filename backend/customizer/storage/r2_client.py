"""
Cloudflare R2 storage client for the customizer.

Stores rendered cart previews. Captured previews arrive as ``data:`` URLs,
are decoded, converted to WebP and uploaded through the R2-compatible S3
API under ``cart_previews/<owner>/<uuid>.webp``.
"""

import base64
import binascii
import io
import uuid
from functools import lru_cache

import boto3
from botocore.config import Config
from PIL import Image

from customizer.config import (
    CF_ACCOUNT_ID,
    R2_ACCESS_KEY,
    R2_SECRET_KEY,
    R2_BUCKET,
    R2_PUBLIC_URL,
)
from customizer.errors import ValidationError


# ---------------------------------------------------------------------------
# Boto3 S3 client configured for Cloudflare R2
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_s3():
    return boto3.client(
        "s3",
        endpoint_url=f"https://{CF_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY,
        aws_secret_access_key=R2_SECRET_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


# ---------------------------------------------------------------------------
# Image helpers
# ---------------------------------------------------------------------------

def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """Split a base64 ``data:`` URL into ``(raw_bytes, mime_type)``."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise ValidationError("Expected a base64 data URL.")
    mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except binascii.Error as e:
        raise ValidationError(f"Malformed data URL payload: {e}") from e


def convert_to_webp(image_bytes: bytes, max_size: int = 1024) -> bytes:
    """Open *image_bytes* with Pillow, resize so the longest side is at most
    *max_size*, and return WebP-encoded bytes. Transparency is kept."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")

        w, h = img.size
        if max(w, h) > max_size:
            scale = max_size / max(w, h)
            img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

        buf = io.BytesIO()
        img.save(buf, format="WEBP", quality=85)
        return buf.getvalue()
    except Exception as e:
        print(f"[r2_client] convert_to_webp error: {e}")
        raise


# ---------------------------------------------------------------------------
# R2 operations
# ---------------------------------------------------------------------------

def upload_image(image_bytes: bytes, r2_key: str, content_type: str = "image/webp") -> str:
    """Upload *image_bytes* to R2 under *r2_key* and return the public URL."""
    try:
        get_s3().put_object(
            Bucket=R2_BUCKET,
            Key=r2_key,
            Body=image_bytes,
            ContentType=content_type,
        )
        return get_image_url(r2_key)
    except Exception as e:
        print(f"[r2_client] upload_image error for key '{r2_key}': {e}")
        raise


def get_image_url(r2_key: str) -> str:
    """Return the public URL for an R2 object."""
    return f"{R2_PUBLIC_URL}/{r2_key}"


def upload_preview(owner_id: str, data_url: str) -> str:
    """Store one captured preview and return its public URL."""
    raw_bytes, _ = decode_data_url(data_url)
    webp_bytes = convert_to_webp(raw_bytes)
    r2_key = f"cart_previews/{owner_id}/{uuid.uuid4().hex}.webp"
    return upload_image(webp_bytes, r2_key, content_type="image/webp")
