from __future__ import annotations

import os
import uuid

from travelbook.core.config import settings

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def extension_for(content_type: str | None) -> str | None:
    return ALLOWED_CONTENT_TYPES.get((content_type or "").lower())


def store_payment_proof(*, booking_id: str, content: bytes, content_type: str) -> str:
    """Write the uploaded image and return its object key."""
    ext = extension_for(content_type)
    if not ext:
        raise ValueError(f"unsupported image type: {content_type}")
    base = settings.PAYMENT_PROOF_DIR or "./data/payment_proofs"
    os.makedirs(base, exist_ok=True)
    object_key = os.path.join(base, f"{booking_id}-{uuid.uuid4().hex[:8]}.{ext}")
    with open(object_key, "wb") as f:
        f.write(content)
    return object_key


def discard_payment_proof(object_key: str) -> None:
    """Remove a stored proof whose booking update did not go through."""
    try:
        os.remove(object_key)
    except FileNotFoundError:
        pass
