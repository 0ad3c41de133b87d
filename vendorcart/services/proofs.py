# vendorcart/services/proofs.py
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional

from ..schemas.cart import ProofOfPayment
from ..settings import settings
from .errors import TransportError, ValidationError
from .firebase import ensure_bucket

logger = logging.getLogger(__name__)


def validate_proof(proof: ProofOfPayment, vendor_id: Optional[int] = None) -> None:
    if not proof.content:
        raise ValidationError(f"Payment screenshot {proof.filename!r} is empty", vendor_id=vendor_id, field="proof")
    if not proof.content_type.startswith("image/"):
        raise ValidationError("Payment screenshot must be an image", vendor_id=vendor_id, field="proof")
    if proof.size > settings.max_proof_bytes:
        raise ValidationError("Payment screenshot is too large", vendor_id=vendor_id, field="proof")


def _object_name(partner_id: int, vendor_id: Optional[int], filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{settings.proof_upload_prefix}/{partner_id}/{vendor_id or 'unknown'}/{uuid.uuid4().hex}.{ext}"


def _upload(name: str, proof: ProofOfPayment) -> str:
    blob = ensure_bucket().blob(name)
    blob.upload_from_string(proof.content, content_type=proof.content_type)
    return name


async def store_proof(partner_id: int, vendor_id: Optional[int], proof: ProofOfPayment) -> str:
    """Upload one vendor's proof image and return its storage path."""
    name = _object_name(partner_id, vendor_id, proof.filename)
    try:
        # firebase_admin's storage client is blocking
        path = await asyncio.to_thread(_upload, name, proof)
    except Exception as e:
        raise TransportError(f"Could not store payment screenshot: {e}", vendor_id=vendor_id) from e
    logger.info("stored payment proof for vendor %s at %s", vendor_id, path)
    return path


def _delete(name: str) -> None:
    ensure_bucket().blob(name).delete()


async def discard_proof(path: str) -> None:
    """Remove an uploaded proof whose order never made it to the database."""
    try:
        await asyncio.to_thread(_delete, path)
    except Exception:
        logger.warning("could not remove orphaned payment proof %s", path, exc_info=True)
        return
    logger.info("removed orphaned payment proof %s", path)
