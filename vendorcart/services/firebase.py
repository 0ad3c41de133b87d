# vendorcart/services/firebase.py
from __future__ import annotations

import os
from functools import lru_cache

import firebase_admin
from firebase_admin import credentials, storage

from ..settings import settings


def _ensure_app() -> None:
    if firebase_admin._apps:
        return
    options = {"projectId": settings.firebase_project_id}
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket
    sa_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    try:
        if sa_path and os.path.isfile(sa_path):
            firebase_admin.initialize_app(credentials.Certificate(sa_path), options)
        else:
            firebase_admin.initialize_app(options=options)
    except ValueError:
        # another request initialized the default app between the check and here
        pass


@lru_cache
def ensure_bucket():
    """
    Return the Storage bucket used for proof-of-payment images,
    initializing the Firebase app exactly once.

    - Uses GOOGLE_APPLICATION_CREDENTIALS if present, or ADC otherwise.
    - Requires FIREBASE_STORAGE_BUCKET.
    """
    if not settings.firebase_storage_bucket:
        raise RuntimeError("FIREBASE_STORAGE_BUCKET is not set")
    _ensure_app()
    return storage.bucket(settings.firebase_storage_bucket)
