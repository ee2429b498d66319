"""Helpers for building public media URLs."""

from __future__ import annotations

from urllib.parse import quote, urljoin

PUBLIC_MEDIA_PREFIX = "public/studio-media"


def build_public_media_url(base_url: str, key: str) -> str:
    base = base_url.rstrip("/") + "/"
    return urljoin(base, f"{PUBLIC_MEDIA_PREFIX}/{quote(key)}")
