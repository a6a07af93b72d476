"""Storage and naming utilities for generated assets."""

from __future__ import annotations

import os
import uuid
from datetime import datetime


def timestamp_slug(dt: datetime | None = None) -> str:
    now = dt or datetime.now()
    return now.strftime("%Y-%m-%d-%H%M%S")


def build_asset_basename(kind: str, dt: datetime | None = None) -> str:
    slug = kind.strip().replace(" ", "-") if kind else "asset"
    return f"{timestamp_slug(dt)}--{slug}-{uuid.uuid4().hex[:8]}"


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def save_asset(output_dir: str, kind: str, extension: str, data: bytes) -> str:
    root = output_dir or os.getcwd()
    ensure_dir(root)
    path = os.path.join(root, f"{build_asset_basename(kind)}.{extension.lstrip('.')}")
    with open(path, "wb") as handle:
        handle.write(data)
    return os.path.abspath(path)
