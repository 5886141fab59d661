"""
Icon Tool - Replaces the default Capacitor launcher icon

Accepts either an http(s) URL or an inline data URL
(data:image/png;base64,...). The image is fetched or decoded once,
normalized to PNG and copied into every mipmap density bucket as both
ic_launcher.png and ic_launcher_round.png.

Icon application is best-effort: every failure is logged and the build
continues with whatever icons are in place.
"""
import asyncio
import base64
import binascii
import logging
import shutil
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional

import requests
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DENSITY_BUCKETS = ["mipmap-mdpi", "mipmap-hdpi", "mipmap-xhdpi", "mipmap-xxhdpi", "mipmap-xxxhdpi"]
ICON_FILE_NAMES = ["ic_launcher.png", "ic_launcher_round.png"]
ADAPTIVE_ICON_DIR = "mipmap-anydpi-v26"
TEMP_ICON_NAME = "temp_icon.png"

IconLog = Callable[[str, str], None]


class IconSourceError(Exception):
    """Raised when an icon source cannot be fetched or decoded"""
    pass


def is_remote_source(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def is_inline_source(source: str) -> bool:
    return source.startswith("data:image")


def download_icon(url: str, timeout: int = 30) -> bytes:
    """Fetch icon bytes over HTTP (blocking; run in a worker thread)"""
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
    except requests.RequestException as e:
        raise IconSourceError(f"Icon download failed: {e}") from e
    return response.content


def decode_inline_icon(source: str) -> bytes:
    """Decode a data:image/...;base64, URL"""
    _, sep, payload = source.partition(";base64,")
    if not sep or not payload:
        raise IconSourceError("Inline icon is not base64 encoded")
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise IconSourceError(f"Invalid base64 icon data: {e}") from e


def normalize_png(data: bytes) -> bytes:
    """
    Re-encode non-PNG images as PNG

    Android resource compilation rejects a JPEG/WebP saved with a .png name.
    Bytes Pillow cannot identify are returned unchanged.

    Raises:
        IconSourceError: If the image exceeds Pillow's pixel limit
    """
    try:
        with Image.open(BytesIO(data)) as img:
            if img.format == "PNG":
                return data
            out = BytesIO()
            img.convert("RGBA").save(out, format="PNG")
            return out.getvalue()
    except Image.DecompressionBombError as e:
        raise IconSourceError(f"Icon image is too large: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"[Icon] Could not identify icon image, using raw bytes: {e}")
        return data


async def install_icon(
    res_dir: Path,
    source: str,
    work_dir: Path,
    log: Optional[IconLog] = None,
    timeout: int = 30
) -> int:
    """
    Install a custom launcher icon into an Android res/ directory

    Args:
        res_dir: android/app/src/main/res
        source: http(s) URL or data:image URL
        work_dir: Where the temporary icon file is written
        log: Optional callback (message, log type)
        timeout: Download timeout in seconds

    Returns:
        Number of density buckets that received the icon
    """
    def emit(msg: str, level: str = "info"):
        logger.info(f"[Icon] {msg}")
        if log:
            log(msg, level)

    res_dir = Path(res_dir)
    adaptive_dir = res_dir / ADAPTIVE_ICON_DIR
    if adaptive_dir.exists():
        try:
            shutil.rmtree(adaptive_dir)
            emit("Removed adaptive icons to force custom icon.")
        except OSError as e:
            emit(f"Could not remove adaptive icons: {e}", "error")

    try:
        if is_remote_source(source):
            emit("Downloading custom icon from URL...", "command")
            data = await asyncio.to_thread(download_icon, source, timeout)
        elif is_inline_source(source):
            emit("Processing uploaded icon (Base64)...")
            data = decode_inline_icon(source)
        else:
            emit("Unsupported icon source; expected an http(s) or data:image URL. Skipping icon step.", "error")
            return 0
    except IconSourceError as e:
        emit(f"Failed to process custom icon: {e}", "error")
        return 0

    temp_icon = Path(work_dir) / TEMP_ICON_NAME
    try:
        temp_icon.write_bytes(normalize_png(data))
    except IconSourceError as e:
        emit(f"Failed to process custom icon: {e}", "error")
        return 0
    except (OSError, ValueError) as e:
        emit(f"Failed to prepare custom icon: {e}", "error")
        return 0

    installed = 0
    for bucket in DENSITY_BUCKETS:
        bucket_dir = res_dir / bucket
        try:
            bucket_dir.mkdir(parents=True, exist_ok=True)
            for name in ICON_FILE_NAMES:
                shutil.copyfile(temp_icon, bucket_dir / name)
            installed += 1
        except OSError as e:
            emit(f"Icon copy failed for {bucket}: {e}", "error")

    if installed:
        emit(f"Custom icon applied to {installed}/{len(DENSITY_BUCKETS)} density buckets.", "success")
    return installed


__all__ = [
    "install_icon",
    "download_icon",
    "decode_inline_icon",
    "normalize_png",
    "is_remote_source",
    "is_inline_source",
    "IconSourceError",
    "DENSITY_BUCKETS",
    "ICON_FILE_NAMES",
    "ADAPTIVE_ICON_DIR",
]
