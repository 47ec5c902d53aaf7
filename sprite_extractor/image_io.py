"""
Reading, writing and finding image files.

Images are decoded with OpenCV and packed into ARGB arrays, so every format
OpenCV can read is supported.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import cv2
import numpy as np

from sprite_extractor.colours import pack_argb, unpack_argb
from sprite_extractor.config import IMAGE_FILENAME_PATTERN
from sprite_extractor.errors import DecodeFailure

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image (PNG, BMP, JPEG, ...) into an ARGB array.

    Raises:
        DecodeFailure: If OpenCV cannot decode the data.
    """
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED) if buf.size else None
    if img is None:
        raise DecodeFailure(f"Could not decode {len(data)} bytes of image data")
    try:
        return pack_argb(img)
    except ValueError as e:
        raise DecodeFailure(str(e)) from e


def encode_image(image: np.ndarray, ext: str = ".png") -> bytes:
    """
    Encode an ARGB array. PNG keeps every colour value exactly.

    Raises:
        ValueError: If OpenCV cannot encode to the requested format.
    """
    ok, buf = cv2.imencode(ext, unpack_argb(image))
    if not ok:
        raise ValueError(f"Could not encode image as {ext}")
    return buf.tobytes()


def load_image(path: str | Path) -> np.ndarray:
    """
    Read an image file into an ARGB array.

    Raises:
        DecodeFailure: If the file can't be read or decoded.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeFailure(f"Could not read {path}: {e}") from e
    try:
        return decode_image(data)
    except DecodeFailure as e:
        raise DecodeFailure(f"Could not load image from {path}") from e


def save_image(image: np.ndarray, path: str | Path, overwrite: bool = False) -> bool:
    """
    Save an ARGB array to a file, encoded according to its extension.

    An existing file is left untouched unless overwrite is set.

    Returns:
        True if the file was written
    """
    path = Path(path)
    if path.exists() and not overwrite:
        logger.debug("Not overwriting existing file %s", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_image(image, path.suffix or ".png"))
    return True


def find_screenshots(directory: str | Path,
                     pattern: re.Pattern[str] = IMAGE_FILENAME_PATTERN) -> list[Path]:
    """
    List the image files directly inside a directory, sorted by name.

    Raises:
        NotADirectoryError: If the path is not a directory.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file() and pattern.match(p.name))
