"""
Conversion between OpenCV channel arrays and packed 32-bit ARGB images.

The extraction core works on 2-D uint32 arrays where every element is a single
ARGB colour value. Colours are only ever compared for equality, so packing the
channels into one integer lets numpy compare whole pixels at once.
"""

import cv2
import numpy as np

from sprite_extractor.errors import ConfigurationError


def pack_argb(img: np.ndarray) -> np.ndarray:
    """
    Pack an OpenCV image into a 2-D array of ARGB colours.

    Args:
        img: Image as returned by OpenCV: greyscale (h, w), BGR (h, w, 3) or
             BGRA (h, w, 4), uint8 or uint16

    Returns:
        uint32 array of shape (h, w)
    """
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise ValueError(f"image must be uint8 or uint16, got {img.dtype}")

    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGRA)
    elif img.ndim == 3 and img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    elif img.ndim != 3 or img.shape[2] != 4:
        raise ValueError(f"image must have 1, 3 or 4 channels, got shape {img.shape}")

    channels = img.astype(np.uint32)
    b, g, r, a = channels[:, :, 0], channels[:, :, 1], channels[:, :, 2], channels[:, :, 3]
    return (a << 24) | (r << 16) | (g << 8) | b


def unpack_argb(image: np.ndarray) -> np.ndarray:
    """
    Split a packed ARGB image back into a BGRA uint8 array for OpenCV.
    """
    image = image.astype(np.uint32, copy=False)
    bgra = np.empty(image.shape + (4,), dtype=np.uint8)
    bgra[:, :, 0] = image & 0xFF
    bgra[:, :, 1] = (image >> 8) & 0xFF
    bgra[:, :, 2] = (image >> 16) & 0xFF
    bgra[:, :, 3] = (image >> 24) & 0xFF
    return bgra


def argb(r: int, g: int, b: int, a: int = 255) -> int:
    """Build a single ARGB colour value from its components."""
    return ((a & 0xFF) << 24) | ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def parse_colour(text: str | int) -> int:
    """
    Parse a colour given on the command line or in configuration.

    Accepts '0xAARRGGBB', '#RRGGBB' (opaque), '#AARRGGBB' or a decimal integer.
    """
    if isinstance(text, int):
        value = text
    else:
        s = text.strip()
        try:
            if s.startswith("#"):
                digits = s[1:]
                if len(digits) not in (6, 8):
                    raise ValueError(digits)
                value = int(digits, 16)
                if len(digits) == 6:
                    value |= 0xFF000000
            elif s.lower().startswith("0x"):
                value = int(s, 16)
            else:
                value = int(s)
        except ValueError:
            raise ConfigurationError(f"Invalid colour value: {text!r}") from None

    if not 0 <= value <= 0xFFFFFFFF:
        raise ConfigurationError(f"Colour value out of 32-bit range: {text!r}")
    return value


def format_colour(value: int) -> str:
    return f"0x{value:08x}"
