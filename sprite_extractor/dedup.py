"""
Duplicate detection for screenshots and sprites by hashing pixel content.
"""

import hashlib

import numpy as np


def image_digest(image: np.ndarray) -> str:
    """MD5 digest of an image's dimensions and pixel values."""
    pixels = np.ascontiguousarray(image, dtype=np.uint32)
    md5 = hashlib.md5()
    md5.update(np.asarray(pixels.shape, dtype=np.int64).tobytes())
    md5.update(pixels.astype("<u4", copy=False).tobytes())
    return md5.hexdigest()


class HashRegistry:
    """Remembers the digests of images seen so far."""

    def __init__(self):
        self._digests: set[str] = set()

    def seen(self, image: np.ndarray) -> bool:
        """Register an image, returning True if an identical one was registered before."""
        digest = image_digest(image)
        if digest in self._digests:
            return True
        self._digests.add(digest)
        return False

    def __len__(self) -> int:
        return len(self._digests)
