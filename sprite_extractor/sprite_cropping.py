"""
Functions for cutting sprites out of a background-cleared image.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from sprite_extractor.sprite_segmentation import Region


@dataclass
class CroppedSprite:
    """
    A tightly cropped sprite.

    Attributes:
        image: ARGB sprite image with no border row or column of background colour
        bbox: Position in the source image as (y1, y2, x1, x2)
        region: The region the sprite was cropped from
    """
    image: np.ndarray
    bbox: tuple[int, int, int, int]
    region: Region


def clamp_region(region: Region, image_shape: tuple[int, ...]) -> Region:
    """
    Shift a region so that it lies within the image, without resizing it.

    On an axis where the image is smaller than the region, the region starts
    at 0 and extraction is cut short by the image edge.
    """
    height, width = image_shape[:2]
    x = max(0, min(region.x, width - region.width))
    y = max(0, min(region.y, height - region.height))
    return Region(x, y, region.width, region.height)


def tight_crop(image: np.ndarray, background_colour: int
               ) -> tuple[np.ndarray, tuple[int, int, int, int]] | None:
    """
    Crop an image to the smallest rectangle containing any non-background pixel.

    Returns:
        (cropped view, (y1, y2, x1, x2)) or None if the image is all background
    """
    foreground = image != background_colour
    rows = np.flatnonzero(foreground.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(foreground.any(axis=0))

    y1, y2 = int(rows[0]), int(rows[-1]) + 1
    x1, x2 = int(cols[0]), int(cols[-1]) + 1
    return image[y1:y2, x1:x2], (y1, y2, x1, x2)


def crop_sprites(
    image: np.ndarray,
    regions: list[Region],
    *,
    background_colour: int,
    min_width: int,
    min_height: int
) -> list[CroppedSprite]:
    """
    Extract and crop the given regions from an image.

    Regions containing only background are dropped, as are sprites smaller
    than the minimum size.

    Args:
        image: Background-cleared ARGB image
        regions: Candidate regions, in discovery order
        background_colour: Sentinel colour of cleared pixels
        min_width, min_height: Minimum sprite size after cropping

    Returns:
        Sprites in region order
    """
    sprites = []

    for region in regions:
        # Don't try to go outside the image bounds
        clamped = clamp_region(region, image.shape)
        ry1, ry2, rx1, rx2 = clamped.as_bbox()
        sub_image = image[ry1:ry2, rx1:rx2]

        cropped = tight_crop(sub_image, background_colour)
        if cropped is None:
            continue
        sprite, (y1, y2, x1, x2) = cropped

        if sprite.shape[1] < min_width or sprite.shape[0] < min_height:
            # Sprite is too small, ignore it
            continue

        sprites.append(CroppedSprite(
            image=sprite.copy(),
            bbox=(ry1 + y1, ry1 + y2, rx1 + x1, rx1 + x2),
            region=region,
        ))

    return sprites
