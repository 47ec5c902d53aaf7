"""
Functions for finding candidate sprite regions in a background-cleared image.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from sprite_extractor.colours import pack_argb, unpack_argb


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in image space; may extend past the image edges."""
    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def as_bbox(self) -> tuple[int, int, int, int]:
        """Region as (y1, y2, x1, x2)."""
        return (self.y, self.y + self.height, self.x, self.x + self.width)


def create_region(x: int, y: int, *, width: int, height: int,
                  offset_x: int, offset_y: int) -> Region:
    """Create a region around the pixel at (x, y)."""
    return Region(x - offset_x, y - offset_y, width, height)


def find_colour_regions(
    image: np.ndarray,
    *,
    background_colour: int,
    width: int,
    height: int,
    offset_x: int,
    offset_y: int
) -> list[Region]:
    """
    Produce a list of fixed-size regions covering the non-background pixels.

    Interior pixels are scanned top-to-bottom, left-to-right. Every pixel that
    is not the background colour and not inside an earlier region starts a new
    region anchored at (x - offset_x, y - offset_y). Regions are never merged,
    so a sprite larger than a region, or first touched far from its top-left
    corner, is split over several regions.

    Args:
        image: Background-cleared ARGB image
        background_colour: Sentinel colour of cleared pixels
        width, height: Size of each region
        offset_x, offset_y: Anchor offset back from the triggering pixel

    Returns:
        Regions in discovery order
    """
    regions: list[Region] = []
    if image.shape[0] < 3 or image.shape[1] < 3:
        return regions

    # Edge pixels are never cleared, so skip them
    interior = image[1:-1, 1:-1]
    candidates = np.argwhere(interior != background_colour)

    # Union of all regions so far, clipped to the image
    covered = np.zeros(image.shape[:2], dtype=bool)

    # argwhere yields row-major order
    for row, col in candidates:
        x, y = int(col) + 1, int(row) + 1
        if covered[y, x]:
            continue
        region = create_region(x, y, width=width, height=height,
                               offset_x=offset_x, offset_y=offset_y)
        regions.append(region)
        y1, y2, x1, x2 = region.as_bbox()
        covered[max(0, y1):max(0, y2), max(0, x1):max(0, x2)] = True

    return regions


def draw_regions(image: np.ndarray, regions: list[Region], colour: int) -> np.ndarray:
    """
    Frame each region on a copy of the image.

    Args:
        image: ARGB image
        regions: Regions to outline
        colour: ARGB outline colour

    Returns:
        ARGB image with region outlines
    """
    vis_img = unpack_argb(image)
    a = (colour >> 24) & 0xFF
    r = (colour >> 16) & 0xFF
    g = (colour >> 8) & 0xFF
    b = colour & 0xFF

    for region in regions:
        cv2.rectangle(
            vis_img,
            (region.x, region.y),
            (region.x + region.width - 1, region.y + region.height - 1),
            (b, g, r, a),
            1,
        )

    return pack_argb(vis_img)
