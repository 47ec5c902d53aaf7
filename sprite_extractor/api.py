#!/usr/bin/env python3
"""
Public API for the sprite extraction library.

This module provides the main interface for programmatic use of the sprite
extraction pipeline: trim borders, clear the background, find sprite
regions and crop each region down to its sprite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generator

import numpy as np

from sprite_extractor.background_removal import clear_background
from sprite_extractor.config import REGION_OUTLINE_COLOUR, ExtractorConfig
from sprite_extractor.pixel_matching import PixelMatcher
from sprite_extractor.sprite_cropping import crop_sprites
from sprite_extractor.sprite_segmentation import draw_regions, find_colour_regions

logger = logging.getLogger(__name__)


@dataclass
class ProcessedImage:
    """
    A processed image with metadata from the sprite extraction pipeline.

    Attributes:
        image: The image data as a 2-D uint32 ARGB numpy array
        name: Descriptive name for the image (e.g., "sprite_0", "debug_cleared")
        bbox: Bounding box of a sprite in the border-trimmed screenshot as
              (y1, y2, x1, x2), or None for debug images
        is_debug: True if this is a debug/intermediate image, False for final output
        metadata: Additional metadata (e.g., sprite index, region)
    """
    image: np.ndarray
    name: str
    bbox: tuple[int, int, int, int] | None
    is_debug: bool
    metadata: dict[str, int] | None = None


def extract_sprites(
    image: np.ndarray | None,
    matcher: PixelMatcher,
    *,
    config: ExtractorConfig | None = None,
    debug: bool = False
) -> Generator[ProcessedImage, None, None]:
    """
    Extract sprites from a screenshot and yield them as they're produced.

    The screenshot is trimmed by the configured borders, every pixel the
    matcher recognises as background is replaced by the sentinel colour, a
    fixed-size region is placed over each cluster of remaining pixels, and
    each region is cropped down to the smallest rectangle holding its sprite.

    Args:
        image: Screenshot as a 2-D uint32 ARGB array (see colours.pack_argb)
        matcher: Pixel matcher chosen for the run
        config: Pipeline configuration; defaults are used if omitted
        debug: If True, also yield intermediate images

    Yields:
        ProcessedImage objects. Debug images (if enabled) come first, followed
        by sprites in region discovery order, named sprite_0, sprite_1, ...
        With config.draw_regions set, a single "regions_overlay" image is
        yielded instead of the sprites.

    Raises:
        ValueError: If image is None or has invalid shape/dtype.
        DimensionMismatch: If the borders leave nothing of the image, or the
                           exact matcher's background has a different size.
    """
    # Validate input
    if image is None:
        raise ValueError("image cannot be None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"image must be a numpy array, got {type(image)}")

    if image.ndim != 2:
        raise ValueError(f"image must be a 2D ARGB array (height, width), got shape {image.shape}")

    if image.dtype != np.uint32:
        raise ValueError(f"image must be uint32, got {image.dtype}")

    config = config or ExtractorConfig()

    # Cut the image to the part we are interested in
    trimmed = config.borders.trim(image)

    if debug:
        yield ProcessedImage(
            image=trimmed.copy(),
            name="debug_trimmed",
            bbox=None,
            is_debug=True,
            metadata=None
        )

    # Remove the background texture
    cleared = clear_background(
        trimmed,
        matcher,
        background_colour=config.background_colour,
        highlight_colour=config.highlight_colour if config.highlight_ambiguous else None,
    )

    if debug:
        yield ProcessedImage(
            image=cleared.image.copy(),
            name="debug_cleared",
            bbox=None,
            is_debug=True,
            metadata={
                "num_background_colours": cleared.num_background_colours,
                "num_ambiguous": int(cleared.ambiguous_mask.sum()),
            }
        )

    # Identify regions that still contain colour
    regions = find_colour_regions(
        cleared.image,
        background_colour=config.background_colour,
        width=config.region_width,
        height=config.region_height,
        offset_x=config.region_offset_x,
        offset_y=config.region_offset_y,
    )
    logger.info("Found %d sprite regions", len(regions))

    if debug or config.draw_regions:
        overlay = draw_regions(cleared.image, regions, REGION_OUTLINE_COLOUR)
        yield ProcessedImage(
            image=overlay,
            name="debug_regions" if not config.draw_regions else "regions_overlay",
            bbox=None,
            is_debug=not config.draw_regions,
            metadata={"num_regions": len(regions)}
        )

    if config.draw_regions:
        return

    sprites = crop_sprites(
        cleared.image,
        regions,
        background_colour=config.background_colour,
        min_width=config.min_sprite_width,
        min_height=config.min_sprite_height,
    )

    for i, sprite in enumerate(sprites):
        yield ProcessedImage(
            image=sprite.image,
            name=f"sprite_{i}",
            bbox=sprite.bbox,
            is_debug=False,
            metadata={
                "sprite_index": i,
                "region_x": sprite.region.x,
                "region_y": sprite.region.y,
            }
        )
