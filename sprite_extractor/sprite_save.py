#!/usr/bin/env python3
"""
Functions for saving extracted sprites as individual images.
"""

import logging
from pathlib import Path

import numpy as np

from sprite_extractor.dedup import HashRegistry
from sprite_extractor.image_io import save_image

logger = logging.getLogger(__name__)


def sprite_filename(source: str | Path, index: int, ext: str = ".png") -> str:
    """Name of the file holding sprite number `index` of a screenshot."""
    return f"{Path(source).stem}_{index}{ext}"


def save_sprites(
    sprites: list[np.ndarray],
    source: str | Path,
    output_dir: str | Path,
    registry: HashRegistry | None = None,
    overwrite: bool = False
) -> tuple[int, int]:
    """
    Save each sprite of a screenshot as an individual file.

    Sprite i of screenshot "shot.png" is saved as "<output_dir>/shot_<i>.png".
    Sprites already seen by the registry are skipped; their index is still
    consumed so names stay stable between runs.

    Args:
        sprites: Sprite images (ARGB) in extraction order
        source: Path of the screenshot the sprites came from
        output_dir: Directory for the output files
        registry: Digests of sprites saved so far, shared between screenshots
        overwrite: Replace existing files instead of leaving them alone

    Returns:
        (number of sprites saved, number skipped as duplicates)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved = duplicates = 0
    for i, sprite in enumerate(sprites):
        # Don't save duplicates
        if registry is not None:
            try:
                duplicate = registry.seen(sprite)
            except ValueError as e:
                logger.error("Error generating hash for sprite %d of %s: %s", i, source, e)
                continue
            if duplicate:
                logger.debug("Skipping duplicate sprite %d of %s", i, source)
                duplicates += 1
                continue

        sprite_path = output_dir / sprite_filename(source, i)
        if save_image(sprite, sprite_path, overwrite=overwrite):
            saved += 1
        else:
            logger.info("Not overwriting existing sprite %s", sprite_path)

    return saved, duplicates
