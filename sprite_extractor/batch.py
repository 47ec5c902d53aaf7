"""
Batch extraction over a directory of screenshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sprite_extractor.api import extract_sprites
from sprite_extractor.config import ExtractorConfig
from sprite_extractor.dedup import HashRegistry
from sprite_extractor.errors import DecodeFailure, DimensionMismatch
from sprite_extractor.image_io import find_screenshots, load_image, save_image
from sprite_extractor.pixel_matching import PixelMatcher
from sprite_extractor.sprite_save import save_sprites

logger = logging.getLogger(__name__)


@dataclass
class BatchSummary:
    """Counts of what happened during a batch run."""
    screenshots_processed: int = 0
    screenshots_duplicate: int = 0
    screenshots_failed: int = 0
    sprites_saved: int = 0
    sprites_duplicate: int = 0


def extract_directory(
    source_dir: str | Path,
    output_dir: str | Path,
    matcher: PixelMatcher,
    config: ExtractorConfig,
    *,
    overwrite: bool = False
) -> BatchSummary:
    """
    Extract the sprites from every screenshot in a directory.

    Screenshots that fail to load, or that don't fit the configured borders
    or exact background, are logged and skipped. Identical screenshots are
    processed once, and identical sprites are saved once across the batch.

    Args:
        source_dir: Directory holding the screenshots
        output_dir: Directory for the sprite files
        matcher: Pixel matcher chosen for the run
        config: Pipeline configuration
        overwrite: Replace existing sprite files

    Returns:
        BatchSummary for the run

    Raises:
        FileNotFoundError: If the directory holds no image files.
    """
    files = find_screenshots(source_dir)
    if not files:
        raise FileNotFoundError(f"No image files found in directory: {Path(source_dir).resolve()}")

    screenshot_hashes = HashRegistry()
    sprite_hashes = HashRegistry()
    summary = BatchSummary()

    for path in files:
        logger.info("Reading image: %s", path)
        try:
            image = load_image(path)
        except DecodeFailure as e:
            logger.error("Unable to read image %s: %s", path, e)
            summary.screenshots_failed += 1
            continue

        # Skip duplicate images
        try:
            duplicate = screenshot_hashes.seen(image)
        except ValueError as e:
            logger.error("Error generating hash for %s: %s", path, e)
            summary.screenshots_failed += 1
            continue
        if duplicate:
            logger.info("Skipping duplicate input image %s", path)
            summary.screenshots_duplicate += 1
            continue

        try:
            results = list(extract_sprites(image, matcher, config=config))
        except DimensionMismatch as e:
            logger.error("Skipping %s: %s", path, e)
            summary.screenshots_failed += 1
            continue
        summary.screenshots_processed += 1

        if config.draw_regions:
            overlay_path = Path(output_dir) / f"{path.stem}_regions.png"
            for result in results:
                save_image(result.image, overlay_path, overwrite=overwrite)
            continue

        sprites = [r.image for r in results if not r.is_debug]
        logger.info("Extracted %d sprites from %s", len(sprites), path.name)

        saved, duplicates = save_sprites(sprites, path, output_dir,
                                         registry=sprite_hashes, overwrite=overwrite)
        summary.sprites_saved += saved
        summary.sprites_duplicate += duplicates

    return summary
