"""
Functions for clearing the background texture out of a screenshot.
"""

import logging
from dataclasses import dataclass

import numpy as np

from sprite_extractor.pixel_matching import PixelMatcher

logger = logging.getLogger(__name__)


@dataclass
class ClearedImage:
    """
    Result of clearing the background from an image.

    Attributes:
        image: Copy of the input with background pixels set to the sentinel colour
        background_mask: True where a pixel was classified as background
        ambiguous_mask: True where the colour matched but the neighbourhood did not
        num_background_colours: Distinct colours that were cleared
    """
    image: np.ndarray
    background_mask: np.ndarray
    ambiguous_mask: np.ndarray
    num_background_colours: int


def clear_background(
    image: np.ndarray,
    matcher: PixelMatcher,
    *,
    background_colour: int,
    highlight_colour: int | None = None
) -> ClearedImage:
    """
    Replace every interior pixel the matcher accepts with the background colour.

    The input image is left intact so that the matcher always sees the original
    colours of a pixel's neighbours, including ones already cleared in the output.

    Args:
        image: ARGB image (uint32)
        matcher: Pixel matcher deciding what is background
        background_colour: Sentinel colour written over background pixels
        highlight_colour: If given, ambiguous pixels are painted with this colour
                          so they can be reviewed by hand

    Returns:
        ClearedImage with the new image and the masks used to build it
    """
    background = matcher.match_mask(image)
    ambiguous = matcher.ambiguous_mask(image)

    cleared = image.copy()
    cleared[background] = background_colour

    num_colours = int(np.unique(image[background]).size)
    logger.debug("Cleared %d pixels of %d background colours", int(background.sum()), num_colours)

    num_ambiguous = int(ambiguous.sum())
    if num_ambiguous:
        logger.warning("%d pixels match the background colour but not its neighbourhood",
                       num_ambiguous)
        if highlight_colour is not None:
            cleared[ambiguous] = highlight_colour

    return ClearedImage(
        image=cleared,
        background_mask=background,
        ambiguous_mask=ambiguous,
        num_background_colours=num_colours,
    )
