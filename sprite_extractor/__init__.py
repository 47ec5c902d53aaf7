"""
Sprite Extractor

Separates sprites from a known background texture in screenshots and crops
each sprite into its own image.

Public API:
    - extract_sprites: Main generator function to extract sprites from a screenshot
    - ProcessedImage: Result object containing images with metadata
    - ExtractorConfig: Pipeline configuration
    - ExactPixelMatcher, NeighbourhoodPixelMatcher: Background matchers
    - create_matcher: Build the matcher selected by a configuration
"""

from sprite_extractor.api import ProcessedImage, extract_sprites
from sprite_extractor.config import Borders, ExtractorConfig, MatcherMode
from sprite_extractor.pixel_matching import (
    BackgroundModel,
    ExactPixelMatcher,
    NeighbourhoodPixelMatcher,
    PixelMatcher,
    create_matcher,
)

__version__ = "0.1.0"
__all__ = [
    "extract_sprites", "ProcessedImage", "ExtractorConfig", "Borders", "MatcherMode",
    "PixelMatcher", "ExactPixelMatcher", "NeighbourhoodPixelMatcher", "BackgroundModel",
    "create_matcher", "__version__",
]
