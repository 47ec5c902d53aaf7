"""Extraction configuration: defaults, border trimming and matcher selection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from sprite_extractor.errors import ConfigurationError, DimensionMismatch


# ---------------------------------------------------------------------------
# Region geometry
# ---------------------------------------------------------------------------

# A region is created around each sprite after the background has been
# removed. Too small and sprites get cut into several images; too large and
# several sprites end up in the same image.
REGION_WIDTH = 192
REGION_HEIGHT = 192

# Regions are anchored this far up and left of the first pixel found for a
# sprite.
REGION_OFFSET_X = 64
REGION_OFFSET_Y = 64

# Sprites smaller than this (after cropping) are not saved
MIN_SPRITE_WIDTH = 4
MIN_SPRITE_HEIGHT = 4

# ---------------------------------------------------------------------------
# Colours (ARGB)
# ---------------------------------------------------------------------------

BACKGROUND_COLOUR = 0xFF80C0FF
HIGHLIGHT_COLOUR = 0xFFFF00FF
REGION_OUTLINE_COLOUR = 0xFFFF0000

# ---------------------------------------------------------------------------
# Input discovery
# ---------------------------------------------------------------------------

IMAGE_FILENAME_PATTERN = re.compile(r".+\.(bmp|jpg|jpeg|gif|png)$", re.IGNORECASE)

MAX_STRICTNESS = 8

# Legacy command line value selecting the exact matcher
EXACT_STRICTNESS_SENTINEL = -1


class MatcherMode(str, Enum):
    EXACT = "exact"
    NEIGHBOURHOOD = "neighbourhood"


@dataclass(frozen=True)
class Borders:
    """Margins (in pixels) ignored on each side of every screenshot."""
    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    def __post_init__(self):
        for name in ("left", "top", "right", "bottom"):
            value = getattr(self, name)
            if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
                raise ConfigurationError(f"Border {name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigurationError(f"Border {name} must not be negative, got {value}")

    def trim(self, image: np.ndarray) -> np.ndarray:
        """
        Cut the margins off an image.

        Returns a view into the input; callers that modify it must copy.

        Raises:
            DimensionMismatch: If the margins leave no pixels.
        """
        h, w = image.shape[:2]
        width = w - (self.left + self.right)
        height = h - (self.top + self.bottom)
        if width <= 0 or height <= 0:
            raise DimensionMismatch(
                f"Borders {self.as_tuple()} leave nothing of a {w}x{h} image")
        return image[self.top:self.top + height, self.left:self.left + width]

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.right, self.bottom)


def parse_strictness(value: int | str | None) -> int | None:
    """
    Parse a strictness value.

    Returns None when strictness is disabled ('off', empty, None). The legacy
    value -1 is passed through so the caller can switch to the exact matcher.

    Raises:
        ConfigurationError: If the value is non-numeric or outside -1..8.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", "off", "none", "disabled"):
            return None
        try:
            value = int(text)
        except ValueError:
            raise ConfigurationError(f"Strictness is not a valid integer: {value!r}") from None
    if value == EXACT_STRICTNESS_SENTINEL:
        return value
    if not 0 <= value <= MAX_STRICTNESS:
        raise ConfigurationError(f"Strictness must be between 0 and {MAX_STRICTNESS}, got {value}")
    return value


@dataclass
class ExtractorConfig:
    """
    Every tunable of the extraction pipeline.

    Attributes:
        matcher_mode: Which pixel matcher classifies the background
        strictness: Number of Moore neighbours (0-8) that must also match.
                    None disables the neighbour check (exact mode only)
        borders: Margins cut from each screenshot (and from the exact background)
        region_width, region_height: Size of each candidate sprite region
        region_offset_x, region_offset_y: Distance from the triggering pixel back
                    to the region's top-left corner
        background_colour: Sentinel ARGB colour written over background pixels
        min_sprite_width, min_sprite_height: Smaller cropped sprites are dropped
        highlight_ambiguous: Paint pixels whose colour matches but whose
                    neighbourhood does not with highlight_colour
        highlight_colour: ARGB colour for ambiguous pixels
        draw_regions: Produce a region overlay for review instead of sprites
    """
    matcher_mode: MatcherMode = MatcherMode.NEIGHBOURHOOD
    strictness: int | None = 8
    borders: Borders = field(default_factory=Borders)
    region_width: int = REGION_WIDTH
    region_height: int = REGION_HEIGHT
    region_offset_x: int = REGION_OFFSET_X
    region_offset_y: int = REGION_OFFSET_Y
    background_colour: int = BACKGROUND_COLOUR
    min_sprite_width: int = MIN_SPRITE_WIDTH
    min_sprite_height: int = MIN_SPRITE_HEIGHT
    highlight_ambiguous: bool = False
    highlight_colour: int = HIGHLIGHT_COLOUR
    draw_regions: bool = False

    def __post_init__(self):
        self.matcher_mode = MatcherMode(self.matcher_mode)
        # -1 on the command line has always meant "exact, no neighbour check"
        if self.strictness == EXACT_STRICTNESS_SENTINEL:
            self.matcher_mode = MatcherMode.EXACT
            self.strictness = None

    def validate(self) -> "ExtractorConfig":
        """
        Check all values, returning self so calls can be chained.

        Raises:
            ConfigurationError: On the first invalid value found.
        """
        if self.strictness is None:
            if self.matcher_mode is MatcherMode.NEIGHBOURHOOD:
                raise ConfigurationError("Neighbourhood matching requires a strictness of 0-8")
        elif not 0 <= self.strictness <= MAX_STRICTNESS:
            raise ConfigurationError(
                f"Strictness must be between 0 and {MAX_STRICTNESS}, got {self.strictness}")

        if self.region_width <= 0 or self.region_height <= 0:
            raise ConfigurationError(
                f"Region size must be positive, got {self.region_width}x{self.region_height}")
        if self.region_offset_x < 0 or self.region_offset_y < 0:
            raise ConfigurationError(
                f"Region offsets must not be negative, got ({self.region_offset_x}, {self.region_offset_y})")
        if self.min_sprite_width <= 0 or self.min_sprite_height <= 0:
            raise ConfigurationError(
                f"Minimum sprite size must be positive, got {self.min_sprite_width}x{self.min_sprite_height}")

        for name in ("background_colour", "highlight_colour"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFFFFFF:
                raise ConfigurationError(f"{name} is not a 32-bit ARGB value: {value!r}")
        if self.highlight_ambiguous and self.highlight_colour == self.background_colour:
            raise ConfigurationError("Highlight colour must differ from the background colour")

        return self
