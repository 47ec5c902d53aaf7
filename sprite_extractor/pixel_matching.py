"""
Pixel matchers deciding whether a screenshot pixel belongs to the background.

Two strategies are available:

- ExactPixelMatcher compares each pixel with the pixel at the same position
  in a background image of the same size, optionally requiring a number of
  its Moore neighbours to match as well.
- NeighbourhoodPixelMatcher "learns" a background texture: for every colour in
  a sample image it records which colours were seen next to it in each of the
  8 directions, then accepts a screenshot pixel if enough of its neighbours
  are plausible for its colour.

Edge pixels have no complete neighbourhood and are never matched.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from sprite_extractor.config import Borders, ExtractorConfig, MatcherMode
from sprite_extractor.errors import ConfigurationError, DimensionMismatch

logger = logging.getLogger(__name__)

# Moore neighbourhood as (name, dx, dy), clockwise from north
MOORE_NEIGHBOURHOOD: tuple[tuple[str, int, int], ...] = (
    ("north", 0, -1),
    ("north_east", 1, -1),
    ("east", 1, 0),
    ("south_east", 1, 1),
    ("south", 0, 1),
    ("south_west", -1, 1),
    ("west", -1, 0),
    ("north_west", -1, -1),
)

_KEY_SHIFT = np.uint64(32)


def _has_interior(image: np.ndarray) -> bool:
    return image.shape[0] >= 3 and image.shape[1] >= 3


def _interior(image: np.ndarray, dx: int = 0, dy: int = 0) -> np.ndarray:
    """View of the interior pixels shifted by (dx, dy), i.e. each interior pixel's neighbour."""
    h, w = image.shape[:2]
    return image[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]


def _sorted_contains(sorted_keys: np.ndarray, values: np.ndarray) -> np.ndarray:
    """Vectorised membership test against a sorted array of unique keys."""
    if sorted_keys.size == 0:
        return np.zeros(values.shape, dtype=bool)
    idx = np.searchsorted(sorted_keys, values)
    idx[idx == sorted_keys.size] = 0
    return sorted_keys[idx] == values


def _pair_keys(colours: np.ndarray, neighbours: np.ndarray) -> np.ndarray:
    return (colours.astype(np.uint64) << _KEY_SHIFT) | neighbours.astype(np.uint64)


def _validate_strictness(strictness: int | None, allow_none: bool) -> None:
    if strictness is None:
        if not allow_none:
            raise ConfigurationError("Strictness is required for this matcher")
        return
    if not 0 <= strictness <= len(MOORE_NEIGHBOURHOOD):
        raise ConfigurationError(
            f"Strictness must be between 0 and {len(MOORE_NEIGHBOURHOOD)}, got {strictness}")


class PixelMatcher(ABC):
    """
    Something capable of determining, for each pixel in an image, whether it
    matches a pre-supplied background texture.
    """

    @abstractmethod
    def matches(self, image: np.ndarray, x: int, y: int) -> bool:
        """
        Determine whether the pixel at (x, y) belongs to the background.

        Only interior coordinates (not on the 1-pixel image border) may be queried.
        """

    def match_mask(self, image: np.ndarray) -> np.ndarray:
        """
        Evaluate matches() for every interior pixel of the image.

        Returns:
            Boolean array the shape of the image; border pixels are always False
        """
        mask = np.zeros(image.shape[:2], dtype=bool)
        for y in range(1, image.shape[0] - 1):
            for x in range(1, image.shape[1] - 1):
                mask[y, x] = self.matches(image, x, y)
        return mask

    def ambiguous_mask(self, image: np.ndarray) -> np.ndarray:
        """
        Pixels whose colour matches the background but whose neighbourhood does not.

        Returns:
            Boolean array the shape of the image
        """
        return np.zeros(image.shape[:2], dtype=bool)


class ExactPixelMatcher(PixelMatcher):
    """
    Matcher that expects pixels to exactly match the corresponding pixels of
    the background image.

    A pixel is only considered background if it is the same colour as the
    pixel at the same point in the background and, when strictness is set, at
    least that many of its 8 neighbours are too.
    """

    def __init__(self, background: np.ndarray, strictness: int | None = None,
                 borders: Borders | None = None):
        _validate_strictness(strictness, allow_none=True)
        borders = borders or Borders()
        # Cut the background exactly like the screenshots will be cut
        self.background = np.ascontiguousarray(borders.trim(background))
        self.strictness = strictness

    def _check_dimensions(self, image: np.ndarray) -> None:
        if image.shape[:2] != self.background.shape[:2]:
            bh, bw = self.background.shape[:2]
            h, w = image.shape[:2]
            raise DimensionMismatch(
                f"Image is {w}x{h} after trimming but the background is {bw}x{bh}")

    def _equal_neighbours(self, image: np.ndarray, x: int, y: int) -> int:
        count = 0
        for _name, dx, dy in MOORE_NEIGHBOURHOOD:
            if image[y + dy, x + dx] == self.background[y + dy, x + dx]:
                count += 1
        return count

    def matches(self, image: np.ndarray, x: int, y: int) -> bool:
        self._check_dimensions(image)
        if image[y, x] != self.background[y, x]:
            return False
        if self.strictness is None:
            return True
        if self._equal_neighbours(image, x, y) >= self.strictness:
            return True
        logger.debug("Ambiguous background pixel at (%d, %d)", x, y)
        return False

    def _interior_masks(self, image: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Colour-equality and neighbour-count arrays for the interior."""
        equal = image == self.background
        centre = _interior(equal)
        counts = np.zeros(centre.shape, dtype=np.uint8)
        if self.strictness is not None:
            for _name, dx, dy in MOORE_NEIGHBOURHOOD:
                counts += _interior(equal, dx, dy)
        return centre, counts

    def match_mask(self, image: np.ndarray) -> np.ndarray:
        self._check_dimensions(image)
        mask = np.zeros(image.shape[:2], dtype=bool)
        if not _has_interior(image):
            return mask
        centre, counts = self._interior_masks(image)
        if self.strictness is None:
            mask[1:-1, 1:-1] = centre
        else:
            mask[1:-1, 1:-1] = centre & (counts >= self.strictness)
        return mask

    def ambiguous_mask(self, image: np.ndarray) -> np.ndarray:
        self._check_dimensions(image)
        mask = np.zeros(image.shape[:2], dtype=bool)
        if self.strictness is None or not _has_interior(image):
            return mask
        centre, counts = self._interior_masks(image)
        mask[1:-1, 1:-1] = centre & (counts < self.strictness)
        return mask


class BackgroundModel:
    """
    Map of colour -> colours observed next to it, per Moore direction.

    Built once from a sample of the background texture and read-only afterwards.
    Each (colour, neighbour) pair is stored as a single 64-bit key in a sorted
    array per direction so that whole images can be tested at once.
    """

    def __init__(self, colours: np.ndarray, pair_keys: tuple[np.ndarray, ...]):
        if len(pair_keys) != len(MOORE_NEIGHBOURHOOD):
            raise ValueError(f"Expected {len(MOORE_NEIGHBOURHOOD)} key arrays, got {len(pair_keys)}")
        self._colours = colours
        self._pair_keys = pair_keys

    @classmethod
    def from_image(cls, background: np.ndarray) -> "BackgroundModel":
        """
        Learn the neighbourhood of every colour in the interior of an image.

        Images smaller than 3x3 have no interior and give an empty model.
        """
        if not _has_interior(background):
            empty = np.zeros(0, dtype=np.uint64)
            return cls(empty, tuple(empty for _ in MOORE_NEIGHBOURHOOD))

        centre = _interior(background)
        colours = np.unique(centre).astype(np.uint64)
        pair_keys = tuple(
            np.unique(_pair_keys(centre, _interior(background, dx, dy)))
            for _name, dx, dy in MOORE_NEIGHBOURHOOD
        )
        return cls(colours, pair_keys)

    def __len__(self) -> int:
        return int(self._colours.size)

    def __contains__(self, colour: int) -> bool:
        return bool(_sorted_contains(self._colours, np.array([colour], dtype=np.uint64))[0])

    def valid_neighbours(self, colour: int) -> tuple[frozenset[int], ...] | None:
        """
        The colours seen next to the given colour, one set per direction in
        MOORE_NEIGHBOURHOOD order, or None if the colour was never seen.
        """
        if colour not in self:
            return None
        colour = np.uint64(colour)
        return tuple(
            frozenset(int(k) & 0xFFFFFFFF for k in keys[(keys >> _KEY_SHIFT) == colour])
            for keys in self._pair_keys
        )

    def known_colours(self, colours: np.ndarray) -> np.ndarray:
        """Boolean array telling which of the given colours are in the model."""
        return _sorted_contains(self._colours, colours.astype(np.uint64))

    def count_valid_neighbours(self, image: np.ndarray) -> np.ndarray:
        """
        For every interior pixel, count neighbours whose colour has been seen
        in that direction next to the pixel's own colour.

        Returns:
            uint8 array of shape (h - 2, w - 2)
        """
        centre = _interior(image)
        counts = np.zeros(centre.shape, dtype=np.uint8)
        for keys, (_name, dx, dy) in zip(self._pair_keys, MOORE_NEIGHBOURHOOD):
            counts += _sorted_contains(keys, _pair_keys(centre, _interior(image, dx, dy)))
        return counts


class NeighbourhoodPixelMatcher(PixelMatcher):
    """
    Matcher that accepts a pixel if its colour occurs in the background
    sample and at least `strictness` of its neighbours are colours that were
    observed in the same direction next to that colour.

    Strictness 0 accepts any colour seen in the sample regardless of context;
    strictness 8 requires every neighbour to be plausible.
    """

    def __init__(self, background: BackgroundModel | np.ndarray, strictness: int):
        _validate_strictness(strictness, allow_none=False)
        if isinstance(background, BackgroundModel):
            self.model = background
        else:
            self.model = BackgroundModel.from_image(background)
        self.strictness = strictness
        logger.info("Background model contains %d colours", len(self.model))

    def matches(self, image: np.ndarray, x: int, y: int) -> bool:
        window = image[y - 1:y + 2, x - 1:x + 2]
        if window.shape[:2] != (3, 3):
            raise IndexError(f"({x}, {y}) is not an interior pixel")
        if int(window[1, 1]) not in self.model:
            # Colour never seen in the background sample
            return False
        return int(self.model.count_valid_neighbours(window)[0, 0]) >= self.strictness

    def match_mask(self, image: np.ndarray) -> np.ndarray:
        mask = np.zeros(image.shape[:2], dtype=bool)
        if not _has_interior(image) or len(self.model) == 0:
            return mask
        known = self.model.known_colours(_interior(image))
        counts = self.model.count_valid_neighbours(image)
        mask[1:-1, 1:-1] = known & (counts >= self.strictness)
        return mask


def create_matcher(background: np.ndarray, config: ExtractorConfig) -> PixelMatcher:
    """
    Build the matcher selected by the configuration.

    The exact matcher trims the background with the configured borders so it
    lines up with trimmed screenshots; the neighbourhood matcher learns from
    the whole background sample.
    """
    if config.matcher_mode is MatcherMode.EXACT:
        logger.info("Using exact matcher (strictness %s)",
                    "off" if config.strictness is None else config.strictness)
        return ExactPixelMatcher(background, config.strictness, config.borders)

    logger.info("Using neighbourhood matcher (strictness %s)", config.strictness)
    return NeighbourhoodPixelMatcher(background, config.strictness)
