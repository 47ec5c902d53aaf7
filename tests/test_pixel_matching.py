"""
Tests for the exact and neighbourhood background matchers.
"""

import numpy as np
import pytest

from sprite_extractor.colours import argb
from sprite_extractor.config import Borders, ExtractorConfig, MatcherMode
from sprite_extractor.errors import ConfigurationError, DimensionMismatch
from sprite_extractor.pixel_matching import (
    BackgroundModel,
    ExactPixelMatcher,
    NeighbourhoodPixelMatcher,
    PixelMatcher,
    create_matcher,
)

BG_A = argb(10, 20, 30)
BG_B = argb(40, 50, 60)
SPRITE = argb(255, 0, 0)


def _checkerboard(width: int, height: int) -> np.ndarray:
    ys, xs = np.mgrid[0:height, 0:width]
    return np.where((xs + ys) % 2 == 0, BG_A, BG_B).astype(np.uint32)


def _random_image(seed: int, width: int = 12, height: int = 12, colours: int = 3) -> np.ndarray:
    rng = np.random.default_rng(seed)
    palette = np.array([BG_A, BG_B, SPRITE, argb(0, 255, 0)][:colours], dtype=np.uint32)
    return palette[rng.integers(0, colours, size=(height, width))]


def _interior_points(image: np.ndarray):
    for y in range(1, image.shape[0] - 1):
        for x in range(1, image.shape[1] - 1):
            yield x, y


# ---------------------------------------------------------------------------
# Exact matcher
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("strictness", [None, 0])
def test_exact_without_neighbour_requirement_is_colour_equality(strictness):
    background = _random_image(1)
    image = _random_image(2)
    matcher = ExactPixelMatcher(background, strictness)

    for x, y in _interior_points(image):
        assert matcher.matches(image, x, y) == (image[y, x] == background[y, x])


def test_exact_mask_agrees_with_matches():
    background = _random_image(3)
    image = _random_image(4)
    matcher = ExactPixelMatcher(background, 4)

    mask = matcher.match_mask(image)

    for x, y in _interior_points(image):
        assert mask[y, x] == matcher.matches(image, x, y)
    # Border pixels are never matched
    assert not mask[0, :].any() and not mask[-1, :].any()
    assert not mask[:, 0].any() and not mask[:, -1].any()


def test_exact_strictness_requires_matching_neighbours():
    background = np.full((9, 9), BG_A, dtype=np.uint32)
    image = background.copy()
    # Surround (4, 4) with foreground, leaving the pixel itself untouched
    image[3:6, 3:6] = SPRITE
    image[4, 4] = BG_A

    assert ExactPixelMatcher(background, 0).matches(image, 4, 4)
    assert not ExactPixelMatcher(background, 1).matches(image, 4, 4)
    # (2, 2) only has (3, 3) changed among its neighbours
    assert ExactPixelMatcher(background, 7).matches(image, 2, 2)
    assert not ExactPixelMatcher(background, 8).matches(image, 2, 2)


def test_exact_reports_ambiguous_pixels():
    background = np.full((9, 9), BG_A, dtype=np.uint32)
    image = background.copy()
    image[3:6, 3:6] = SPRITE
    image[4, 4] = BG_A

    ambiguous = ExactPixelMatcher(background, 8).ambiguous_mask(image)

    assert ambiguous[4, 4]
    # Changed pixels don't match the background colour, so aren't ambiguous
    assert not ambiguous[3, 3]
    # Pixels touching the block are equal in colour but lose a neighbour
    assert ambiguous[2, 2]
    assert not ambiguous[1, 1]


def test_exact_ambiguous_mask_empty_without_strictness():
    background = np.full((6, 6), BG_A, dtype=np.uint32)
    image = background.copy()
    image[2, 2] = SPRITE

    assert not ExactPixelMatcher(background).ambiguous_mask(image).any()


def test_exact_dimension_mismatch():
    matcher = ExactPixelMatcher(np.full((10, 10), BG_A, dtype=np.uint32), 0)
    image = np.full((10, 12), BG_A, dtype=np.uint32)

    with pytest.raises(DimensionMismatch):
        matcher.matches(image, 1, 1)
    with pytest.raises(DimensionMismatch):
        matcher.match_mask(image)


def test_exact_trims_background_with_borders():
    background = np.full((20, 30), BG_B, dtype=np.uint32)
    background[2:18, 3:26] = BG_A
    matcher = ExactPixelMatcher(background, 8, Borders(left=3, top=2, right=4, bottom=2))

    assert matcher.background.shape == (16, 23)
    image = np.full((16, 23), BG_A, dtype=np.uint32)
    assert matcher.match_mask(image)[1:-1, 1:-1].all()


def test_exact_rejects_bad_strictness():
    with pytest.raises(ConfigurationError):
        ExactPixelMatcher(np.zeros((5, 5), dtype=np.uint32), 9)


# ---------------------------------------------------------------------------
# Background model
# ---------------------------------------------------------------------------


def test_model_records_neighbours_per_direction():
    model = BackgroundModel.from_image(_checkerboard(8, 8))

    assert len(model) == 2
    north, north_east, east, south_east, south, south_west, west, north_west = \
        model.valid_neighbours(BG_A)
    # Orthogonal neighbours of a checkerboard square have the other colour,
    # diagonal ones the same colour
    for direction in (north, east, south, west):
        assert direction == frozenset({BG_B})
    for direction in (north_east, south_east, south_west, north_west):
        assert direction == frozenset({BG_A})


def test_model_every_colour_has_neighbours_in_every_direction():
    model = BackgroundModel.from_image(_random_image(5, colours=4))

    for colour in (BG_A, BG_B, SPRITE):
        neighbours = model.valid_neighbours(colour)
        assert neighbours is not None
        assert len(neighbours) == 8
        assert all(len(s) > 0 for s in neighbours)


def test_model_unknown_colour():
    model = BackgroundModel.from_image(_checkerboard(8, 8))

    assert SPRITE not in model
    assert model.valid_neighbours(SPRITE) is None


def test_model_ignores_edge_pixels():
    background = np.full((5, 5), BG_A, dtype=np.uint32)
    background[0, :] = SPRITE

    model = BackgroundModel.from_image(background)

    # The edge colour is a neighbour, but never a key
    assert SPRITE not in model
    assert SPRITE in model.valid_neighbours(BG_A)[0]


def test_model_from_tiny_image_is_empty():
    model = BackgroundModel.from_image(np.full((2, 5), BG_A, dtype=np.uint32))

    assert len(model) == 0
    matcher = NeighbourhoodPixelMatcher(model, 0)
    assert not matcher.match_mask(np.full((6, 6), BG_A, dtype=np.uint32)).any()


# ---------------------------------------------------------------------------
# Neighbourhood matcher
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("strictness", range(9))
def test_neighbourhood_never_matches_unseen_colour(strictness):
    matcher = NeighbourhoodPixelMatcher(_checkerboard(10, 10), strictness)
    image = _checkerboard(10, 10)
    image[4:7, 4:7] = SPRITE

    mask = matcher.match_mask(image)

    assert not mask[4:7, 4:7].any()
    assert not matcher.matches(image, 5, 5)


def test_neighbourhood_strictness_is_monotonic():
    background = _random_image(6, width=20, height=20)
    image = _random_image(7, width=20, height=20, colours=4)

    masks = [NeighbourhoodPixelMatcher(background, k).match_mask(image) for k in range(9)]

    for looser, stricter in zip(masks, masks[1:]):
        assert not (stricter & ~looser).any()


def test_neighbourhood_strictness_zero_accepts_any_seen_colour():
    matcher = NeighbourhoodPixelMatcher(_checkerboard(8, 8), 0)
    image = np.full((6, 6), BG_A, dtype=np.uint32)
    image[2, 2] = SPRITE

    mask = matcher.match_mask(image)

    assert mask[1:-1, 1:-1].sum() == 16 - 1
    assert not mask[2, 2]


def test_neighbourhood_full_strictness_on_its_own_sample():
    background = _random_image(8, width=15, height=15)
    matcher = NeighbourhoodPixelMatcher(background, 8)

    assert matcher.match_mask(background)[1:-1, 1:-1].all()


def test_neighbourhood_full_strictness_rejects_unseen_context():
    # Solid BG_A never appears in a checkerboard
    matcher = NeighbourhoodPixelMatcher(_checkerboard(8, 8), 8)
    image = np.full((5, 5), BG_A, dtype=np.uint32)

    assert not matcher.matches(image, 2, 2)
    # Only the 4 diagonal neighbours are plausible
    assert NeighbourhoodPixelMatcher(_checkerboard(8, 8), 4).matches(image, 2, 2)
    assert not NeighbourhoodPixelMatcher(_checkerboard(8, 8), 5).matches(image, 2, 2)


def test_neighbourhood_mask_agrees_with_matches():
    matcher = NeighbourhoodPixelMatcher(_random_image(9), 5)
    image = _random_image(10, colours=4)

    mask = matcher.match_mask(image)

    for x, y in _interior_points(image):
        assert mask[y, x] == matcher.matches(image, x, y)


def test_neighbourhood_requires_strictness():
    with pytest.raises(ConfigurationError):
        NeighbourhoodPixelMatcher(_checkerboard(5, 5), None)
    with pytest.raises(ConfigurationError):
        NeighbourhoodPixelMatcher(_checkerboard(5, 5), -2)


def test_create_matcher_selects_variant():
    background = _checkerboard(12, 12)

    exact = create_matcher(background, ExtractorConfig(
        matcher_mode=MatcherMode.EXACT, strictness=None, borders=Borders(1, 1, 1, 1)))
    neighbourhood = create_matcher(background, ExtractorConfig(strictness=6))

    assert isinstance(exact, ExactPixelMatcher)
    assert exact.background.shape == (10, 10)
    assert exact.strictness is None
    assert isinstance(neighbourhood, NeighbourhoodPixelMatcher)
    assert neighbourhood.strictness == 6


def test_custom_matcher_gets_per_pixel_mask():
    class SingleColourMatcher(PixelMatcher):
        def matches(self, image, x, y):
            return image[y, x] == BG_A

    image = _checkerboard(6, 5)

    mask = SingleColourMatcher().match_mask(image)

    assert mask.shape == (5, 6)
    np.testing.assert_array_equal(mask[1:-1, 1:-1], image[1:-1, 1:-1] == BG_A)
    assert not mask[0, :].any() and not mask[:, 0].any()
    assert not mask[-1, :].any() and not mask[:, -1].any()
    assert not SingleColourMatcher().ambiguous_mask(image).any()
