"""
End-to-end tests for the sprite_extractor library API.

Tests that the library can be used programmatically to extract sprites
without using the CLI.
"""

import numpy as np
import pytest

from sprite_extractor import (
    Borders,
    ExactPixelMatcher,
    ExtractorConfig,
    MatcherMode,
    NeighbourhoodPixelMatcher,
    ProcessedImage,
    create_matcher,
    extract_sprites,
)
from sprite_extractor.colours import argb
from sprite_extractor.config import BACKGROUND_COLOUR, HIGHLIGHT_COLOUR, REGION_OUTLINE_COLOUR
from sprite_extractor.errors import DimensionMismatch

BG_A = argb(10, 20, 30)
BG_B = argb(40, 50, 60)
SPRITE = argb(255, 0, 0)
OTHER = argb(0, 200, 0)


def _checkerboard(width: int, height: int) -> np.ndarray:
    ys, xs = np.mgrid[0:height, 0:width]
    return np.where((xs + ys) % 2 == 0, BG_A, BG_B).astype(np.uint32)


def _exact_config(**kwargs) -> ExtractorConfig:
    defaults = dict(matcher_mode=MatcherMode.EXACT, strictness=0,
                    region_width=6, region_height=6, region_offset_x=2, region_offset_y=2,
                    min_sprite_width=2, min_sprite_height=2)
    defaults.update(kwargs)
    return ExtractorConfig(**defaults).validate()


def _sprites(results):
    return [r for r in results if not r.is_debug]


def test_all_background_yields_nothing():
    background = np.full((10, 10), BG_A, dtype=np.uint32)
    config = _exact_config()

    results = list(extract_sprites(background.copy(), create_matcher(background, config),
                                   config=config))

    assert results == []


def test_single_block_yields_one_sprite():
    background = np.full((10, 10), BG_A, dtype=np.uint32)
    image = background.copy()
    image[4:6, 4:6] = SPRITE
    config = _exact_config()

    sprites = _sprites(extract_sprites(image, create_matcher(background, config), config=config))

    assert len(sprites) == 1
    result = sprites[0]
    assert isinstance(result, ProcessedImage)
    assert result.name == "sprite_0"
    assert result.image.dtype == np.uint32
    assert result.image.shape == (2, 2)
    assert (result.image == SPRITE).all()
    assert result.bbox == (4, 6, 4, 6)
    assert result.metadata["sprite_index"] == 0


def test_undersized_sprite_is_discarded():
    background = np.full((20, 20), BG_A, dtype=np.uint32)
    image = background.copy()
    image[6:12, 6:9] = SPRITE
    config = _exact_config(region_width=10, region_height=10,
                           min_sprite_width=4, min_sprite_height=4)

    assert _sprites(extract_sprites(image, create_matcher(background, config), config=config)) == []


def test_borders_are_trimmed_before_matching():
    background = np.full((24, 30), BG_A, dtype=np.uint32)
    image = background.copy()
    # Sprite-like junk in the margins must not be extracted
    image[0:4, :] = OTHER
    image[:, 27:] = OTHER
    image[10:13, 10:14] = SPRITE
    config = _exact_config(borders=Borders(left=0, top=4, right=3, bottom=0),
                           region_width=8, region_height=8)

    sprites = _sprites(extract_sprites(image, create_matcher(background, config), config=config))

    assert len(sprites) == 1
    assert sprites[0].image.shape == (3, 4)
    # bbox is relative to the trimmed image
    assert sprites[0].bbox == (6, 9, 10, 14)


def test_neighbourhood_extraction():
    background = _checkerboard(16, 16)
    image = _checkerboard(40, 40)
    image[10:15, 20:25] = SPRITE
    image[28:32, 6:10] = OTHER
    config = ExtractorConfig(strictness=5, region_width=15, region_height=15,
                             region_offset_x=5, region_offset_y=5).validate()

    sprites = _sprites(extract_sprites(image, create_matcher(background, config), config=config))

    assert [s.image.shape for s in sprites] == [(5, 5), (4, 4)]
    assert (sprites[0].image == SPRITE).all()
    assert (sprites[1].image == OTHER).all()
    assert [s.name for s in sprites] == ["sprite_0", "sprite_1"]


def test_full_strictness_keeps_unmatched_halo():
    background = _checkerboard(16, 16)
    image = _checkerboard(40, 40)
    image[10:15, 20:25] = SPRITE
    config = ExtractorConfig(strictness=8, region_width=15, region_height=15,
                             region_offset_x=5, region_offset_y=5).validate()

    sprites = _sprites(extract_sprites(image, NeighbourhoodPixelMatcher(background, 8),
                                       config=config))

    # Background pixels touching the sprite have an unseen neighbour
    assert len(sprites) == 1
    assert sprites[0].image.shape == (7, 7)
    assert sprites[0].bbox == (9, 16, 19, 26)


def test_highlight_ambiguous_pixels():
    background = np.full((12, 12), BG_A, dtype=np.uint32)
    image = background.copy()
    image[5, 5] = SPRITE
    config = _exact_config(strictness=8, highlight_ambiguous=True, region_width=8,
                           region_height=8, min_sprite_width=1, min_sprite_height=1)

    results = list(extract_sprites(image, create_matcher(background, config),
                                   config=config, debug=True))
    cleared = next(r for r in results if r.name == "debug_cleared")
    sprites = _sprites(results)

    assert cleared.image[4, 4] == HIGHLIGHT_COLOUR
    assert cleared.metadata["num_ambiguous"] == 8
    # The highlighted ring becomes part of the sprite
    assert len(sprites) == 1
    assert sprites[0].image.shape == (3, 3)
    assert sprites[0].image[1, 1] == SPRITE
    assert sprites[0].image[0, 0] == HIGHLIGHT_COLOUR


def test_debug_mode_yields_debug_images():
    background = np.full((10, 10), BG_A, dtype=np.uint32)
    image = background.copy()
    image[4:6, 4:6] = SPRITE
    config = _exact_config()

    results = list(extract_sprites(image, create_matcher(background, config),
                                   config=config, debug=True))
    debug_images = [r for r in results if r.is_debug]

    assert [r.name for r in debug_images] == ["debug_trimmed", "debug_cleared", "debug_regions"]
    for debug_img in debug_images:
        assert debug_img.bbox is None
        assert debug_img.image.shape == (10, 10)
    assert len(_sprites(results)) == 1
    # Debug images are yielded before the sprites
    assert results[-1].name == "sprite_0"


def test_draw_regions_replaces_sprites():
    background = np.full((10, 10), BG_A, dtype=np.uint32)
    image = background.copy()
    image[4:6, 4:6] = SPRITE
    config = _exact_config(draw_regions=True)

    results = list(extract_sprites(image, create_matcher(background, config), config=config))

    assert len(results) == 1
    assert results[0].name == "regions_overlay"
    assert not results[0].is_debug
    assert results[0].metadata == {"num_regions": 1}
    assert results[0].image[2, 2] == REGION_OUTLINE_COLOUR
    assert results[0].image[3, 3] == BACKGROUND_COLOUR


def test_exact_background_size_mismatch():
    background = np.full((10, 10), BG_A, dtype=np.uint32)
    matcher = ExactPixelMatcher(background, 0)

    with pytest.raises(DimensionMismatch):
        list(extract_sprites(np.full((12, 10), BG_A, dtype=np.uint32), matcher))


def test_extract_sprites_invalid_input():
    matcher = ExactPixelMatcher(np.full((10, 10), BG_A, dtype=np.uint32), 0)

    with pytest.raises(ValueError, match="image.*None"):
        list(extract_sprites(None, matcher))  # type: ignore

    with pytest.raises(ValueError, match="shape"):
        list(extract_sprites(np.zeros((10, 10, 4), dtype=np.uint8), matcher))

    with pytest.raises(ValueError, match="uint32"):
        list(extract_sprites(np.zeros((10, 10), dtype=np.int64), matcher))
