#!/usr/bin/env python3
"""
Sprite Extractor - Command Line Interface

Separates sprites from a known background texture in a folder of
screenshots, saving every distinct sprite as its own minimally cropped image.

The background is removed with one of two matchers. The exact matcher needs
a background image the same size as the screenshots and compares pixels at
the same position. The neighbourhood matcher learns, from a sample of the
background texture, which colours occur next to each other and accepts a
pixel when enough of its 8 neighbours fit that pattern.
"""

import logging
import sys
from pathlib import Path

import click

from sprite_extractor.batch import extract_directory
from sprite_extractor.colours import format_colour, parse_colour
from sprite_extractor.config import (
    BACKGROUND_COLOUR,
    HIGHLIGHT_COLOUR,
    MIN_SPRITE_HEIGHT,
    MIN_SPRITE_WIDTH,
    REGION_HEIGHT,
    REGION_OFFSET_X,
    REGION_OFFSET_Y,
    REGION_WIDTH,
    Borders,
    ExtractorConfig,
    MatcherMode,
    parse_strictness,
)
from sprite_extractor.errors import ConfigurationError, DecodeFailure
from sprite_extractor.image_io import load_image
from sprite_extractor.pixel_matching import create_matcher


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.command(context_settings=dict(show_default=True))
@click.argument('bg_image', type=click.Path(exists=True, dir_okay=False))
@click.argument('source_folder', type=click.Path(exists=True, file_okay=False))
@click.option('--mode', '-M', type=click.Choice([m.value for m in MatcherMode]),
              default=MatcherMode.NEIGHBOURHOOD.value, help='Background matcher to use')
@click.option('--strictness', '-s', type=str, default=None,
              help="Matching neighbours (0-8) required to remove a pixel. "
                   "'off' disables the neighbour check in exact mode; -1 selects exact mode. "
                   "Defaults to 8 in neighbourhood mode")
@click.option('--border-left', '-l', type=int, default=0, help='Ignored left margin (pixels)')
@click.option('--border-top', '-t', type=int, default=0, help='Ignored top margin (pixels)')
@click.option('--border-right', '-r', type=int, default=0, help='Ignored right margin (pixels)')
@click.option('--border-bottom', '-b', type=int, default=0, help='Ignored bottom margin (pixels)')
@click.option('--region-width', type=int, default=REGION_WIDTH, help='Width of a sprite region')
@click.option('--region-height', type=int, default=REGION_HEIGHT, help='Height of a sprite region')
@click.option('--offset-x', type=int, default=REGION_OFFSET_X,
              help='Distance a region starts left of the first pixel found')
@click.option('--offset-y', type=int, default=REGION_OFFSET_Y,
              help='Distance a region starts above the first pixel found')
@click.option('--background-colour', type=str, default=format_colour(BACKGROUND_COLOUR),
              help='Colour written over background pixels (0xAARRGGBB or #RRGGBB)')
@click.option('--min-width', type=int, default=MIN_SPRITE_WIDTH, help='Minimum sprite width')
@click.option('--min-height', type=int, default=MIN_SPRITE_HEIGHT, help='Minimum sprite height')
@click.option('--highlight-ambiguous', is_flag=True,
              help='Paint pixels that match the background colour but not its neighbourhood')
@click.option('--highlight-colour', type=str, default=format_colour(HIGHLIGHT_COLOUR),
              help='Colour for ambiguous pixels')
@click.option('--draw-regions', is_flag=True,
              help='Save each screenshot with its sprite regions framed instead of the sprites')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default='out',
              help='Directory for extracted sprites')
@click.option('--overwrite', is_flag=True, help='Replace existing sprite files')
@click.option('--verbose', '-v', is_flag=True, help='Log debugging information')
def main(bg_image: str, source_folder: str, mode: str, strictness: str | None,
         border_left: int, border_top: int, border_right: int, border_bottom: int,
         region_width: int, region_height: int, offset_x: int, offset_y: int,
         background_colour: str, min_width: int, min_height: int,
         highlight_ambiguous: bool, highlight_colour: str, draw_regions: bool,
         output_dir: str, overwrite: bool, verbose: bool) -> None:
    """Extract sprites from every screenshot in SOURCE_FOLDER.

    BG_IMAGE is the background texture. In exact mode it must be a screenshot
    of the bare background at the same size as the screenshots; in
    neighbourhood mode any sample of the texture will do.

    Sprites are saved as OUTPUT_DIR/<screenshot>_<n>.png. Identical
    screenshots and identical sprites are only processed once.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    # Configuration errors abort before any screenshot is touched
    try:
        if strictness is None:
            parsed_strictness = 8 if mode == MatcherMode.NEIGHBOURHOOD.value else None
        else:
            parsed_strictness = parse_strictness(strictness)
        config = ExtractorConfig(
            matcher_mode=MatcherMode(mode),
            strictness=parsed_strictness,
            borders=Borders(border_left, border_top, border_right, border_bottom),
            region_width=region_width,
            region_height=region_height,
            region_offset_x=offset_x,
            region_offset_y=offset_y,
            background_colour=parse_colour(background_colour),
            min_sprite_width=min_width,
            min_sprite_height=min_height,
            highlight_ambiguous=highlight_ambiguous,
            highlight_colour=parse_colour(highlight_colour),
            draw_regions=draw_regions,
        ).validate()
    except ConfigurationError as e:
        _fail(str(e))

    click.echo("Reading background texture")
    try:
        background = load_image(bg_image)
    except DecodeFailure as e:
        _fail(f"Unable to read background texture: {e}")
    click.echo(f"Loaded background with shape {background.shape}")

    click.echo("Producing pattern matcher")
    try:
        matcher = create_matcher(background, config)
    except ValueError as e:
        _fail(str(e))

    try:
        summary = extract_directory(source_folder, output_dir, matcher, config, overwrite=overwrite)
    except FileNotFoundError as e:
        _fail(str(e))

    click.echo(f"Processed {summary.screenshots_processed} screenshot(s), "
               f"skipped {summary.screenshots_duplicate} duplicate(s) "
               f"and {summary.screenshots_failed} unreadable")
    if draw_regions:
        click.echo(f"Region overlays saved to {Path(output_dir)}")
    else:
        click.echo(f"Saved {summary.sprites_saved} sprite(s) to {Path(output_dir)}, "
                   f"skipped {summary.sprites_duplicate} duplicate(s)")


if __name__ == "__main__":
    main()
