#!/usr/bin/env python3
"""
Background Cutout Tool - Command Line Interface

Removes a solid-color background (such as a green screen or a flat black
backdrop) from images, making it transparent, and optionally erodes the
edge of the cutout to remove a fringe of background-tinted pixels.

Two removal modes are available. "global" removes every pixel close to the
background color. "flood" only removes background connected to the image
corners, so background-colored details inside the subject are kept.
"""

from collections.abc import Iterator
from pathlib import Path

import click

from bgcutout.alpha_processing import alpha_coverage
from bgcutout.api import (
    DEFAULT_ERODE_STRENGTH,
    DEFAULT_MODE,
    DEFAULT_TARGET_COLOR,
    DEFAULT_TOLERANCE,
    RemovalError,
    RemovalRequest,
    RemovalResponse,
    process_request,
)
from bgcutout.color_classification import parse_hex_color
from bgcutout.image_io import cutout_path, load_rgba, save_debug_images, save_rgba
from bgcutout.removal import REMOVAL_MODES
from bgcutout.visualization import label_regions
from bgcutout.worker import RemovalWorker


def _run_requests(requests: list[RemovalRequest], jobs: int) -> Iterator[RemovalResponse]:
    """Process requests in-process, or in a worker pool when more than one job is allowed."""
    if jobs > 1 and len(requests) > 1:
        with RemovalWorker(max_workers=jobs) as worker:
            yield from worker.process_all(requests)
    else:
        for request in requests:
            yield process_request(request)


@click.command(context_settings=dict(show_default=True))
@click.argument('input_paths', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default='.',
              help='Directory where cutout images will be saved')
@click.option('--mode', '-m', type=click.Choice(REMOVAL_MODES), default=DEFAULT_MODE,
              help='Remove all background-colored pixels (global) or only those connected to a corner (flood)')
@click.option('--color', '-c', default=DEFAULT_TARGET_COLOR,
              help='Background color as #RRGGBB; #00FF00 uses the green-screen rule')
@click.option('--tolerance', '-t', type=float, default=DEFAULT_TOLERANCE,
              help='Color tolerance in percent (0-100)')
@click.option('--erode', '-e', 'erode_strength', type=int, default=DEFAULT_ERODE_STRENGTH,
              help='Number of edge erosion passes')
@click.option('--jobs', '-j', type=click.IntRange(min=1), default=1,
              help='Number of worker processes')
@click.option('--debug', '-d', is_flag=True, help='Save classification masks and previews for debugging')
def main(input_paths: tuple[str, ...], output_dir: str, mode: str, color: str, tolerance: float,
         erode_strength: int, jobs: int, debug: bool) -> None:
    """Make the solid-color background of images transparent.

    INPUT_PATHS are the images to process. Each result is saved as
    '<name>_cutout.png' in the output directory.
    """
    if parse_hex_color(color, default=None) is None:
        click.echo(f"Warning: Could not parse color '{color}', using black (#000000)", err=True)

    # Load the images
    originals = {}
    requests = []
    output_owners: dict[Path, str] = {}
    for input_path in input_paths:
        output_path = cutout_path(input_path, output_dir)
        if output_path in output_owners:
            click.echo(f"Error: {input_path} would overwrite the cutout of {output_owners[output_path]} "
                       f"({output_path}), skipping", err=True)
            continue
        output_owners[output_path] = input_path

        try:
            rgba = load_rgba(input_path)
        except ValueError as e:
            click.echo(f"Error: {input_path}: {e}", err=True)
            continue
        if rgba is None:
            click.echo(f"Error: Could not load image from {input_path}", err=True)
            continue
        click.echo(f"Loaded {input_path} ({rgba.shape[1]}x{rgba.shape[0]})")

        originals[input_path] = rgba
        requests.append(RemovalRequest(
            id=input_path,
            pixels=rgba.copy(),
            width=rgba.shape[1],
            height=rgba.shape[0],
            removal_mode=mode,
            target_color=color,
            color_tolerance=tolerance,
            erode_strength=erode_strength,
        ))

    # Setup debug directory if needed
    debug_dir = None
    if debug:
        debug_dir = Path(output_dir) / "debug"
        click.echo(f"Debug mode enabled, saving intermediate images to '{debug_dir}'")

    try:
        for response in _run_requests(requests, jobs):
            input_path = response.id
            result = response.pixels
            output_path = cutout_path(input_path, output_dir)
            save_rgba(result, output_path)
            click.echo(f"{input_path}: {alpha_coverage(result[:, :, 3]):.1%} opaque, saved to {output_path}")

            if debug_dir:
                mask = save_debug_images(originals[input_path], result, Path(input_path).stem,
                                         debug_dir, color, tolerance)
                num_regions, _labels = label_regions(mask)
                click.echo(f"  {num_regions} background region(s) detected")

    except RemovalError as e:
        raise click.ClickException(f"Could not process images: {e}")

    failed = len(input_paths) - len(requests)
    if failed:
        raise click.ClickException(f"{failed} image(s) were skipped")


if __name__ == "__main__":
    main()
