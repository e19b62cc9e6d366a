#!/usr/bin/env python3
"""
PhotoMap - An image gallery placed on a map
Turns a directory of photos into a KML (or KMZ) document
"""

import argparse
import os
import sys
import tempfile
from typing import List, Optional

from .archive import zip_folder_contents
from .config import Config
from .document import KMZ_NAME, build_document, write_document
from .indexer import index_images
from .kml import RenderMode, mode_names
from .order import sort_by_time
from .overrides import OverrideFileError, load_overrides
from .paths import join_paths, normalize_path
from .prepare import ICON_MAX_SIZE, IMAGE_MAX_SIZE, prepare_assets


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='photomap',
        description='PhotoMap - Place your photos on a map (KML/KMZ)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Photos for Google Earth web, sorted by time and connected by a path
  photomap -i /path/to/photos -o ./my-map --timesort --path

  # Single KMZ file with the photos projected into the 3D view
  photomap -i /path/to/photos -o ./my-map --mode photo-overlay --kmz

  # Fix locations and times with a data file
  photomap -i /path/to/photos -o ./my-map --data overrides.yaml
        """
    )

    parser.add_argument(
        '-i', '--input',
        required=True,
        help='Input directory with images'
    )

    parser.add_argument(
        '-o', '--output',
        required=True,
        help='Output directory for the KML document and copied files'
    )

    parser.add_argument(
        '--mode',
        default=RenderMode.GX_CAROUSEL.value,
        choices=mode_names(),
        metavar='MODE',
        help='How images are shown, depending on the app: %s (default: %s)' % (
            ', '.join(mode_names()), RenderMode.GX_CAROUSEL.value
        )
    )

    parser.add_argument(
        '--data',
        help='JSON or YAML file with custom image information (has priority over EXIF)'
    )

    parser.add_argument(
        '--timesort',
        action='store_true',
        help='Sort images by time (DateTimeOriginal, eventually DateTime)'
    )

    parser.add_argument(
        '--path',
        action='store_true',
        help='Generate a path connecting the images (--timesort is recommended)'
    )

    parser.add_argument(
        '--include-no-location',
        action='store_true',
        help='Do not skip images with no location (they are placed on [0,0])'
    )

    parser.add_argument(
        '--kmz',
        action='store_true',
        help='Create a KMZ file (zip the output directory)'
    )

    parser.add_argument(
        '--base64',
        action='store_true',
        help='Embed images in base64 in the KML file'
    )

    parser.add_argument(
        '--name',
        default='',
        help='Project name'
    )

    parser.add_argument(
        '--maxsize',
        type=int,
        default=IMAGE_MAX_SIZE,
        help=f'Resize internal images to fit into a MAXSIZE x MAXSIZE box (default: {IMAGE_MAX_SIZE})'
    )

    parser.add_argument(
        '--iconsize',
        type=int,
        default=ICON_MAX_SIZE,
        help=f'Resize icons to fit into an ICONSIZE x ICONSIZE box (default: {ICON_MAX_SIZE})'
    )

    parser.add_argument(
        '--prefer-internal',
        action='store_true',
        help='Use local files even when an external URL is given'
    )

    parser.add_argument(
        '--prefer-external-icons',
        action='store_true',
        help='Use external URLs for icons when they are given'
    )

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """
    Build the run configuration and load the data file.

    Raises:
        OverrideFileError: if the data file cannot be used
    """
    overrides = ()
    if args.data:
        overrides = tuple(load_overrides(normalize_path(args.data)))

    return Config(
        input_dir=normalize_path(args.input),
        output_dir=normalize_path(args.output),
        mode=RenderMode.from_name(args.mode),
        overrides=overrides,
        sort_by_time=args.timesort,
        generate_path=args.path,
        include_no_location=args.include_no_location,
        kmz=args.kmz,
        base64_images=args.base64,
        name=args.name,
        image_max_size=args.maxsize,
        icon_max_size=args.iconsize,
        prefer_external_image=not args.prefer_internal,
        prefer_external_icon=args.prefer_external_icons,
    )


def run(config: Config) -> str:
    """
    Run the whole pipeline and return the path of the written document
    (the KMZ archive if one was requested).
    """
    print("Indexing images...")
    images = index_images(
        config.input_dir,
        config.overrides,
        config.prefer_external_image,
        config.prefer_external_icon,
    )
    print(f"\nFound {len(images)} images")

    with tempfile.TemporaryDirectory(prefix="photo-map") as scratch_dir:
        print("Preparing images...")
        images = prepare_assets(
            images,
            normalize_path(scratch_dir),
            config.image_max_size,
            config.icon_max_size,
        )

        if config.sort_by_time:
            images = sort_by_time(images)

        print("Generating KML document...")
        root = build_document(images, config)
        result = write_document(root, config.output_dir)

    if config.kmz:
        print("Creating KMZ file...")
        result = join_paths(config.output_dir, KMZ_NAME)
        zip_folder_contents(config.output_dir, result)

    print("Done!")
    return result


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.maxsize < 1 or args.iconsize < 1:
        parser.error("--maxsize and --iconsize must be positive")

    # Validate input directory
    if not os.path.isdir(args.input):
        print(f"Error: Directory not found: {args.input}")
        sys.exit(1)

    try:
        config = config_from_args(args)
    except OverrideFileError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    print("\n🗺️  PhotoMap - An image gallery placed on a map\n")
    run(config)


if __name__ == '__main__':
    main()
