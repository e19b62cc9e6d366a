"""Build ImageAssets from an input directory and the data file."""

import os
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from .asset import THUMBNAILS_DIR, ImageAsset, resolve_references
from .exif import ExtractedMetadata, extract_metadata
from .overrides import OverrideRecord, apply_override, find_override, is_external_record
from .paths import is_image, join_paths, normalize_path


def iter_image_paths(root_dir: str) -> Iterable[str]:
    """
    Yield root-relative paths of supported images in a directory tree.

    Entries are visited in name order, the files of a directory before its
    subdirectories. .thumbnails directories are not descended into.
    """
    root_dir = normalize_path(root_dir)
    for current, dirs, files in os.walk(root_dir):
        dirs[:] = sorted(d for d in dirs if d != THUMBNAILS_DIR)
        for file in sorted(files):
            full_path = os.path.join(current, file)
            if is_image(file) and os.path.isfile(full_path):
                yield normalize_path(os.path.relpath(full_path, root_dir))


def apply_metadata(asset: ImageAsset, metadata: ExtractedMetadata) -> ImageAsset:
    """Copy the extracted EXIF values onto the asset."""
    changes = {'thumbnail': metadata.thumbnail}
    if metadata.timestamp is not None:
        changes['timestamp'] = metadata.timestamp
    if metadata.coordinates is not None:
        latitude, longitude = metadata.coordinates
        changes.update(
            latitude=latitude,
            longitude=longitude,
            has_latitude=True,
            has_longitude=True,
        )
    if metadata.dimensions is not None:
        changes['width'], changes['height'] = metadata.dimensions
    return replace(asset, **changes)


def prepare_internal_image(
    root_dir: str,
    rel_path: str,
    overrides: Sequence[OverrideRecord] = (),
    extract=extract_metadata,
) -> ImageAsset:
    """Create an asset for a local file: EXIF first, then the matching override."""
    asset = ImageAsset(
        path=rel_path,
        root_dir=root_dir,
        icon_path=join_paths(THUMBNAILS_DIR, rel_path),
    )
    asset = apply_metadata(asset, extract(join_paths(root_dir, rel_path)))

    record = find_override(overrides, rel_path)
    if record is not None:
        asset = apply_override(asset, record)
    return asset


def get_internal_images(
    root_dir: str,
    overrides: Sequence[OverrideRecord] = (),
    extract=extract_metadata,
) -> List[ImageAsset]:
    root_dir = normalize_path(root_dir)
    images = []
    for rel_path in iter_image_paths(root_dir):
        images.append(prepare_internal_image(root_dir, rel_path, overrides, extract))
        print(f"  ✓ {rel_path}")
    return images


def get_external_images(overrides: Sequence[OverrideRecord] = ()) -> List[ImageAsset]:
    """Assets for records that only point to a remote image."""
    return [
        apply_override(ImageAsset(), record)
        for record in overrides
        if is_external_record(record)
    ]


def warn_unmatched_overrides(images: Sequence[ImageAsset], overrides: Sequence[OverrideRecord]) -> None:
    known = {image.path for image in images if image.path}
    for record in overrides:
        file = record.get('file')
        if file is None:
            continue
        if not isinstance(file, str) or normalize_path(file) not in known:
            print(f"Warning: Data file entry {file!r} matches no image")


def index_images(
    root_dir: str,
    overrides: Optional[Sequence[OverrideRecord]] = None,
    prefer_external_image: bool = True,
    prefer_external_icon: bool = False,
    extract=extract_metadata,
) -> List[ImageAsset]:
    """
    Collect internal images from root_dir and purely external images from
    the override records, with document references already resolved.
    """
    overrides = list(overrides or ())
    images = get_internal_images(root_dir, overrides, extract)
    warn_unmatched_overrides(images, overrides)
    images.extend(get_external_images(overrides))

    return [
        resolve_references(image, prefer_external_image, prefer_external_icon)
        for image in images
    ]
