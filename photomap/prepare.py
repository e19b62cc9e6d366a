"""Resized images and icons in a scratch directory, and copying them out."""

import os
from dataclasses import replace
from typing import List, Optional, Sequence

from PIL import Image, ImageOps

from .asset import ImageAsset, internal_href
from .paths import (
    base64_data_uri,
    copy_file,
    create_file,
    extension,
    image_mime_type,
    join_paths,
)

IMAGE_MAX_SIZE = 1600
ICON_MAX_SIZE = 64
JPEG_QUALITY = 75

# Formats Pillow writes back under the original extension
SAVE_FORMATS = {
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
    'image/gif': 'GIF',
    'image/tiff': 'TIFF',
    'image/webp': 'WEBP',
}

JPEG_EXTENSIONS = {'jpg', 'jpeg', 'jpe', 'jif', 'jfif', 'jfi'}


def open_oriented(source_path: str) -> Image.Image:
    """Open an image and apply its EXIF orientation."""
    with Image.open(source_path) as img:
        return ImageOps.exif_transpose(img)


def _output_format(rel_path: str):
    try:
        fmt = SAVE_FORMATS.get(image_mime_type(rel_path))
    except ValueError:
        fmt = None
    if fmt is None:
        return f"{rel_path}.jpg", 'JPEG'
    return rel_path, fmt


def _save(img: Image.Image, full_path: str, fmt: str) -> None:
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    if fmt == 'JPEG':
        if img.mode != "RGB":
            img = img.convert("RGB")
        img.save(full_path, format='JPEG', quality=JPEG_QUALITY)
        return
    if fmt == 'PNG' and img.mode not in ("1", "L", "LA", "P", "RGB", "RGBA"):
        img = img.convert("RGBA")
    img.save(full_path, format=fmt)


def write_resized(img: Image.Image, scratch_dir: str, rel_path: str, max_size: int) -> str:
    """
    Write a copy that fits into a max_size x max_size box.

    Returns the path of the written file relative to scratch_dir.
    """
    out_path, fmt = _output_format(rel_path)
    resized = img.copy()
    resized.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
    _save(resized, join_paths(scratch_dir, out_path), fmt)
    return out_path


def write_icon(img: Image.Image, scratch_dir: str, icon_path: str, max_size: int) -> str:
    """Write a PNG icon and return its path relative to scratch_dir."""
    out_path = f"{icon_path}.png"
    icon = img.copy()
    icon.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
    _save(icon, join_paths(scratch_dir, out_path), 'PNG')
    return out_path


def write_embedded_thumbnail(thumbnail: bytes, scratch_dir: str, icon_path: str) -> str:
    """Write EXIF thumbnail bytes as they are. They are always JPEG data."""
    out_path = icon_path
    if extension(icon_path) not in JPEG_EXTENSIONS:
        out_path = f"{icon_path}.jpg"
    with create_file(join_paths(scratch_dir, out_path)) as f:
        f.write(thumbnail)
    return out_path


def _copy_original(source_path: str, scratch_dir: str, rel_path: str) -> None:
    target = join_paths(scratch_dir, rel_path)
    if os.path.exists(target):
        return
    try:
        copy_file(source_path, target)
    except OSError as exc:
        print(f"Warning: Could not copy {source_path}: {exc}")


def _prepare_image(
    img: Optional[Image.Image],
    source_path: str,
    scratch_dir: str,
    rel_path: str,
    max_size: int,
) -> str:
    if img is not None:
        try:
            return write_resized(img, scratch_dir, rel_path, max_size)
        except (OSError, ValueError) as exc:
            print(f"Warning: Could not resize {source_path}: {exc}")
    _copy_original(source_path, scratch_dir, rel_path)
    return rel_path


def _prepare_icon(
    img: Optional[Image.Image],
    asset: ImageAsset,
    source_path: str,
    scratch_dir: str,
    image_path: str,
    max_size: int,
) -> str:
    if img is not None:
        try:
            return write_icon(img, scratch_dir, asset.icon_path, max_size)
        except (OSError, ValueError) as exc:
            print(f"Warning: Could not generate thumbnail for {source_path}: {exc}")

    if asset.thumbnail:
        try:
            return write_embedded_thumbnail(asset.thumbnail, scratch_dir, asset.icon_path)
        except OSError as exc:
            print(f"Warning: Could not write embedded thumbnail for {source_path}: {exc}")

    # the image itself becomes the icon
    _copy_original(source_path, scratch_dir, image_path)
    return image_path


def prepare_asset(
    asset: ImageAsset,
    scratch_dir: str,
    image_max_size: int = IMAGE_MAX_SIZE,
    icon_max_size: int = ICON_MAX_SIZE,
) -> ImageAsset:
    """
    Create the resized image and the icon of an internal asset in scratch_dir.

    Failures are reported and never fatal: an image that cannot be opened is
    copied as it is, and an icon falls back to the embedded EXIF thumbnail
    or to the image itself.
    """
    if not asset.is_image_internal and not asset.is_icon_internal:
        return asset

    source_path = join_paths(asset.root_dir, asset.path)
    try:
        img = open_oriented(source_path)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        print(f"Warning: Could not open {source_path}: {exc}")
        img = None

    path = asset.path
    image_href = asset.image_href
    if asset.is_image_internal:
        path = _prepare_image(img, source_path, scratch_dir, asset.path, image_max_size)
        image_href = internal_href(path)

    icon_path = asset.icon_path
    icon_href = asset.icon_href
    if asset.is_icon_internal:
        icon_path = _prepare_icon(img, asset, source_path, scratch_dir, path, icon_max_size)
        icon_href = internal_href(icon_path)

    return replace(
        asset,
        root_dir=scratch_dir,
        path=path,
        icon_path=icon_path,
        image_href=image_href,
        icon_href=icon_href,
    )


def prepare_assets(
    assets: Sequence[ImageAsset],
    scratch_dir: str,
    image_max_size: int = IMAGE_MAX_SIZE,
    icon_max_size: int = ICON_MAX_SIZE,
) -> List[ImageAsset]:
    return [
        prepare_asset(asset, scratch_dir, image_max_size, icon_max_size)
        for asset in assets
    ]


def _collect(src: str, output_dir: str, href: str) -> None:
    try:
        copy_file(src, join_paths(output_dir, href))
    except OSError as exc:
        print(f"Warning: Could not copy {src}: {exc}")


def collect_files(asset: ImageAsset, output_dir: str) -> None:
    """Copy the internal image and icon to where their hrefs point."""
    if asset.is_image_internal:
        _collect(join_paths(asset.root_dir, asset.path), output_dir, asset.image_href)
    if asset.is_icon_internal:
        _collect(join_paths(asset.root_dir, asset.icon_path), output_dir, asset.icon_href)


def _data_uri_or_copy(src: str, output_dir: str, href: str) -> str:
    try:
        return base64_data_uri(src)
    except (OSError, ValueError) as exc:
        print(f"Warning: Could not embed {src}, copying it instead: {exc}")
    _collect(src, output_dir, href)
    return href


def embed_base64(asset: ImageAsset, output_dir: str) -> ImageAsset:
    """
    Replace internal hrefs by base64 data URIs.

    A slot that cannot be embedded (unknown MIME type, unreadable file) is
    copied to the output directory instead and keeps its href.
    """
    image_href = asset.image_href
    icon_href = asset.icon_href
    if asset.is_image_internal:
        image_href = _data_uri_or_copy(
            join_paths(asset.root_dir, asset.path), output_dir, asset.image_href
        )
    if asset.is_icon_internal:
        icon_href = _data_uri_or_copy(
            join_paths(asset.root_dir, asset.icon_path), output_dir, asset.icon_href
        )
    return replace(asset, image_href=image_href, icon_href=icon_href)
