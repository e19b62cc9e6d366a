"""Path helpers shared by the photo map pipeline."""

import base64
import os
import shutil
from pathlib import Path

IMAGE_EXTENSIONS = {
    'jpg', 'jpeg', 'jpe', 'jif', 'jfif', 'jfi',
    'png', 'gif', 'webp', 'tiff', 'tif', 'heif', 'heic',
}

IMAGE_MIME_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'jpe': 'image/jpeg',
    'jif': 'image/jpeg',
    'jfif': 'image/jpeg',
    'jfi': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'tiff': 'image/tiff',
    'tif': 'image/tiff',
    'heif': 'image/heif',
    'heic': 'image/heic',
}


def normalize_path(path: str) -> str:
    """Clean a path and convert it to forward slashes."""
    return os.path.normpath(path).replace(os.sep, '/')


def join_paths(*parts: str) -> str:
    """Join path segments and normalize the result."""
    return normalize_path(os.path.join(*parts))


def extension(path: str) -> str:
    """Lower case extension without the leading dot."""
    return Path(path).suffix.lower().lstrip('.')


def is_image(filename: str) -> bool:
    return extension(filename) in IMAGE_EXTENSIONS


def image_mime_type(path: str) -> str:
    """
    Return the MIME type for an image path based on its extension.

    Raises:
        ValueError: if the extension is not a known image type
    """
    ext = extension(path)
    try:
        return IMAGE_MIME_TYPES[ext]
    except KeyError:
        raise ValueError(f"Found no MIME type for: .{ext}") from None


def create_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def create_file(path: str):
    """Open a new file for binary writing, creating parent directories."""
    parent = os.path.dirname(path)
    if parent:
        create_dir(parent)
    return open(path, 'wb')


def copy_file(src: str, dst: str) -> None:
    """Copy a regular file. Parent directories of dst are created."""
    if not os.path.isfile(src):
        raise OSError(f"{src} is not a regular file")
    parent = os.path.dirname(dst)
    if parent:
        create_dir(parent)
    shutil.copyfile(src, dst)


def base64_data_uri(path: str) -> str:
    """Read an image file and return it as a base64 data URI."""
    mime_type = image_mime_type(path)
    with open(path, 'rb') as f:
        payload = base64.b64encode(f.read()).decode('ascii')
    return f"data:{mime_type};base64,{payload}"
