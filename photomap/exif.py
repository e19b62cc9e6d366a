"""Extract timestamp, GPS position, size and thumbnail from photo EXIF data."""

import os
import struct
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from PIL import Image, UnidentifiedImageError
import piexif

# Optional HEIC/HEIF support
try:
    import pillow_heif
    pillow_heif.register_heif_opener()
except ImportError:
    pass

EXIF_TIME_FORMAT = '%Y:%m:%d %H:%M:%S'

LOCALTIME_PATH = '/etc/localtime'

# Orientations that rotate the image by 90 degrees
TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}


@dataclass(frozen=True)
class ExtractedMetadata:
    """Whatever could be read from a photo. Every field may be missing."""

    timestamp: Optional[datetime] = None
    coordinates: Optional[Tuple[float, float]] = None
    dimensions: Optional[Tuple[int, int]] = None
    thumbnail: Optional[bytes] = None


def local_timezone() -> tzinfo:
    """
    The host's time zone with its full DST rules.

    Read from the TZ variable, then from /etc/localtime. Only when neither
    names a usable zone is the current fixed UTC offset returned.
    """
    name = os.environ.get('TZ', '').lstrip(':')
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass

    try:
        with open(LOCALTIME_PATH, 'rb') as f:
            return ZoneInfo.from_file(f, key='localtime')
    except (OSError, ValueError):
        pass

    return datetime.now().astimezone().tzinfo


def parse_exif_datetime(value, tz: Optional[tzinfo] = None) -> datetime:
    """
    Parse an EXIF style "YYYY:MM:DD HH:MM:SS" value in the given timezone.

    Padding spaces and NUL bytes are stripped first. The local timezone is
    used when tz is None.

    Raises:
        ValueError: if the value does not match the EXIF layout
    """
    if isinstance(value, bytes):
        value = value.decode('ascii', errors='ignore')
    text = str(value).strip('\x00 ')
    parsed = datetime.strptime(text, EXIF_TIME_FORMAT)
    return parsed.replace(tzinfo=tz or local_timezone())


def _dms_to_decimal(dms) -> float:
    degrees, minutes, seconds = dms
    return (
        degrees[0] / degrees[1]
        + minutes[0] / (minutes[1] * 60)
        + seconds[0] / (seconds[1] * 3600)
    )


def get_decimal_coordinates(gps_info: Dict) -> Optional[Tuple[float, float]]:
    """
    Convert GPS coordinates from degrees/minutes/seconds to decimal format.

    Args:
        gps_info: Dictionary containing GPS EXIF data

    Returns:
        Tuple of (latitude, longitude) in decimal degrees, or None if invalid
    """
    try:
        lat = gps_info.get(piexif.GPSIFD.GPSLatitude)
        lat_ref = gps_info.get(piexif.GPSIFD.GPSLatitudeRef, b'N')
        lon = gps_info.get(piexif.GPSIFD.GPSLongitude)
        lon_ref = gps_info.get(piexif.GPSIFD.GPSLongitudeRef, b'E')

        if not lat or not lon:
            return None

        lat_decimal = _dms_to_decimal(lat)
        lon_decimal = _dms_to_decimal(lon)

        if lat_ref in (b'S', 'S'):
            lat_decimal = -lat_decimal
        if lon_ref in (b'W', 'W'):
            lon_decimal = -lon_decimal

        return (lat_decimal, lon_decimal)
    except (IndexError, KeyError, TypeError, ValueError, ZeroDivisionError):
        return None


def get_exif_timestamp(exif_dict: Dict, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Extract the capture time, preferring DateTimeOriginal over DateTime.

    EXIF carries no zone, so the value is read as local time unless tz is given.
    """
    candidates = (
        exif_dict.get("Exif", {}).get(piexif.ExifIFD.DateTimeOriginal),
        exif_dict.get("0th", {}).get(piexif.ImageIFD.DateTime),
    )
    for raw in candidates:
        if not raw:
            continue
        try:
            return parse_exif_datetime(raw, tz)
        except ValueError:
            continue
    return None


def _first_int(*values) -> int:
    for value in values:
        if isinstance(value, int) and value > 0:
            return value
    return 0


def get_exif_dimensions(exif_dict: Dict, fallback: Tuple[int, int] = (0, 0)) -> Optional[Tuple[int, int]]:
    """Pixel size as displayed, i.e. swapped for rotated orientations."""
    exif_ifd = exif_dict.get("Exif", {})
    zeroth = exif_dict.get("0th", {})

    width = _first_int(
        exif_ifd.get(piexif.ExifIFD.PixelXDimension),
        zeroth.get(piexif.ImageIFD.ImageWidth),
        fallback[0],
    )
    height = _first_int(
        exif_ifd.get(piexif.ExifIFD.PixelYDimension),
        zeroth.get(piexif.ImageIFD.ImageLength),
        fallback[1],
    )
    if not width or not height:
        return None

    if zeroth.get(piexif.ImageIFD.Orientation) in TRANSPOSED_ORIENTATIONS:
        width, height = height, width
    return (width, height)


def _header_dimensions(size: Tuple[int, int]) -> Optional[Tuple[int, int]]:
    return size if size[0] and size[1] else None


def extract_metadata(photo_path: str) -> ExtractedMetadata:
    """
    Extract timestamp, GPS coordinates, pixel size and embedded thumbnail.

    Missing or malformed tags only drop their own field. If the file or its
    EXIF block cannot be decoded at all, a warning is printed and whatever
    was collected so far is returned.
    """
    try:
        with Image.open(photo_path) as img:
            header_size = img.size
            exif_source = img.info.get('exif')
            # TIFF tags live in the file's own IFDs, which piexif reads directly
            if not exif_source and img.format == 'TIFF':
                exif_source = photo_path
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as exc:
        print(f"Warning: Could not read {photo_path}: {exc}")
        return ExtractedMetadata()

    if not exif_source:
        return ExtractedMetadata(dimensions=_header_dimensions(header_size))

    try:
        exif_dict = piexif.load(exif_source)
    except (OSError, ValueError, KeyError, IndexError, struct.error) as exc:
        print(f"Warning: EXIF of {photo_path} has a critical error: {exc}")
        return ExtractedMetadata(dimensions=_header_dimensions(header_size))

    return ExtractedMetadata(
        timestamp=get_exif_timestamp(exif_dict),
        coordinates=get_decimal_coordinates(exif_dict.get("GPS", {})),
        dimensions=get_exif_dimensions(exif_dict, header_size),
        thumbnail=exif_dict.get("thumbnail") or None,
    )
