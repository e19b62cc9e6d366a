"""User supplied image data from a JSON or YAML file.

Values from the data file have priority over the EXIF of the image. Each
record is a plain mapping; the recognized keys are::

    file          path of the image, relative to the input directory
    external      URL of the image (also used for the icon)
    externalIcon  URL of the icon
    dateTime      "YYYY:MM:DD HH:MM:SS"
    timeZone      IANA zone name, e.g. "Europe/Prague"
    latitude      number
    longitude     number

Records with "external" and without "file" describe images that only exist
remotely.
"""

import json
import numbers
import os
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .asset import ImageAsset
from .exif import local_timezone, parse_exif_datetime
from .paths import normalize_path

OverrideRecord = Dict[str, Any]

ITEMS_KEYS = ('items', 'files')

# Any fixed date works; DST on the photo's own date is not taken into account.
ZONE_REFERENCE_DATE = (2000, 1, 1)


class OverrideFileError(ValueError):
    """The data file cannot be used."""


def load_overrides(path: str) -> List[OverrideRecord]:
    """
    Load override records from a JSON or YAML data file.

    Raises:
        OverrideFileError: if the file cannot be read or parsed, or has no
            list under "items" (or "files")
    """
    ext = os.path.splitext(path)[1].lower()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if ext == '.json':
                data = json.load(f)
            elif ext in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                raise OverrideFileError(f"Unsupported data file type: {path}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise OverrideFileError(f"Cannot load data file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise OverrideFileError(f"Data file {path} must contain an object")

    for key in ITEMS_KEYS:
        if key in data:
            items = data[key]
            break
    else:
        raise OverrideFileError("Cannot find key 'items' in the data file.")

    if not isinstance(items, list):
        raise OverrideFileError(f"Key '{key}' in the data file must hold a list")

    records = []
    for item in items:
        if not isinstance(item, dict):
            print(f"Warning: Skipping data file entry that is not an object: {item!r}")
            continue
        records.append({str(k): v for k, v in item.items()})
    return records


def find_override(records: Sequence[OverrideRecord], path: str) -> Optional[OverrideRecord]:
    """Return the first record whose "file" matches the relative path."""
    wanted = normalize_path(path)
    for record in records:
        file = record.get('file')
        if isinstance(file, str) and normalize_path(file) == wanted:
            return record
    return None


def is_external_record(record: OverrideRecord) -> bool:
    return isinstance(record.get('external'), str) and 'file' not in record


def to_float(value: Any) -> float:
    """
    Convert any real number to float.

    Raises:
        TypeError: for booleans, strings and other non-numeric values
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"non-numeric value {value!r} could not be converted to float")
    return float(value)


def load_timezone(name: Any) -> Optional[tzinfo]:
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        print(f"Warning: Unknown time zone {name!r}: {exc}")
        return None


def shift_timezone(timestamp: datetime, zone: tzinfo) -> datetime:
    """
    Move a timestamp by the UTC offset difference between its zone and zone.

    The offsets are compared at a fixed reference date, so the wall clock
    changes by exactly the zone delta on that date.
    """
    old_zone = timestamp.tzinfo or local_timezone()
    reference_old = datetime(*ZONE_REFERENCE_DATE, tzinfo=old_zone)
    reference_new = datetime(*ZONE_REFERENCE_DATE, tzinfo=zone)
    return timestamp + (reference_old - reference_new)


def _override_timestamp(asset: ImageAsset, record: OverrideRecord) -> Optional[datetime]:
    timestamp = asset.timestamp

    if 'dateTime' in record:
        zone = None
        if 'timeZone' in record:
            zone = load_timezone(record['timeZone'])
        value = record['dateTime']
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=zone or local_timezone())
        try:
            return parse_exif_datetime(value, zone)
        except ValueError as exc:
            print(f"Warning: Invalid dateTime for {asset.label}: {exc}")
            return timestamp

    if 'timeZone' in record and timestamp is not None:
        zone = load_timezone(record['timeZone'])
        if zone is not None:
            return shift_timezone(timestamp, zone)

    return timestamp


def _override_axis(asset: ImageAsset, record: OverrideRecord, key: str, value: float, present: bool):
    if key not in record:
        return value, present
    try:
        return to_float(record[key]), True
    except TypeError as exc:
        print(f"Warning: Invalid {key} for {asset.label}: {exc}")
        return 0.0, False


def _override_url(asset: ImageAsset, record: OverrideRecord, key: str) -> Optional[str]:
    value = record.get(key)
    if key in record and not isinstance(value, str):
        print(f"Warning: Invalid {key} for {asset.label or 'data file entry'}: {value!r} is not a URL")
        return None
    return value


def apply_override(asset: ImageAsset, record: OverrideRecord) -> ImageAsset:
    """
    Return a copy of the asset with the record's values applied.

    Fields are applied in a fixed order: external URLs, dateTime (with
    timeZone), timeZone alone, latitude, longitude. Keys the record does not
    have leave the asset's values untouched.
    """
    external_url = asset.external_url
    external_icon_url = asset.external_icon_url
    url = _override_url(asset, record, 'external')
    if url is not None:
        external_url = external_icon_url = url
    icon_url = _override_url(asset, record, 'externalIcon')
    if icon_url is not None:
        external_icon_url = icon_url

    timestamp = _override_timestamp(asset, record)

    latitude, has_latitude = _override_axis(
        asset, record, 'latitude', asset.latitude, asset.has_latitude
    )
    longitude, has_longitude = _override_axis(
        asset, record, 'longitude', asset.longitude, asset.has_longitude
    )

    return replace(
        asset,
        external_url=external_url,
        external_icon_url=external_icon_url,
        timestamp=timestamp,
        latitude=latitude,
        longitude=longitude,
        has_latitude=has_latitude,
        has_longitude=has_longitude,
    )
