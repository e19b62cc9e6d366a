"""Chronological ordering and the path connecting the photos."""

from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from .asset import ImageAsset

# Sort key of images without a timestamp
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)

Coordinate = Tuple[float, float]


def sort_by_time(assets: Sequence[ImageAsset]) -> List[ImageAsset]:
    """
    Return the assets ordered by timestamp. Images without a timestamp are
    reported and sorted first; the order of equal timestamps is kept.
    """
    for asset in assets:
        if not asset.has_timestamp:
            print(f"Warning: {asset.label} has no dateTime")
    return sorted(assets, key=lambda asset: asset.timestamp or ZERO_TIME)


def path_coordinates(assets: Sequence[ImageAsset], include_no_location: bool = False) -> List[Coordinate]:
    """
    (longitude, latitude) pairs of the assets in their current order.

    Images without a location are skipped unless include_no_location is set,
    and a point equal to the previous one is dropped.
    """
    coordinates: List[Coordinate] = []
    for asset in assets:
        if not asset.has_location and not include_no_location:
            continue
        point = (asset.longitude, asset.latitude)
        if not coordinates or coordinates[-1] != point:
            coordinates.append(point)
    return coordinates
