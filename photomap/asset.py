"""The per-photo record that flows through the pipeline."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .paths import join_paths

FILES_DIR = "files"
THUMBNAILS_DIR = ".thumbnails"


@dataclass(frozen=True)
class ImageAsset:
    """
    One photo, backed by a local file, an external URL, or both.

    path and icon_path are relative to root_dir. image_href and icon_href are
    what ends up in the KML document; is_image_internal and is_icon_internal
    are only set by resolve_references().
    """

    path: str = ""
    root_dir: str = ""
    icon_path: str = ""

    external_url: str = ""
    external_icon_url: str = ""

    is_image_internal: bool = False
    is_icon_internal: bool = False
    image_href: str = ""
    icon_href: str = ""

    timestamp: Optional[datetime] = None
    latitude: float = 0.0
    longitude: float = 0.0
    has_latitude: bool = False
    has_longitude: bool = False

    width: int = 0
    height: int = 0
    thumbnail: Optional[bytes] = None

    name: str = ""
    description: str = ""

    @property
    def has_timestamp(self) -> bool:
        return self.timestamp is not None

    @property
    def has_location(self) -> bool:
        return self.has_latitude and self.has_longitude

    @property
    def label(self) -> str:
        return self.path or self.external_url


def internal_href(path: str) -> str:
    return join_paths(FILES_DIR, path)


def resolve_references(
    asset: ImageAsset,
    prefer_external_image: bool = True,
    prefer_external_icon: bool = False,
) -> ImageAsset:
    """
    Decide for the image and the icon whether the document references the
    local file or the external URL.

    A preference for the external URL only applies when one exists. Without a
    local path the external value is used, even if it is empty.
    """
    if (prefer_external_image and asset.external_url) or not asset.path:
        image_href, image_internal = asset.external_url, False
    else:
        image_href, image_internal = internal_href(asset.path), True

    if (prefer_external_icon and asset.external_icon_url) or not asset.icon_path:
        icon_href, icon_internal = asset.external_icon_url, False
    else:
        icon_href, icon_internal = internal_href(asset.icon_path), True

    return replace(
        asset,
        image_href=image_href,
        icon_href=icon_href,
        is_image_internal=image_internal,
        is_icon_internal=icon_internal,
    )
