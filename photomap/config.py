"""Run configuration, built once from the command line."""

from dataclasses import dataclass
from typing import Tuple

from .kml import RenderMode
from .overrides import OverrideRecord
from .prepare import ICON_MAX_SIZE, IMAGE_MAX_SIZE


@dataclass(frozen=True)
class Config:
    input_dir: str
    output_dir: str
    mode: RenderMode = RenderMode.GX_CAROUSEL
    overrides: Tuple[OverrideRecord, ...] = ()
    sort_by_time: bool = False
    generate_path: bool = False
    include_no_location: bool = False
    kmz: bool = False
    base64_images: bool = False
    name: str = ""
    image_max_size: int = IMAGE_MAX_SIZE
    icon_max_size: int = ICON_MAX_SIZE
    prefer_external_image: bool = True
    prefer_external_icon: bool = False
