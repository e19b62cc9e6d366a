"""KML elements for the photo placemarks.

Every render mode turns one ImageAsset into one element appended to the
Document. The modes differ in how the full image is shown:

    photo-overlay       PhotoOverlay projected into the 3D view
    gx-carousel         gx:Carousel (Google Earth web)
    html-balloon        img tag in the balloon (Google Earth Pro)
    html-balloon-panel  balloon shown in the side panel (Google Earth web)
    description-image   img tag in the description (Google My Maps)
"""

import html
from enum import Enum
from typing import List, Sequence, Tuple

from lxml import etree
from lxml.builder import ElementMaker

from .asset import ImageAsset

KML_NS = "http://www.opengis.net/kml/2.2"
GX_NS = "http://www.google.com/kml/ext/2.2"
ATOM_NS = "http://www.w3.org/2005/Atom"
NSMAP = {None: KML_NS, "gx": GX_NS, "atom": ATOM_NS}

KML = ElementMaker(namespace=KML_NS, nsmap=NSMAP)
GX = ElementMaker(namespace=GX_NS, nsmap=NSMAP)

ICON_SCALE = 2.0
DESC_IMG_MAX_WIDTH = "800px"
DESC_IMG_MAX_HEIGHT = "800px"

PATH_NAME = "Path"
PATH_LINE_COLOR = "ff7fff00"  # aabbggrr
PATH_LINE_WIDTH = 4.0

OVERLAY_FOV = 20.0
OVERLAY_NEAR = 10
OVERLAY_CAMERA_ALTITUDE = 10
OVERLAY_CAMERA_TILT = 90

IMG_STYLE = (
    f"display: block; max-width: {DESC_IMG_MAX_WIDTH}; "
    f"max-height: {DESC_IMG_MAX_HEIGHT}; width: auto; height: auto;"
)


def _num(value: float) -> str:
    return format(round(value, 6), 'g')


def _html(factory, content: str) -> etree._Element:
    el = factory()
    el.text = etree.CDATA(content)
    return el


def _coordinates(coordinates: Sequence[Tuple[float, float]]) -> str:
    return " ".join(f"{lon},{lat}" for lon, lat in coordinates)


def _point(asset: ImageAsset) -> etree._Element:
    return KML.Point(KML.coordinates(_coordinates([(asset.longitude, asset.latitude)])))


def _icon_style(asset: ImageAsset) -> etree._Element:
    return KML.IconStyle(
        KML.scale(_num(ICON_SCALE)),
        KML.Icon(KML.href(asset.icon_href)),
    )


def _img_tag(asset: ImageAsset) -> str:
    return f'<img src="{html.escape(asset.image_href)}" style="{IMG_STYLE}" />'


def _balloon_html(asset: ImageAsset) -> str:
    return (
        "<!DOCTYPE html><html><head></head><body>\n"
        "<p><b>$[name]</b></p>\n"
        "<p>$[description]</p>\n"
        f"{_img_tag(asset)}\n"
        "</body></html>"
    )


def overlay_fov(width: int, height: int) -> Tuple[float, float]:
    """
    Horizontal (left, right) field of view for the image's aspect ratio.

    A zero width or height counts as a square image.
    """
    if width == 0 or height == 0:
        width = height = 1
    ratio = width / height
    return (-OVERLAY_FOV * ratio, OVERLAY_FOV * ratio)


def overlay_id(asset: ImageAsset) -> str:
    return f"photo-{asset.name}"


def photo_overlay_placemark(asset: ImageAsset) -> etree._Element:
    left_fov, right_fov = overlay_fov(asset.width, asset.height)
    element_id = overlay_id(asset)
    return KML.PhotoOverlay(
        {"id": element_id},
        KML.name(asset.name),
        KML.visibility("1"),
        KML.open("0"),
        _html(
            KML.description,
            "<!DOCTYPE html><html><head></head><body>\n"
            f'<a href="#{element_id};flyto">Click here to fly into photo</a><br>\n'
            "</body></html>",
        ),
        KML.Camera(
            KML.longitude(str(asset.longitude)),
            KML.latitude(str(asset.latitude)),
            KML.altitude(str(OVERLAY_CAMERA_ALTITUDE)),
            KML.tilt(str(OVERLAY_CAMERA_TILT)),
        ),
        KML.Style(
            _icon_style(asset),
            KML.BalloonStyle(KML.displayMode("hide")),
        ),
        KML.Icon(KML.href(asset.image_href)),
        KML.rotation("0"),
        KML.ViewVolume(
            KML.leftFov(_num(left_fov)),
            KML.rightFov(_num(right_fov)),
            KML.bottomFov(_num(-OVERLAY_FOV)),
            KML.topFov(_num(OVERLAY_FOV)),
            KML.near(str(OVERLAY_NEAR)),
        ),
        _point(asset),
        KML.shape("rectangle"),
    )


def gx_carousel_placemark(asset: ImageAsset) -> etree._Element:
    return KML.Placemark(
        KML.name(asset.name),
        _html(
            KML.description,
            "<!DOCTYPE html><html><head></head><body>\n"
            f"<p>{html.escape(asset.description)}</p>\n"
            "</body></html>",
        ),
        KML.Style(_icon_style(asset)),
        _point(asset),
        GX.Carousel(
            GX.Image(
                GX.ImageUrl(asset.image_href),
            ),
        ),
    )


def html_balloon_placemark(asset: ImageAsset) -> etree._Element:
    return KML.Placemark(
        KML.name(asset.name),
        KML.description(asset.description),
        KML.Style(
            _icon_style(asset),
            KML.BalloonStyle(_html(KML.text, _balloon_html(asset))),
        ),
        _point(asset),
    )


def html_balloon_panel_placemark(asset: ImageAsset) -> etree._Element:
    return KML.Placemark(
        KML.name(asset.name),
        KML.description(asset.description),
        KML.Style(
            _icon_style(asset),
            KML.BalloonStyle(
                _html(KML.text, _balloon_html(asset)),
                GX.displayMode("panel"),
            ),
        ),
        _point(asset),
    )


def description_image_placemark(asset: ImageAsset) -> etree._Element:
    return KML.Placemark(
        KML.name(asset.name),
        _html(
            KML.description,
            "<!DOCTYPE html><html><head></head><body>\n"
            f"<p>{html.escape(asset.description)}</p>\n"
            f"{_img_tag(asset)}\n"
            "</body></html>",
        ),
        KML.Style(_icon_style(asset)),
        _point(asset),
    )


class RenderMode(Enum):
    PHOTO_OVERLAY = "photo-overlay"
    GX_CAROUSEL = "gx-carousel"
    HTML_BALLOON = "html-balloon"
    HTML_BALLOON_PANEL = "html-balloon-panel"
    DESCRIPTION_IMAGE = "description-image"

    @classmethod
    def from_name(cls, name: str) -> "RenderMode":
        """
        Look up a mode by its name or by the name of the app it targets.

        Raises:
            ValueError: for an unknown mode
        """
        try:
            return cls(MODE_ALIASES.get(name, name))
        except ValueError:
            raise ValueError(f"Unknown mode: {name}") from None

    def render(self, asset: ImageAsset) -> etree._Element:
        return RENDERERS[self](asset)


# Names of the targeted apps, accepted as well
MODE_ALIASES = {
    "g-earth-photo-overlay": RenderMode.PHOTO_OVERLAY.value,
    "g-earth-web": RenderMode.GX_CAROUSEL.value,
    "g-earth-pro": RenderMode.HTML_BALLOON.value,
    "g-earth-web-panel": RenderMode.HTML_BALLOON_PANEL.value,
    "g-maps": RenderMode.DESCRIPTION_IMAGE.value,
}

RENDERERS = {
    RenderMode.PHOTO_OVERLAY: photo_overlay_placemark,
    RenderMode.GX_CAROUSEL: gx_carousel_placemark,
    RenderMode.HTML_BALLOON: html_balloon_placemark,
    RenderMode.HTML_BALLOON_PANEL: html_balloon_panel_placemark,
    RenderMode.DESCRIPTION_IMAGE: description_image_placemark,
}


def mode_names() -> List[str]:
    return [mode.value for mode in RenderMode] + list(MODE_ALIASES)


def kml_document(name: str = "") -> Tuple[etree._Element, etree._Element]:
    """Return a kml root element and its Document element."""
    document = KML.Document()
    if name:
        document.append(KML.name(name))
    return KML.kml(document), document


def path_placemark(coordinates: Sequence[Tuple[float, float]]) -> etree._Element:
    """A line connecting the given (longitude, latitude) points."""
    return KML.Placemark(
        KML.name(PATH_NAME),
        KML.Style(
            KML.LineStyle(
                KML.color(PATH_LINE_COLOR),
                KML.width(_num(PATH_LINE_WIDTH)),
            ),
        ),
        KML.LineString(
            KML.extrude("1"),
            KML.tessellate("1"),
            KML.coordinates(_coordinates(coordinates)),
        ),
    )
