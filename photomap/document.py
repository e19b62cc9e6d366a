"""Assemble the KML document from the prepared assets and write it out."""

import os
from dataclasses import replace
from typing import Sequence

from lxml import etree

from .asset import ImageAsset
from .config import Config
from .kml import kml_document, path_placemark
from .order import path_coordinates
from .paths import create_file, join_paths
from .prepare import collect_files, embed_base64

DOC_NAME = "doc.kml"
KMZ_NAME = "doc.kmz"


def describe(asset: ImageAsset) -> str:
    """Text shown with the placemark: the capture time."""
    text = str(asset.timestamp) if asset.has_timestamp else "Unknown time"
    if not asset.has_location:
        text += " (no location)"
    return text


def build_document(assets: Sequence[ImageAsset], config: Config) -> etree._Element:
    """
    Render the assets, in their given order, into a new KML tree.

    Internal files are copied to the output directory (or embedded as
    base64) for every placemark that is emitted. Images without a location
    are reported and only emitted when config.include_no_location is set.
    """
    root, document = kml_document(config.name)

    if config.generate_path:
        coordinates = path_coordinates(assets, config.include_no_location)
        if len(coordinates) > 1:
            document.append(path_placemark(coordinates))
        else:
            print("Warning: Not enough located images to draw a path")

    for index, asset in enumerate(assets):
        if not asset.has_location:
            print(f"Warning: {asset.label} has no location")
            if not config.include_no_location:
                continue

        if config.base64_images:
            asset = embed_base64(asset, config.output_dir)
        else:
            collect_files(asset, config.output_dir)

        asset = replace(asset, name=str(index + 1), description=describe(asset))
        document.append(config.mode.render(asset))

    return root


def write_document(root: etree._Element, output_dir: str) -> str:
    """Write the tree as doc.kml and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    doc_path = join_paths(output_dir, DOC_NAME)
    with create_file(doc_path) as f:
        f.write(etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True))
    print(f"\nKML document saved to: {doc_path}")
    return doc_path
