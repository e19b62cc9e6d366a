#!/usr/bin/env python3
"""
Create sample photos with GPS EXIF data and a data file for testing PhotoMap
"""

import io
import os
from datetime import datetime, timedelta

from PIL import Image
import piexif
import yaml


def decimal_to_dms(decimal):
    """Convert decimal degrees to degrees, minutes, seconds rationals."""
    decimal = abs(decimal)
    degrees = int(decimal)
    minutes_decimal = (decimal - degrees) * 60
    minutes = int(minutes_decimal)
    seconds = round((minutes_decimal - minutes) * 60 * 10000)
    return ((degrees, 1), (minutes, 1), (seconds, 10000))


def create_sample_photo(filename, latitude=None, longitude=None, timestamp=None,
                        size=(400, 300), orientation=None, thumbnail=False,
                        image_format='JPEG'):
    """
    Create a photo with optional GPS position, capture time, orientation and
    embedded EXIF thumbnail. The photo is a JPEG unless image_format says
    otherwise.
    """
    img = Image.new('RGB', size, color='skyblue')

    exif_dict = {"0th": {}, "Exif": {}, "GPS": {}}

    if latitude is not None and longitude is not None:
        exif_dict["GPS"] = {
            piexif.GPSIFD.GPSLatitude: decimal_to_dms(latitude),
            piexif.GPSIFD.GPSLatitudeRef: b'N' if latitude >= 0 else b'S',
            piexif.GPSIFD.GPSLongitude: decimal_to_dms(longitude),
            piexif.GPSIFD.GPSLongitudeRef: b'E' if longitude >= 0 else b'W',
        }

    if timestamp is not None:
        exif_dict["Exif"][piexif.ExifIFD.DateTimeOriginal] = (
            timestamp.strftime('%Y:%m:%d %H:%M:%S').encode()
        )

    if orientation is not None:
        exif_dict["0th"][piexif.ImageIFD.Orientation] = orientation

    if thumbnail:
        thumb = Image.new('RGB', (16, 12), color='orange')
        buffer = io.BytesIO()
        thumb.save(buffer, format='JPEG')
        exif_dict["1st"] = {
            piexif.ImageIFD.XResolution: (72, 1),
            piexif.ImageIFD.YResolution: (72, 1),
        }
        exif_dict["thumbnail"] = buffer.getvalue()

    os.makedirs(os.path.dirname(os.path.abspath(filename)), exist_ok=True)
    img.save(filename, image_format, exif=piexif.dump(exif_dict))
    return filename


def main():
    output_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sample_photos")
    os.makedirs(output_dir, exist_ok=True)

    # Prague -> Brno -> Vienna, the last one without GPS
    locations = [
        (50.0875, 14.4213, "Prague"),
        (49.1951, 16.6068, "Brno"),
        (None, None, "Vienna"),
    ]

    base_time = datetime(2024, 7, 15, 9, 0, 0)

    for i, (lat, lon, name) in enumerate(locations):
        timestamp = base_time + timedelta(hours=i * 2)
        filename = os.path.join(output_dir, f"photo_{i+1:02d}_{name}.jpg")
        create_sample_photo(filename, lat, lon, timestamp, thumbnail=True)
        print(f"Created: {filename}")

    data = {
        "items": [
            {
                "file": "photo_03_Vienna.jpg",
                "latitude": 48.2082,
                "longitude": 16.3738,
                "timeZone": "Europe/Vienna",
            },
            {
                "external": "https://upload.wikimedia.org/wikipedia/commons/3/3b/Bratislava_Castle.jpg",
                "dateTime": "2024:07:15 17:00:00",
                "timeZone": "Europe/Bratislava",
                "latitude": 48.1423,
                "longitude": 17.1000,
            },
        ]
    }
    data_path = os.path.join(output_dir, "data.yaml")
    with open(data_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, sort_keys=False)

    print(f"\n✅ Created {len(locations)} sample photos in: {output_dir}")
    print(f"\nTest the app with:")
    print(f"  photomap -i {output_dir} -o ./my-map --data {data_path} --timesort --path")


if __name__ == '__main__':
    main()
