"""Package the output directory into a KMZ (zip) archive."""

import os
import zipfile

from .paths import normalize_path


def zip_folder_contents(folder: str, out_path: str) -> int:
    """
    Zip everything under folder into out_path, keeping relative paths.

    The archive itself is skipped. Files that cannot be read or written are
    reported and left out. Returns the number of files archived.
    """
    folder = normalize_path(folder)
    out_abs = os.path.abspath(out_path)
    count = 0

    with zipfile.ZipFile(out_path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        for root, dirs, files in os.walk(folder):
            dirs.sort()
            for file in sorted(files):
                full_path = os.path.join(root, file)
                if os.path.abspath(full_path) == out_abs:
                    continue
                arcname = normalize_path(os.path.relpath(full_path, folder))
                try:
                    archive.write(full_path, arcname)
                except (OSError, ValueError) as exc:
                    print(f"Warning: Could not add {full_path} to the archive: {exc}")
                    continue
                count += 1
    return count
