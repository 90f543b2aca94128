"""Reading photos into report payloads."""

import base64
import mimetypes
from pathlib import Path
from typing import Union

from ..models.report import PhotoPayload

DEFAULT_MIME_TYPE = "image/jpeg"


def load_photo(path: Union[str, Path]) -> PhotoPayload:
    """
    Read an image file into a PhotoPayload.

    Args:
        path: Image file path

    Returns:
        PhotoPayload with base64 data, guessed MIME type and a file:// URL

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not an image
    """
    photo_path = Path(path).expanduser()
    if not photo_path.is_file():
        raise FileNotFoundError(f"Photo not found: {photo_path}")

    mime_type, _ = mimetypes.guess_type(photo_path.name)
    mime_type = mime_type or DEFAULT_MIME_TYPE
    if not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file ({mime_type}): {photo_path}")

    data = base64.b64encode(photo_path.read_bytes()).decode("ascii")
    return PhotoPayload(data=data, mime_type=mime_type, url=photo_path.resolve().as_uri())


def split_data_url(data_url: str) -> tuple[str, str]:
    """
    Split ``data:<mime>;base64,<data>`` into (mime_type, base64 data).

    Raises:
        ValueError: If the URL carries no base64 payload
    """
    header, _, payload = data_url.partition(",")
    if not payload or not header.startswith("data:") or ";base64" not in header:
        raise ValueError("Could not read file as base64 string.")
    mime_type = header[len("data:"):].split(";")[0] or DEFAULT_MIME_TYPE
    return mime_type, payload


def photo_from_data_url(data_url: str) -> PhotoPayload:
    mime_type, payload = split_data_url(data_url)
    return PhotoPayload(data=payload, mime_type=mime_type, url=data_url)
