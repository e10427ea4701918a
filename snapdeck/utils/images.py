"""Image helpers - turn captured images into model-ready payloads."""

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import aiofiles


# Image format magic bytes for validation
IMAGE_MAGIC_BYTES = {
    b'\xff\xd8\xff': 'jpeg',      # JPEG
    b'\x89PNG': 'png',            # PNG
    b'GIF8': 'gif',               # GIF
}


def detect_image_format(content: bytes) -> Optional[str]:
    """Detect image format from magic bytes."""
    if not content or len(content) < 4:
        return None
    for magic, fmt in IMAGE_MAGIC_BYTES.items():
        if content.startswith(magic):
            return fmt
    # Check WebP specifically (RIFF....WEBP)
    if content[:4] == b'RIFF' and len(content) > 12 and content[8:12] == b'WEBP':
        return 'webp'
    return None


@dataclass(frozen=True)
class EncodedImage:
    """Base64 image data plus its MIME type."""
    data: str
    mime_type: str = "image/jpeg"


def encode_image_bytes(content: bytes) -> EncodedImage:
    """
    Encode raw image bytes as base64.

    Unknown formats are sent as JPEG, which is what camera captures are.

    Raises:
        ValueError: If there are no bytes to encode
    """
    if not content:
        raise ValueError("Image is empty")
    fmt = detect_image_format(content) or 'jpeg'
    return EncodedImage(
        data=base64.b64encode(content).decode('ascii'),
        mime_type=f"image/{fmt}",
    )


async def encode_image(source: Union[str, Path, bytes]) -> EncodedImage:
    """
    Read an image (path or bytes) and encode it for the model service.

    Args:
        source: File path returned by a picker, or the image bytes

    Returns:
        EncodedImage ready to embed in a request
    """
    if isinstance(source, (bytes, bytearray)):
        return encode_image_bytes(bytes(source))

    async with aiofiles.open(source, 'rb') as f:
        content = await f.read()
    return encode_image_bytes(content)
