"""Utils module."""

from .helpers import ensure_dir, safe_filename
from .images import EncodedImage, detect_image_format, encode_image, encode_image_bytes
from .logger import setup_logger
from .parsing import TextParser, parse_qa, parse_vocabulary

__all__ = [
    'ensure_dir',
    'safe_filename',
    'EncodedImage',
    'detect_image_format',
    'encode_image',
    'encode_image_bytes',
    'setup_logger',
    'TextParser',
    'parse_qa',
    'parse_vocabulary',
]
