"""Sources of image layer digests."""

from .reference import ImageReference, parse_image_reference
from .remote import RemoteImageClient
from .source import digests_for_image
from .tarball import read_diff_ids

__all__ = [
    "ImageReference",
    "RemoteImageClient",
    "digests_for_image",
    "parse_image_reference",
    "read_diff_ids",
]
