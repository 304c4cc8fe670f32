"""Image identifier to URL resolution."""

from bootpedia.images.resolver import ImageHandle, ImageState, ImageUrlResolver, is_url

__all__ = ["ImageHandle", "ImageState", "ImageUrlResolver", "is_url"]
