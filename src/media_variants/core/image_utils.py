"""Image processing utilities for the media variants pipeline."""

import io
import posixpath
from typing import Optional, Tuple
from urllib.parse import urlparse

from PIL import Image, ImageOps

from .models import FitMode, ImageMetadata, VariantProfile

WHITE = (255, 255, 255)


def open_image(image_bytes: bytes) -> Image.Image:
    """Decode a buffer into a fully loaded PIL image."""
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def read_image_metadata(image_bytes: bytes) -> ImageMetadata:
    """
    Decode image headers into an ImageMetadata.

    Args:
        image_bytes: Raw bytes of the original

    Returns:
        Width, height, byte size, mime type and lower-case format name
    """
    with Image.open(io.BytesIO(image_bytes)) as image:
        width, height = image.size
        image_format = (image.format or "unknown").lower()

    return ImageMetadata(
        width=width,
        height=height,
        file_size=len(image_bytes),
        mime_type=f"image/{image_format}",
        format=image_format,
    )


def has_transparency(img: Image.Image) -> bool:
    if img.mode in ("RGBA", "LA", "PA"):
        return True
    return img.mode == "P" and "transparency" in img.info


def flatten_on_white(img: Image.Image) -> Image.Image:
    """
    Composite an image onto an opaque white background.

    Alpha channels (including palette transparency) are dropped so that
    transparent regions come out white once encoded as JPEG.
    """
    if has_transparency(img):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def inside_size(
    size: Tuple[int, int], max_width: Optional[int], max_height: Optional[int]
) -> Tuple[int, int]:
    """Largest size within the box that keeps the aspect ratio, never enlarging."""
    width, height = size
    scale = 1.0
    if max_width:
        scale = min(scale, max_width / width)
    if max_height:
        scale = min(scale, max_height / height)
    if scale >= 1.0:
        return width, height
    return max(1, round(width * scale)), max(1, round(height * scale))


def cover_box(
    size: Tuple[int, int], max_width: Optional[int], max_height: Optional[int]
) -> Tuple[int, int]:
    """Target box for a cover fit, clamped to the original on each axis."""
    width, height = size
    box_width = min(max_width or width, width)
    box_height = min(max_height or height, height)
    return box_width, box_height


def shrink_to_fit(
    img: Image.Image, max_width: Optional[int], max_height: Optional[int]
) -> Image.Image:
    target = inside_size(img.size, max_width, max_height)
    if target == img.size:
        return img
    return img.resize(target, Image.Resampling.LANCZOS)


def resize_for_profile(img: Image.Image, profile: VariantProfile) -> Image.Image:
    """Apply the profile's fit mode. Returns the image unchanged when no resize is configured."""
    if not profile.is_resize:
        return img

    if profile.fit_mode == FitMode.COVER:
        box = cover_box(img.size, profile.max_width, profile.max_height)
        if box == img.size:
            return img
        return ImageOps.fit(img, box, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))

    return shrink_to_fit(img, profile.max_width, profile.max_height)


def encode_jpeg(img: Image.Image, quality: int = 85) -> bytes:
    output = io.BytesIO()
    flatten_on_white(img).save(
        output, format="JPEG", quality=quality, progressive=True, optimize=True
    )
    return output.getvalue()


def encode_webp(img: Image.Image, quality: int = 90, method: int = 6) -> bytes:
    """Encode as WebP at the image's own pixel dimensions, keeping alpha."""
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if has_transparency(img) else "RGB")
    output = io.BytesIO()
    img.save(output, format="WEBP", quality=quality, method=method)
    return output.getvalue()


def filename_from_url(url: str) -> str:
    """Final path segment of a URL, or the input itself when it is already a key.

    The segment is returned as it appears in the URL, percent-escapes
    included, so variant keys line up with those already in the bucket.
    """
    path = urlparse(url).path or url
    return posixpath.basename(path)


def strip_extension(filename: str) -> str:
    base, _ext = posixpath.splitext(filename)
    return base or filename
