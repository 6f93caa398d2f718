"""
Image conversion utility for converting uploads to WebP format.
Reduces file size before storing album images.
"""
import asyncio
import io
import logging
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# WebP conversion settings
DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)
MAX_DIMENSION = 3840       # Maximum width or height before downscaling (None to disable)


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format.

    Args:
        image_bytes: Original image file bytes
        quality: WebP quality (0-100, default: 85)
        method: WebP compression method (0-6, default: 6)
        max_dimension: Maximum width or height before downscaling (None to disable)

    Returns:
        Tuple[bytes, bool]:
            - Converted image bytes (or original if already WebP or unreadable)
            - True if the returned bytes are WebP, False if the original was kept
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == 'WEBP':
            logger.debug("Image is already WebP format, skipping conversion")
            return image_bytes, True

        # WebP supports transparency, so palette images keep their alpha channel
        if image.mode == 'P':
            image = image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA', 'LA'):
            image = image.convert('RGB')

        if max_dimension:
            width, height = image.size
            if width > max_dimension or height > max_dimension:
                if width > height:
                    new_width = max_dimension
                    new_height = int(height * (max_dimension / width))
                else:
                    new_height = max_dimension
                    new_width = int(width * (max_dimension / height))

                logger.info(
                    f"Downscaling image from {width}x{height} to {new_width}x{new_height} "
                    f"(max dimension: {max_dimension})"
                )
                image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

        webp_buffer = io.BytesIO()
        image.save(webp_buffer, format='WEBP', quality=quality, method=method)
        webp_bytes = webp_buffer.getvalue()

        logger.info(
            f"Converted image to WebP: "
            f"{len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes (quality={quality})"
        )
        return webp_bytes, True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False

    except Exception as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False


async def optimize_upload(data: bytes, filename: str, content_type: str) -> Tuple[bytes, str, str]:
    """
    Convert an uploaded image to WebP when that makes it smaller.

    Returns:
        Tuple of (bytes, filename, content_type) to store
    """
    if not content_type.startswith("image/") or content_type == "image/webp":
        return data, filename, content_type

    converted, ok = await asyncio.to_thread(convert_to_webp, data)
    if ok and len(converted) < len(data):
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename
        return converted, f"{stem}.webp", "image/webp"

    if not ok:
        logger.warning(f"WebP conversion failed for {filename}, storing original format")
    else:
        logger.debug(f"WebP conversion did not reduce size for {filename}, using original")
    return data, filename, content_type
