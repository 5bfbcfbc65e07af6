import asyncio
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.errors import ValidationError


def prepare_photo(data: bytes, max_dimension: int = 1024, quality: int = 85) -> bytes:
    """
    Fit an uploaded photo inside a `max_dimension` square and re-encode it as JPEG.

    Smaller images are never enlarged. EXIF orientation is applied first so
    the stored photo looks the way the phone showed it.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image = ImageOps.exif_transpose(image)
            image = image.convert("RGB")
            image.thumbnail((max_dimension, max_dimension))

            buf = io.BytesIO()
            image.save(buf, format="JPEG", quality=quality)
            return buf.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Uploaded file is not a valid image: {e}") from e


async def prepare_photo_async(data: bytes, max_dimension: int = 1024, quality: int = 85) -> bytes:
    """Async wrapper so resizing does not block the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: prepare_photo(data, max_dimension, quality))
