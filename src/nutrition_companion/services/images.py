"""Image preparation before upload."""

import base64
import io

from PIL import Image, UnidentifiedImageError

from nutrition_companion.errors import FormError

UPLOAD_WIDTH = 1024
JPEG_QUALITY = 80


def prepare_image(image_bytes: bytes) -> str:
    """Resize an image to the upload width and return base64 JPEG data."""
    try:
        img: Image.Image = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise FormError("Failed to process image") from exc

    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")

    if img.width != UPLOAD_WIDTH:
        height = max(1, round(img.height * UPLOAD_WIDTH / img.width))
        img = img.resize((UPLOAD_WIDTH, height))

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=JPEG_QUALITY)
    return base64.b64encode(output.getvalue()).decode("utf-8")


def strip_data_url(image: str) -> str:
    """Return the base64 part of a `data:` URL, or the input unchanged."""
    if image.startswith("data:"):
        _, _, encoded = image.partition(",")
        return encoded
    return image
