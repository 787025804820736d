"""Deterministic kolour image generation."""

import io

from PIL import Image

from kolours.image_cid.exceptions import GenerationFailure
from kolours.image_cid.models import Kolour

IMAGE_SIZE = (128, 128)
IMAGE_MODE = "RGB"  # 3 channels
PALETTE_COLORS = 2


def create_kolour_image(kolour: Kolour) -> bytes:
    """Render the identifying image for a kolour.

    A 128x128 canvas filled with the kolour, quantized to a two entry palette
    and PNG encoded. Output depends only on the kolour, so the resulting CID is
    stable across processes.

    Args:
        kolour: Kolour to render

    Returns:
        PNG bytes

    Raises:
        GenerationFailure: If Pillow fails to build or encode the image
    """
    try:
        with Image.new(IMAGE_MODE, IMAGE_SIZE, kolour.rgb) as canvas:
            paletted = canvas.quantize(colors=PALETTE_COLORS)
        buffer = io.BytesIO()
        paletted.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise GenerationFailure(f"Failed to render image for kolour {kolour}: {e}") from e
    return buffer.getvalue()
