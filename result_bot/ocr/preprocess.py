from io import BytesIO

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import ProviderError


def load_gray(image_bytes: bytes) -> np.ndarray:
    """Decode image bytes into an autocontrasted grayscale (H,W) uint8 array.

    Coordinates are kept in the source image's pixel space: no resizing.
    """
    try:
        im = Image.open(BytesIO(image_bytes))
        im.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ProviderError(f"Invalid image bytes: {e}") from e
    im = ImageOps.autocontrast(im.convert("RGB"), cutoff=1)
    return np.asarray(im.convert("L"), dtype=np.uint8)
