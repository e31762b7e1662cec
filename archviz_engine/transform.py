"""Local rotate/flip of image assets."""

from __future__ import annotations

from io import BytesIO

from PIL import Image

from .assets import ImageAsset
from .errors import TransformError
from .runs.events import EventWriter

ROTATE = "rotate"
FLIP = "flip"
OPERATIONS = (ROTATE, FLIP)


class ImageTransformer:
    def __init__(self, events: EventWriter | None = None) -> None:
        self.events = events

    def apply(self, asset: ImageAsset, operation: str) -> ImageAsset:
        """Return a transformed copy, or ``asset`` itself if the transform fails."""

        try:
            return _transform(asset, operation)
        except TransformError as exc:
            if self.events:
                self.events.emit("transform_failed", operation=operation, error=str(exc))
            return asset


def _transform(asset: ImageAsset, operation: str) -> ImageAsset:
    if operation not in OPERATIONS:
        raise TransformError(f"Unknown transform '{operation}'.")
    try:
        with Image.open(BytesIO(asset.data)) as image:
            if operation == ROTATE:
                # Quarter turn clockwise; width and height swap.
                result = image.transpose(Image.Transpose.ROTATE_270)
            else:
                result = image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
            buffer = BytesIO()
            result.save(buffer, format="PNG")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise TransformError(f"Could not {operation} image: {exc}") from exc
    return ImageAsset(data=buffer.getvalue(), media_type="image/png")
