"""
Aspect-ratio preservation for signature images.

Signature images (canvas drawings, pad captures) are never stretched: they are
fitted inside the box the placement engine produced and centered in it.
"""
import io
import logging
import math
from dataclasses import dataclass, replace

from PIL import Image

logger = logging.getLogger(__name__)

MIN_SIGNATURE_WIDTH = 20.0
MIN_SIGNATURE_HEIGHT = 10.0


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height > 0 else 1.0


@dataclass(frozen=True)
class Box:
    """Axis-aligned box. The origin convention is the caller's."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class CenteredPlacement:
    x: float
    y: float
    width: float
    height: float
    offset_x: float  # Horizontal shift applied to center the image
    offset_y: float  # Vertical shift applied to center the image


def get_image_dimensions(image_bytes: bytes) -> ImageDimensions:
    """Read pixel dimensions of an encoded image."""
    with Image.open(io.BytesIO(image_bytes)) as img:
        width, height = img.size
    return ImageDimensions(width=width, height=height)


def calculate_centered_placement(
    image_width: float,
    image_height: float,
    target: Box,
) -> CenteredPlacement:
    """
    Fit an image into target without distortion and center it.

    Args:
        image_width: Source image width (any unit, only the ratio matters)
        image_height: Source image height
        target: Box the image must fit in

    Returns:
        CenteredPlacement inside target
    """
    if image_width <= 0 or image_height <= 0:
        logger.warning(
            f"Invalid image dimensions {image_width}x{image_height}, using target box as-is"
        )
        return CenteredPlacement(
            x=target.x,
            y=target.y,
            width=target.width,
            height=target.height,
            offset_x=0.0,
            offset_y=0.0,
        )

    image_ratio = image_width / image_height
    box_ratio = target.width / target.height

    if image_ratio > box_ratio:
        # Wider than the box: width-constrained
        final_width = target.width
        final_height = target.width / image_ratio
    else:
        # Taller than the box: height-constrained
        final_height = target.height
        final_width = target.height * image_ratio

    offset_x = (target.width - final_width) / 2
    offset_y = (target.height - final_height) / 2

    placement = CenteredPlacement(
        x=target.x + offset_x,
        y=target.y + offset_y,
        width=final_width,
        height=final_height,
        offset_x=offset_x,
        offset_y=offset_y,
    )
    logger.debug(
        f"Centered {image_width}x{image_height} image in "
        f"{target.width:.3f}x{target.height:.3f} box -> "
        f"{final_width:.3f}x{final_height:.3f} "
        f"({'width' if image_ratio > box_ratio else 'height'}-constrained)"
    )
    return placement


def is_valid_centered_placement(placement: CenteredPlacement) -> bool:
    """True if the placement has a positive, finite size and position."""
    values = (placement.x, placement.y, placement.width, placement.height)
    if any(math.isnan(v) for v in values):
        return False
    return placement.width > 0 and placement.height > 0


def apply_minimum_size_constraints(
    placement: CenteredPlacement,
    min_width: float = MIN_SIGNATURE_WIDTH,
    min_height: float = MIN_SIGNATURE_HEIGHT,
) -> CenteredPlacement:
    """
    Grow a placement that is smaller than the minimum, keeping its ratio.

    The grown placement keeps the original center, so it stays centered in
    the target box in either origin convention.
    """
    if placement.width >= min_width and placement.height >= min_height:
        return placement

    scale = max(min_width / placement.width, min_height / placement.height)
    width = placement.width * scale
    height = placement.height * scale

    logger.debug(
        f"Applied minimum size: {placement.width:.3f}x{placement.height:.3f} -> "
        f"{width:.3f}x{height:.3f} (min {min_width}x{min_height})"
    )
    dx = (width - placement.width) / 2
    dy = (height - placement.height) / 2
    return replace(
        placement,
        x=placement.x - dx,
        y=placement.y - dy,
        width=width,
        height=height,
        offset_x=placement.offset_x - dx,
        offset_y=placement.offset_y - dy,
    )
