"""
Page dimension helpers: mapping/merge consistency check and conversions
between relative and absolute signature sizes.
"""
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Tuple

from sigplace.pdf.placement import RelativeBox, format_number

logger = logging.getLogger(__name__)

# US Letter at 72 DPI
STANDARD_PAGE_WIDTH = 612
STANDARD_PAGE_HEIGHT = 792

# Default signature size in UI pixels
DEFAULT_SIGNATURE_WIDTH = 200
DEFAULT_SIGNATURE_HEIGHT = 100

DEFAULT_RELATIVE_WIDTH = DEFAULT_SIGNATURE_WIDTH / STANDARD_PAGE_WIDTH
DEFAULT_RELATIVE_HEIGHT = DEFAULT_SIGNATURE_HEIGHT / STANDARD_PAGE_HEIGHT

DEFAULT_RELATIVE_X = 0.1
DEFAULT_RELATIVE_Y = 0.1

MIN_RELATIVE_WIDTH = 0.1
MAX_RELATIVE_WIDTH = 0.8
MIN_RELATIVE_HEIGHT = 0.05
MAX_RELATIVE_HEIGHT = 0.4

DEFAULT_DIMENSION_TOLERANCE = 1.0


@dataclass(frozen=True)
class PageDimensions:
    """Raw media box size of a page as read by one code path."""
    width: float
    height: float


@dataclass(frozen=True)
class ConsistencyResult:
    consistent: bool
    message: str

    def to_dict(self) -> dict:
        return {"consistent": self.consistent, "message": self.message}


def validate_dimension_consistency(
    mapping_dimensions: PageDimensions,
    merge_dimensions: PageDimensions,
    tolerance: float = DEFAULT_DIMENSION_TOLERANCE,
) -> ConsistencyResult:
    """
    Compare page dimensions read at mapping time with those read at merge time.

    A mismatch means the page changed (or a different page was picked) between
    mapping and merge. This only reports; coordinates are never corrected.

    Args:
        mapping_dimensions: Size recorded when the signature was mapped
        merge_dimensions: Size read when stamping
        tolerance: Allowed absolute drift per dimension

    Returns:
        ConsistencyResult with a human-readable message
    """
    width_diff = abs(mapping_dimensions.width - merge_dimensions.width)
    height_diff = abs(mapping_dimensions.height - merge_dimensions.height)

    consistent = width_diff <= tolerance and height_diff <= tolerance

    if consistent:
        message = f"Dimensions are consistent within tolerance ({format_number(tolerance)}pt)"
        logger.debug(message)
    else:
        message = (
            f"DIMENSION MISMATCH! "
            f"Mapping: {format_number(mapping_dimensions.width)}x{format_number(mapping_dimensions.height)}, "
            f"Merge: {format_number(merge_dimensions.width)}x{format_number(merge_dimensions.height)}, "
            f"Diff: {format_number(width_diff)}x{format_number(height_diff)}"
        )
        logger.warning(message)

    return ConsistencyResult(consistent=consistent, message=message)


def calculate_relative_dimensions(
    absolute_width: float,
    absolute_height: float,
    page_width: float,
    page_height: float,
) -> Tuple[float, float]:
    """Absolute size -> (relative_width, relative_height)."""
    return absolute_width / page_width, absolute_height / page_height


def calculate_absolute_dimensions(
    relative_width: float,
    relative_height: float,
    page_width: float,
    page_height: float,
) -> Tuple[float, float]:
    """Relative size -> (absolute_width, absolute_height)."""
    return relative_width * page_width, relative_height * page_height


def normalize_relative_dimensions(
    relative_width: float,
    relative_height: float,
) -> Tuple[float, float]:
    """Clamp a relative size so signatures are never tiny or page-sized."""
    return (
        max(MIN_RELATIVE_WIDTH, min(MAX_RELATIVE_WIDTH, relative_width)),
        max(MIN_RELATIVE_HEIGHT, min(MAX_RELATIVE_HEIGHT, relative_height)),
    )


def screen_to_relative_box(
    screen_x: float,
    screen_y: float,
    screen_width: float,
    screen_height: float,
    page_width: float,
    page_height: float,
) -> RelativeBox:
    """
    Convert an editor box (top-left origin, page units) to a RelativeBox.

    page_width/page_height must be the size of the page as displayed.
    """
    return RelativeBox(
        rx=screen_x / page_width,
        ry=screen_y / page_height,
        rw=screen_width / page_width,
        rh=screen_height / page_height,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def ensure_valid_relative_box(
    mapping: Mapping[str, Any],
    page_width: float,
    page_height: float,
) -> RelativeBox:
    """
    Repair a stored signature mapping that predates relative coordinates.

    Recognized keys: relative_x, relative_y, relative_width, relative_height
    and the legacy absolute x, y, width, height.

    Size falls back to absolute size, then to the defaults; position falls
    back to absolute position, then to (0.1, 0.1). The size is normalized and
    the position clamped to [0, 1].
    """
    rel_w = mapping.get("relative_width")
    rel_h = mapping.get("relative_height")
    rel_x = mapping.get("relative_x")
    rel_y = mapping.get("relative_y")

    if not _is_number(rel_w) or not _is_number(rel_h) or rel_w <= 0 or rel_h <= 0:
        abs_w = mapping.get("width")
        abs_h = mapping.get("height")
        if _is_number(abs_w) and _is_number(abs_h) and abs_w and abs_h and page_width and page_height:
            rel_w, rel_h = calculate_relative_dimensions(abs_w, abs_h, page_width, page_height)
        else:
            rel_w, rel_h = DEFAULT_RELATIVE_WIDTH, DEFAULT_RELATIVE_HEIGHT

    if not _is_number(rel_x) or not _is_number(rel_y) or rel_x < 0 or rel_y < 0:
        abs_x = mapping.get("x")
        abs_y = mapping.get("y")
        if _is_number(abs_x) and _is_number(abs_y) and page_width and page_height:
            rel_x = abs_x / page_width
            rel_y = abs_y / page_height
        else:
            rel_x, rel_y = DEFAULT_RELATIVE_X, DEFAULT_RELATIVE_Y

    rel_w, rel_h = normalize_relative_dimensions(rel_w, rel_h)

    return RelativeBox(
        rx=max(0.0, min(1.0, rel_x)),
        ry=max(0.0, min(1.0, rel_y)),
        rw=rel_w,
        rh=rel_h,
    )
