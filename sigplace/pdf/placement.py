"""
Signature placement engine.

Converts a signature box captured as relative (0..1) coordinates on the
as-displayed (possibly rotated) page preview into the bottom-left-origin,
unrotated page space that a PDF content stream draws into.

One math path only: the mapping preview, the merge/stamping code and the
HTTP API all call place_signature() so the on-screen overlay and the stamped
PDF land in exactly the same visual spot.

No rounding happens anywhere in here. Callers that need pixel-snapped values
round at their own boundary, right before drawing.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

VALID_ROTATIONS = (0, 90, 180, 270)

# Tolerance for the relative "box fits inside the page" check
RELATIVE_BOUNDS_TOLERANCE = 1e-9

LOG_VERSION = "v1"


class PlacementError(Exception):
    """Signature placement error."""
    pass


class PlacementValidationError(PlacementError):
    """Invalid signature placement input."""

    def __init__(self, message: str, code: str = "INVALID_PLACEMENT"):
        super().__init__(message)
        self.code = code
        self.message = message


class StampStrategy(str, Enum):
    """How the stamped signature image is sized."""
    FIXED = "fixed"        # Always fixed_size, regardless of the box
    RELATIVE = "relative"  # Fills the relative box proportionally


@dataclass(frozen=True)
class PageSize:
    """Width/height pair in PDF points (or any consistent unit)."""
    w: float
    h: float


@dataclass(frozen=True)
class PageDescriptor:
    """
    A PDF page as seen at placement time.

    original is the raw, unrotated media box size. rotation is the page's
    /Rotate value as stored, never already folded into original.
    """
    page_number: int  # 1-indexed
    original: PageSize
    rotation: int = 0

    def to_dict(self) -> dict:
        return {
            "page_number": self.page_number,
            "original": {"W": self.original.w, "H": self.original.h},
            "rotation": self.rotation,
        }


@dataclass(frozen=True)
class RelativeBox:
    """
    Signature box relative to the displayed page.

    Origin top-left, y grows downward (UI capture convention).
    """
    rx: float
    ry: float
    rw: float
    rh: float


@dataclass(frozen=True)
class StampConfig:
    strategy: StampStrategy = StampStrategy.RELATIVE
    fixed_size: Optional[PageSize] = None


@dataclass(frozen=True)
class ViewportSize:
    wv: float
    hv: float


@dataclass(frozen=True)
class OverlayPlacement:
    """Viewport size and box top-left corner in viewport units."""
    viewport: ViewportSize
    x_v: float
    y_v: float

    def to_dict(self) -> dict:
        return {
            "overlay": {"Wv": self.viewport.wv, "Hv": self.viewport.hv},
            "x_v": self.x_v,
            "y_v": self.y_v,
        }


@dataclass(frozen=True)
class MergePlacement:
    """
    Drawing instruction in bottom-left-origin, unrotated page space.

    cx/cy are only set on the 90 degree path, which is derived from the box
    center.
    """
    x: float
    y: float
    w: float
    h: float
    cx: Optional[float] = None
    cy: Optional[float] = None

    @property
    def is_center_based(self) -> bool:
        return self.cx is not None and self.cy is not None

    def to_dict(self) -> dict:
        if self.is_center_based:
            return {
                "cx": self.cx,
                "cy": self.cy,
                "x": self.x,
                "y": self.y,
                "w": self.w,
                "h": self.h,
            }
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class PlacementResult:
    overlay: OverlayPlacement
    merge: MergePlacement
    log: str

    def to_dict(self) -> dict:
        return {
            "overlay": self.overlay.to_dict(),
            "merge": self.merge.to_dict(),
            "log": self.log,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        if self.valid:
            return {"valid": True}
        return {"valid": False, "error": self.error}


def _invalid(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def validate_placement_input(
    page: PageDescriptor,
    box: RelativeBox,
    stamp: StampConfig,
) -> ValidationResult:
    """
    Check placement input before it reaches place_signature().

    Checks run in a fixed order and the first failure is returned. This never
    raises; a failed check is a caller-facing result value. Comparisons are
    written so NaN fails them.
    """
    if page.page_number < 1:
        return _invalid("Page number must be >= 1")

    if not (page.original.w > 0 and page.original.h > 0):
        return _invalid("Page dimensions must be positive")

    if page.rotation not in VALID_ROTATIONS:
        return _invalid("Rotation must be 0, 90, 180, or 270")

    for value in (box.rx, box.ry, box.rw, box.rh):
        if not 0 <= value <= 1:
            return _invalid("Relative coordinates must be in [0..1]")

    if (box.rx + box.rw > 1 + RELATIVE_BOUNDS_TOLERANCE
            or box.ry + box.rh > 1 + RELATIVE_BOUNDS_TOLERANCE):
        return _invalid("Relative box extends beyond page bounds")

    if stamp.strategy == StampStrategy.FIXED:
        if stamp.fixed_size is None:
            return _invalid("Fixed stamp size required when strategy is 'fixed'")
        if not (stamp.fixed_size.w > 0 and stamp.fixed_size.h > 0):
            return _invalid("Fixed stamp size must be positive")

    return ValidationResult(valid=True)


def viewport_size(original: PageSize, rotation: int) -> ViewportSize:
    """Page footprint as displayed: 90/270 swap width and height."""
    if rotation in (90, 270):
        return ViewportSize(wv=original.h, hv=original.w)
    return ViewportSize(wv=original.w, hv=original.h)


def resolve_stamp_size(
    box: RelativeBox,
    stamp: StampConfig,
    viewport: ViewportSize,
) -> Tuple[float, float]:
    """Stamp (w, h) for the configured sizing strategy."""
    if stamp.strategy == StampStrategy.FIXED:
        return stamp.fixed_size.w, stamp.fixed_size.h
    return box.rw * viewport.wv, box.rh * viewport.hv


# Per-rotation transforms from viewport top-left (x_v, y_v) to PDF space.
# Signature: (x_v, y_v, w, h, W, H) -> MergePlacement

def _rotate_0(x_v, y_v, w, h, W, H) -> MergePlacement:
    return MergePlacement(x=x_v, y=H - (y_v + h), w=w, h=h)


def _rotate_90(x_v, y_v, w, h, W, H) -> MergePlacement:
    # Must go through the center; a direct corner formula lands elsewhere.
    cx = W - (y_v + h / 2)
    cy = H - (x_v + w / 2)
    return MergePlacement(x=cx - w / 2, y=cy - h / 2, w=w, h=h, cx=cx, cy=cy)


def _rotate_180(x_v, y_v, w, h, W, H) -> MergePlacement:
    return MergePlacement(x=W - x_v - w, y=y_v, w=w, h=h)


def _rotate_270(x_v, y_v, w, h, W, H) -> MergePlacement:
    return MergePlacement(x=y_v, y=x_v, w=w, h=h)


_TRANSFORMS: Dict[int, Callable[..., MergePlacement]] = {
    0: _rotate_0,
    90: _rotate_90,
    180: _rotate_180,
    270: _rotate_270,
}


def format_number(value: float) -> str:
    """Render a raw number: 612.0 -> '612', 791.999978 -> '791.999978'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_placement_log(
    page: PageDescriptor,
    overlay: OverlayPlacement,
    merge: MergePlacement,
) -> str:
    """One-line trace of every intermediate quantity of a placement."""
    log = (
        f"MERGE {LOG_VERSION} | page={page.page_number} rot={page.rotation} | "
        f"W={format_number(page.original.w)} H={format_number(page.original.h)} | "
        f"Wv={format_number(overlay.viewport.wv)} Hv={format_number(overlay.viewport.hv)} | "
        f"x_v={overlay.x_v:.3f} y_v={overlay.y_v:.3f} | "
        f"stamp(w,h)={format_number(merge.w)}x{format_number(merge.h)} -> "
        f"pdf(x,y,w,h)=({merge.x:.3f},{merge.y:.3f},{merge.w:.3f},{merge.h:.3f})"
    )
    if merge.is_center_based:
        log += f" | center=({merge.cx:.3f},{merge.cy:.3f}) | mode=center"
    else:
        log += " | mode=corner"
    return log


def place_signature(
    page: PageDescriptor,
    box: RelativeBox,
    stamp: StampConfig,
) -> PlacementResult:
    """
    Compute overlay geometry and the PDF drawing instruction for a signature.

    Input is trusted: call validate_placement_input() first, or use
    place_signature_checked().

    Args:
        page: Page descriptor (raw unrotated size + stored rotation)
        box: Relative box captured against the displayed page
        stamp: Stamp sizing policy

    Returns:
        PlacementResult with overlay, merge and trace log

    Raises:
        PlacementValidationError: If the rotation has no transform
    """
    transform = _TRANSFORMS.get(page.rotation)
    if transform is None:
        raise PlacementValidationError(
            "Rotation must be 0, 90, 180, or 270",
            code="INVALID_ROTATION",
        )

    W = page.original.w
    H = page.original.h

    viewport = viewport_size(page.original, page.rotation)
    x_v = box.rx * viewport.wv
    y_v = box.ry * viewport.hv

    w, h = resolve_stamp_size(box, stamp, viewport)

    merge = transform(x_v, y_v, w, h, W, H)
    overlay = OverlayPlacement(viewport=viewport, x_v=x_v, y_v=y_v)

    return PlacementResult(
        overlay=overlay,
        merge=merge,
        log=format_placement_log(page, overlay, merge),
    )


def place_signature_checked(
    page: PageDescriptor,
    box: RelativeBox,
    stamp: StampConfig,
) -> PlacementResult:
    """
    Validate, then place. Raises instead of returning a failed result.

    Raises:
        PlacementValidationError: With code INVALID_PLACEMENT_INPUT
    """
    validation = validate_placement_input(page, box, stamp)
    if not validation.valid:
        logger.warning(
            f"Rejected placement on page {page.page_number}: {validation.error}"
        )
        raise PlacementValidationError(
            validation.error,
            code="INVALID_PLACEMENT_INPUT",
        )

    result = place_signature(page, box, stamp)
    logger.debug(result.log)
    return result
