# PDF module
from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    PlacementError,
    PlacementResult,
    PlacementValidationError,
    RelativeBox,
    StampConfig,
    StampStrategy,
    place_signature,
    place_signature_checked,
    validate_placement_input,
)
from sigplace.pdf.dimensions import PageDimensions, validate_dimension_consistency
from sigplace.pdf.stamp import PDFStamper, SignatureMapping, StampingError, read_page_descriptors

__all__ = [
    "PageDescriptor",
    "PageSize",
    "PlacementError",
    "PlacementResult",
    "PlacementValidationError",
    "RelativeBox",
    "StampConfig",
    "StampStrategy",
    "place_signature",
    "place_signature_checked",
    "validate_placement_input",
    "PageDimensions",
    "validate_dimension_consistency",
    "PDFStamper",
    "SignatureMapping",
    "StampingError",
    "read_page_descriptors",
]
