from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sigplace.pdf.dimensions import ConsistencyResult, PageDimensions
from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    PlacementResult,
    RelativeBox,
    StampConfig,
    StampStrategy,
)


class BaseRequest(BaseModel):
    """Base class for all request models - ignores extra fields."""
    model_config = ConfigDict(extra="ignore")


# Request Models
#
# Placement inputs carry no range constraints; validate_placement_input()
# reports out-of-range values as result values.

class PageSizeIn(BaseRequest):
    W: float = Field(..., description="Unrotated media box width in PDF points")
    H: float = Field(..., description="Unrotated media box height in PDF points")


class PageDescriptorIn(BaseRequest):
    page_number: int = Field(..., description="1-indexed page number")
    original: PageSizeIn
    rotation: int = Field(default=0, description="Stored page rotation: 0, 90, 180 or 270")

    def to_domain(self) -> PageDescriptor:
        return PageDescriptor(
            page_number=self.page_number,
            original=PageSize(w=self.original.W, h=self.original.H),
            rotation=self.rotation,
        )


class RelativeBoxIn(BaseRequest):
    rx: float = Field(..., description="Left edge, relative to displayed page width")
    ry: float = Field(..., description="Top edge, relative to displayed page height")
    rw: float = Field(..., description="Width, relative to displayed page width")
    rh: float = Field(..., description="Height, relative to displayed page height")

    def to_domain(self) -> RelativeBox:
        return RelativeBox(rx=self.rx, ry=self.ry, rw=self.rw, rh=self.rh)


class FixedSizeIn(BaseRequest):
    w: float
    h: float


class StampConfigIn(BaseRequest):
    strategy: StampStrategy = StampStrategy.RELATIVE
    fixed_size: Optional[FixedSizeIn] = None

    def to_domain(self) -> StampConfig:
        fixed_size = None
        if self.fixed_size is not None:
            fixed_size = PageSize(w=self.fixed_size.w, h=self.fixed_size.h)
        return StampConfig(strategy=self.strategy, fixed_size=fixed_size)


class PlacementRequest(BaseRequest):
    page: PageDescriptorIn
    box: RelativeBoxIn
    stamp: Optional[StampConfigIn] = Field(
        default=None,
        description="Stamp sizing policy; defaults to the configured fixed stamp size",
    )


class DimensionsIn(BaseRequest):
    width: float
    height: float

    def to_domain(self) -> PageDimensions:
        return PageDimensions(width=self.width, height=self.height)


class ConsistencyRequest(BaseRequest):
    mapping_dimensions: DimensionsIn
    merge_dimensions: DimensionsIn
    tolerance: Optional[float] = Field(default=None, ge=0)


class DocumentPagesRequest(BaseRequest):
    pdf_base64: str = Field(..., min_length=1)


class SignatureIn(BaseRequest):
    page_number: int = Field(..., description="1-indexed page number")
    box: RelativeBoxIn
    signature_png_base64: str = Field(..., min_length=1)
    mapping_dimensions: Optional[DimensionsIn] = Field(
        default=None,
        description="Page size recorded at mapping time, checked against the PDF",
    )
    label: Optional[str] = Field(default=None, max_length=200)


class StampRequest(BaseRequest):
    pdf_base64: str = Field(..., min_length=1)
    signatures: List[SignatureIn] = Field(..., min_length=1)
    stamp: Optional[StampConfigIn] = None


# Response Models

class ValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None


class ViewportOut(BaseModel):
    Wv: float
    Hv: float


class OverlayOut(BaseModel):
    overlay: ViewportOut
    x_v: float
    y_v: float


class MergeOut(BaseModel):
    cx: Optional[float] = None
    cy: Optional[float] = None
    x: float
    y: float
    w: float
    h: float


class PlacementResponse(BaseModel):
    overlay: OverlayOut
    merge: MergeOut
    log: str

    @classmethod
    def from_result(cls, result: PlacementResult) -> "PlacementResponse":
        return cls.model_validate(result.to_dict())


class ConsistencyResponse(BaseModel):
    consistent: bool
    message: str

    @classmethod
    def from_result(cls, result: ConsistencyResult) -> "ConsistencyResponse":
        return cls(consistent=result.consistent, message=result.message)


class PageSizeOut(BaseModel):
    W: float
    H: float


class PageDescriptorOut(BaseModel):
    page_number: int
    original: PageSizeOut
    rotation: int

    @classmethod
    def from_descriptor(cls, page: PageDescriptor) -> "PageDescriptorOut":
        return cls.model_validate(page.to_dict())


class DocumentPagesResponse(BaseModel):
    document_hash: str
    page_count: int
    pages: List[PageDescriptorOut]


class StampedSignatureOut(BaseModel):
    page_number: int
    label: Optional[str] = None
    placement: PlacementResponse
    consistency: Optional[ConsistencyResponse] = None


class StampResponse(BaseModel):
    pdf_base64: str
    signatures: List[StampedSignatureOut]
    warnings: List[str] = []
