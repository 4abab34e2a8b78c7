"""
Placement API - pure coordinate computations, no documents involved.
Paths: /v1/placements
"""
import logging

from fastapi import APIRouter, Depends

from sigplace.config import Settings, get_settings
from sigplace.models import (
    ConsistencyRequest,
    ConsistencyResponse,
    PlacementRequest,
    PlacementResponse,
    ValidationResponse,
)
from sigplace.pdf.dimensions import validate_dimension_consistency
from sigplace.pdf.placement import (
    PlacementValidationError,
    place_signature_checked,
    validate_placement_input,
)
from sigplace.services.documents import raise_for_placement_error, resolve_stamp_config

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/placements",
    tags=["placements"],
)


@router.post(
    "/validate",
    response_model=ValidationResponse,
    response_model_exclude_none=True,
    summary="Validate placement input",
)
async def validate_placement(
    request: PlacementRequest,
    settings: Settings = Depends(get_settings),
):
    """
    Run the placement input checks. A failed check is reported in the body
    with status 200, it is not an HTTP error.
    """
    result = validate_placement_input(
        request.page.to_domain(),
        request.box.to_domain(),
        resolve_stamp_config(request.stamp, settings),
    )
    return ValidationResponse(valid=result.valid, error=result.error)


@router.post(
    "",
    response_model=PlacementResponse,
    response_model_exclude_none=True,
    summary="Compute overlay and PDF placement for a signature box",
)
async def compute_placement(
    request: PlacementRequest,
    settings: Settings = Depends(get_settings),
):
    """
    Validate and place. Invalid input is rejected with 400 VALIDATION_ERROR
    carrying the validation message.
    """
    try:
        result = place_signature_checked(
            request.page.to_domain(),
            request.box.to_domain(),
            resolve_stamp_config(request.stamp, settings),
        )
    except PlacementValidationError as e:
        raise_for_placement_error(e)

    logger.info(result.log)
    return PlacementResponse.from_result(result)


@router.post(
    "/consistency",
    response_model=ConsistencyResponse,
    summary="Compare mapping-time and merge-time page dimensions",
)
async def check_dimension_consistency(
    request: ConsistencyRequest,
    settings: Settings = Depends(get_settings),
):
    tolerance = request.tolerance
    if tolerance is None:
        tolerance = settings.dimension_tolerance

    result = validate_dimension_consistency(
        request.mapping_dimensions.to_domain(),
        request.merge_dimensions.to_domain(),
        tolerance=tolerance,
    )
    return ConsistencyResponse.from_result(result)
