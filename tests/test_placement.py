"""
Tests for the signature placement engine.
"""
import pytest

from sigplace.pdf.placement import (
    PageDescriptor,
    PageSize,
    PlacementValidationError,
    RelativeBox,
    StampConfig,
    StampStrategy,
    format_number,
    place_signature,
    place_signature_checked,
    viewport_size,
)

LETTER = PageSize(w=612, h=792)
FIXED_150x75 = StampConfig(strategy=StampStrategy.FIXED, fixed_size=PageSize(w=150, h=75))
RELATIVE = StampConfig(strategy=StampStrategy.RELATIVE)

# Box captured on a 270 degree page in production logs
LOGGED_BOX = RelativeBox(
    rx=0.7234848484848485,
    ry=0.7418300653594772,
    rw=0.24509803921568626,
    rh=0.0946969696969697,
)


def letter_page(rotation: int, original: PageSize = LETTER) -> PageDescriptor:
    return PageDescriptor(page_number=1, original=original, rotation=rotation)


class TestRotation270:
    """270 degree page, direct corner formula (x = y_v, y = x_v)."""

    def test_fixed_stamp(self):
        """Fixed 150x75 stamp lands at the swapped viewport corner."""
        result = place_signature(letter_page(270), LOGGED_BOX, FIXED_150x75)

        assert result.overlay.viewport.wv == 792
        assert result.overlay.viewport.hv == 612
        assert result.overlay.x_v == pytest.approx(573, abs=1e-6)
        assert result.overlay.y_v == pytest.approx(454, abs=1e-6)

        assert result.merge.x == pytest.approx(454, abs=1e-6)
        assert result.merge.y == pytest.approx(573, abs=1e-6)
        assert result.merge.w == 150
        assert result.merge.h == 75
        assert result.merge.cx is None
        assert result.merge.cy is None

    def test_corner_is_exact_swap_of_viewport(self):
        result = place_signature(letter_page(270), LOGGED_BOX, FIXED_150x75)
        assert result.merge.x == result.overlay.y_v
        assert result.merge.y == result.overlay.x_v

    def test_relative_stamp(self):
        """Relative stamp scales with the viewport; position unchanged."""
        result = place_signature(letter_page(270), LOGGED_BOX, RELATIVE)

        assert result.merge.w == pytest.approx(194.118, abs=1e-3)
        assert result.merge.h == pytest.approx(57.955, abs=1e-3)
        assert result.merge.w == pytest.approx(0.24509803921568626 * 792, abs=1e-10)
        assert result.merge.h == pytest.approx(0.0946969696969697 * 612, abs=1e-10)
        assert result.merge.x == pytest.approx(454, abs=1e-6)
        assert result.merge.y == pytest.approx(573, abs=1e-6)

    def test_slightly_different_box(self):
        box = RelativeBox(rx=0.7386363636, ry=0.74346405229, rw=0.24509803921568626, rh=0.0946969696969697)
        result = place_signature(letter_page(270), box, FIXED_150x75)

        assert result.overlay.x_v == pytest.approx(585, abs=0.5)
        assert result.overlay.y_v == pytest.approx(455, abs=0.5)
        assert result.merge.x == pytest.approx(455, abs=0.5)
        assert result.merge.y == pytest.approx(585, abs=0.5)


class TestRotation90:
    """90 degree page goes through the box center."""

    def test_center_based_placement(self):
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        result = place_signature(letter_page(90), box, FIXED_150x75)

        assert result.overlay.viewport.wv == 792
        assert result.overlay.viewport.hv == 612
        assert result.overlay.x_v == 396
        assert result.overlay.y_v == 306

        assert result.merge.cx == 268.5  # 612 - (306 + 37.5)
        assert result.merge.cy == 321    # 792 - (396 + 75)
        assert result.merge.x == 193.5
        assert result.merge.y == 283.5
        assert result.merge.w == 150
        assert result.merge.h == 75
        assert result.merge.is_center_based

    def test_corner_derived_from_center(self):
        box = RelativeBox(rx=0.1, ry=0.3, rw=0.25, rh=0.15)
        result = place_signature(letter_page(90), box, RELATIVE)

        merge = result.merge
        assert merge.x == merge.cx - merge.w / 2
        assert merge.y == merge.cy - merge.h / 2

    def test_merge_dict_includes_center(self):
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        result = place_signature(letter_page(90), box, FIXED_150x75)

        assert result.merge.to_dict() == {
            "cx": 268.5,
            "cy": 321,
            "x": 193.5,
            "y": 283.5,
            "w": 150,
            "h": 75,
        }


class TestAxisAlignedRotations:
    """0 and 180 degree pages keep the unrotated footprint."""

    def test_rotation_0(self):
        box = RelativeBox(rx=0.25, ry=0.25, rw=0.2, rh=0.1)
        result = place_signature(letter_page(0), box, FIXED_150x75)

        assert result.overlay.viewport.wv == 612
        assert result.overlay.viewport.hv == 792
        assert result.overlay.x_v == 153
        assert result.overlay.y_v == 198
        assert result.merge.to_dict() == {"x": 153, "y": 519, "w": 150, "h": 75}

    def test_rotation_180(self):
        box = RelativeBox(rx=0.75, ry=0.75, rw=0.2, rh=0.1)
        result = place_signature(letter_page(180), box, FIXED_150x75)

        assert result.overlay.x_v == 459
        assert result.overlay.y_v == 594
        assert result.merge.to_dict() == {"x": 3, "y": 594, "w": 150, "h": 75}

    def test_rotation_0_top_left_box_lands_at_top(self):
        """A box at the top of the preview is near the top of PDF space."""
        box = RelativeBox(rx=0, ry=0, rw=0.2, rh=0.1)
        result = place_signature(letter_page(0), box, RELATIVE)

        assert result.merge.x == 0
        assert result.merge.y + result.merge.h == pytest.approx(792)


class TestInvariants:
    """Properties that hold for every valid input."""

    BOXES = [
        RelativeBox(rx=0, ry=0, rw=1, rh=1),
        RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1),
        RelativeBox(rx=0.1, ry=0.8, rw=0.3, rh=0.2),
        LOGGED_BOX,
    ]

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    def test_viewport_swap(self, rotation):
        result = place_signature(letter_page(rotation), LOGGED_BOX, RELATIVE)
        viewport = result.overlay.viewport

        if rotation in (90, 270):
            assert (viewport.wv, viewport.hv) == (792, 612)
        else:
            assert (viewport.wv, viewport.hv) == (612, 792)

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    @pytest.mark.parametrize("box", BOXES)
    def test_fixed_stamp_ignores_box_size(self, rotation, box):
        result = place_signature(letter_page(rotation), box, FIXED_150x75)
        assert result.merge.w == 150
        assert result.merge.h == 75

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    @pytest.mark.parametrize("box", BOXES)
    def test_relative_stamp_scales_with_viewport(self, rotation, box):
        result = place_signature(letter_page(rotation), box, RELATIVE)
        viewport = result.overlay.viewport
        assert result.merge.w == pytest.approx(box.rw * viewport.wv, abs=1e-10)
        assert result.merge.h == pytest.approx(box.rh * viewport.hv, abs=1e-10)

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    def test_deterministic(self, rotation):
        first = place_signature(letter_page(rotation), LOGGED_BOX, RELATIVE)
        second = place_signature(letter_page(rotation), LOGGED_BOX, RELATIVE)
        assert first == second
        assert first.log == second.log

    @pytest.mark.parametrize("rotation", [0, 180])
    def test_float_noise_is_not_rounded(self, rotation):
        page = letter_page(rotation, PageSize(w=611.99998, h=791.999978))
        result = place_signature(page, RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1), FIXED_150x75)

        assert result.overlay.viewport.wv == 611.99998
        assert result.overlay.viewport.hv == 791.999978

    def test_float_noise_flows_into_merge(self):
        page = letter_page(0, PageSize(w=612, h=791.999978))
        result = place_signature(page, RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1), FIXED_150x75)

        assert result.merge.y == 791.999978 - (0.5 * 791.999978 + 75)

    def test_inputs_not_mutated(self):
        page = letter_page(90)
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        place_signature(page, box, FIXED_150x75)

        assert page == letter_page(90)
        assert box == RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)

    def test_viewport_size_helper(self):
        assert viewport_size(LETTER, 90).wv == 792
        assert viewport_size(LETTER, 180).wv == 612


class TestPlacementLog:
    """The trace line is stable and carries every intermediate value."""

    def test_log_for_270(self):
        result = place_signature(letter_page(270), LOGGED_BOX, FIXED_150x75)

        assert result.log.startswith("MERGE v1 | page=1 rot=270")
        assert "W=612 H=792" in result.log
        assert "Wv=792 Hv=612" in result.log
        assert "x_v=573.000 y_v=454.000" in result.log
        assert "stamp(w,h)=150x75" in result.log
        assert "-> pdf(x,y,w,h)=(454.000,573.000,150.000,75.000)" in result.log
        assert result.log.endswith("mode=corner")

    def test_log_for_90_has_center(self):
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        result = place_signature(letter_page(90), box, FIXED_150x75)

        assert "center=(268.500,321.000)" in result.log
        assert result.log.endswith("mode=center")

    def test_log_keeps_raw_dimensions(self):
        page = letter_page(0, PageSize(w=612, h=791.999978))
        result = place_signature(page, RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1), FIXED_150x75)

        assert "H=791.999978" in result.log
        assert "Hv=791.999978" in result.log

    def test_format_number(self):
        assert format_number(612) == "612"
        assert format_number(612.0) == "612"
        assert format_number(791.999978) == "791.999978"
        assert format_number(37.5) == "37.5"


class TestResultSerialization:
    def test_to_dict_shape(self):
        box = RelativeBox(rx=0.25, ry=0.25, rw=0.2, rh=0.1)
        data = place_signature(letter_page(0), box, FIXED_150x75).to_dict()

        assert data["overlay"] == {"overlay": {"Wv": 612, "Hv": 792}, "x_v": 153, "y_v": 198}
        assert data["merge"] == {"x": 153, "y": 519, "w": 150, "h": 75}
        assert data["log"].startswith("MERGE v1")


class TestPlaceSignatureChecked:
    """Strict variant validates before placing."""

    def test_valid_input_places(self):
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        checked = place_signature_checked(letter_page(90), box, FIXED_150x75)
        unchecked = place_signature(letter_page(90), box, FIXED_150x75)
        assert checked == unchecked

    def test_invalid_input_raises(self):
        box = RelativeBox(rx=0.9, ry=0.5, rw=0.2, rh=0.1)
        with pytest.raises(PlacementValidationError) as exc_info:
            place_signature_checked(letter_page(0), box, FIXED_150x75)

        assert exc_info.value.code == "INVALID_PLACEMENT_INPUT"
        assert exc_info.value.message == "Relative box extends beyond page bounds"

    def test_missing_fixed_size_raises(self):
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        stamp = StampConfig(strategy=StampStrategy.FIXED)
        with pytest.raises(PlacementValidationError) as exc_info:
            place_signature_checked(letter_page(0), box, stamp)

        assert exc_info.value.message == "Fixed stamp size required when strategy is 'fixed'"

    def test_unchecked_unknown_rotation_raises(self):
        """place_signature has no transform for 45 degrees."""
        box = RelativeBox(rx=0.5, ry=0.5, rw=0.2, rh=0.1)
        with pytest.raises(PlacementValidationError) as exc_info:
            place_signature(letter_page(45), box, FIXED_150x75)

        assert exc_info.value.code == "INVALID_ROTATION"
