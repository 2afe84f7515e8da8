"""Property-based tests for aspect-ratio classification.

**Feature: tubely, Property 1: Aspect Classification Bands**
"""

import pytest
from hypothesis import given, settings, strategies as st

from tubely.modules.media.models import (
    AspectClass,
    LANDSCAPE_RATIO,
    PORTRAIT_RATIO,
    RATIO_TOLERANCE,
    classify_dimensions,
    classify_ratio,
)

# Ratios safely inside each band (clear of float rounding at the edges)
portrait_ratio_strategy = st.floats(min_value=0.4626, max_value=0.6624)
landscape_ratio_strategy = st.floats(min_value=1.6801, max_value=1.8799)
other_ratio_strategy = st.one_of(
    st.floats(min_value=0.01, max_value=0.4624),
    st.floats(min_value=0.6626, max_value=1.6799),
    st.floats(min_value=1.8801, max_value=100.0),
)


class TestClassifyRatio:
    """Property tests for ratio bands."""

    @given(ratio=portrait_ratio_strategy)
    @settings(max_examples=200)
    def test_portrait_band(self, ratio: float) -> None:
        """**Feature: tubely, Property 1: Aspect Classification Bands**

        For any ratio in [0.4625, 0.6625], the classifier SHALL return Portrait.
        """
        assert classify_ratio(ratio) == AspectClass.PORTRAIT

    @given(ratio=landscape_ratio_strategy)
    @settings(max_examples=200)
    def test_landscape_band(self, ratio: float) -> None:
        """**Feature: tubely, Property 1: Aspect Classification Bands**

        For any ratio in [1.68, 1.88], the classifier SHALL return Landscape.
        """
        assert classify_ratio(ratio) == AspectClass.LANDSCAPE

    @given(ratio=other_ratio_strategy)
    @settings(max_examples=200)
    def test_outside_bands_is_other(self, ratio: float) -> None:
        """**Feature: tubely, Property 1: Aspect Classification Bands**

        For any ratio outside both bands, the classifier SHALL return Other.
        """
        assert classify_ratio(ratio) == AspectClass.OTHER

    def test_exact_reference_ratios(self) -> None:
        assert classify_ratio(0.5625) == AspectClass.PORTRAIT
        assert classify_ratio(1.78) == AspectClass.LANDSCAPE

    @pytest.mark.parametrize(
        "ratio, expected",
        [
            (0.4625, AspectClass.PORTRAIT),
            (0.6625, AspectClass.PORTRAIT),
            (1.68, AspectClass.LANDSCAPE),
            (1.88, AspectClass.LANDSCAPE),
        ],
    )
    def test_band_edges_are_inclusive(self, ratio: float, expected: AspectClass) -> None:
        assert classify_ratio(ratio) == expected

    def test_band_constants(self) -> None:
        assert PORTRAIT_RATIO == 0.5625
        assert LANDSCAPE_RATIO == 1.78
        assert RATIO_TOLERANCE == 0.10


class TestClassifyDimensions:
    """Tests for classification from pixel dimensions."""

    def test_1920x1080_is_landscape(self) -> None:
        assert classify_dimensions(1920, 1080) == AspectClass.LANDSCAPE

    def test_1080x1920_is_portrait(self) -> None:
        assert classify_dimensions(1080, 1920) == AspectClass.PORTRAIT

    def test_square_is_other(self) -> None:
        assert classify_dimensions(1080, 1080) == AspectClass.OTHER

    def test_4_3_is_other(self) -> None:
        assert classify_dimensions(1440, 1080) == AspectClass.OTHER

    @pytest.mark.parametrize(
        "width, height, expected",
        [
            (168, 100, AspectClass.LANDSCAPE),
            (188, 100, AspectClass.LANDSCAPE),
            (6625, 10000, AspectClass.PORTRAIT),
        ],
    )
    def test_pixel_pairs_on_band_edges(self, width: int, height: int, expected: AspectClass) -> None:
        assert classify_dimensions(width, height) == expected

    @given(
        height=st.integers(min_value=1, max_value=10_000),
        width=st.integers(min_value=1, max_value=10_000),
    )
    @settings(max_examples=200)
    def test_dimensions_agree_with_ratio(self, width: int, height: int) -> None:
        """**Feature: tubely, Property 1: Aspect Classification Bands**

        For any positive dimensions, classification SHALL equal classification
        of width / height.
        """
        assert classify_dimensions(width, height) == classify_ratio(width / height)
