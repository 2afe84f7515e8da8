"""Media geometry and aspect classification."""

from dataclasses import dataclass
from enum import Enum


class AspectClass(str, Enum):
    """Coarse aspect-ratio bucket of a video."""
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


# Reference ratios (width / height) and the tolerance applied to each
PORTRAIT_RATIO = 0.5625  # 9:16
LANDSCAPE_RATIO = 1.78  # 16:9
RATIO_TOLERANCE = 0.10


@dataclass(frozen=True)
class VideoGeometry:
    """Pixel dimensions of a video stream."""
    width: int
    height: int

    @property
    def ratio(self) -> float:
        return self.width / self.height


def _within(ratio: float, target: float, tolerance: float) -> bool:
    return (target - tolerance) <= ratio <= (target + tolerance)


def classify_ratio(ratio: float) -> AspectClass:
    """Classify a width/height ratio.

    Portrait is checked before landscape; if the bands ever overlap the
    portrait class wins.

    Args:
        ratio: Width divided by height

    Returns:
        AspectClass for the ratio
    """
    if _within(ratio, PORTRAIT_RATIO, RATIO_TOLERANCE):
        return AspectClass.PORTRAIT
    if _within(ratio, LANDSCAPE_RATIO, RATIO_TOLERANCE):
        return AspectClass.LANDSCAPE
    return AspectClass.OTHER


def classify_dimensions(width: int, height: int) -> AspectClass:
    """Classify pixel dimensions. ``height`` must be positive."""
    return classify_ratio(width / height)
