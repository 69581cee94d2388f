"""Output size resolution for transformations."""

from collections.abc import Mapping
from typing import Any

from imagemill.constants import ASPECT_RATIO_OPTIONS, DEFAULT_DIMENSION
from imagemill.models import DIMENSIONS, AspectRatioPreset, ImageState

# Mapping keys accepted for the preset key when `image` is a plain dict
_ASPECT_RATIO_KEYS = ("aspect_ratio", "aspectRatio")


def _image_value(image: ImageState | Mapping[str, Any] | None, name: str) -> Any:
    if image is None:
        return None
    if isinstance(image, ImageState):
        if name == "aspect_ratio":
            return image.aspect_ratio
        return image.dimension(name)
    if name == "aspect_ratio":
        for key in _ASPECT_RATIO_KEYS:
            if image.get(key):
                return image[key]
        return None
    return image.get(name)


def _positive(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and value > 0
    )


def resolve_image_size(
    transform_type: str,
    image: ImageState | Mapping[str, Any] | None,
    dimension: str,
    presets: Mapping[str, AspectRatioPreset] = ASPECT_RATIO_OPTIONS,
    default: int = DEFAULT_DIMENSION,
) -> int:
    """
    Resolve one output dimension for a transformation.

    "fill" output follows the selected aspect-ratio preset; every other
    type keeps the image's intrinsic size. Anything unknown (no image,
    unset or unrecognised preset, missing or non-positive size, a
    dimension name other than width/height) degrades to `default`.

    Args:
        transform_type: Transformation tag (e.g. "fill", "recolor")
        image: ImageState, a plain mapping, or None
        dimension: "width" or "height"
        presets: Aspect-ratio table to consult for "fill"
        default: Fallback edge length

    Returns:
        A positive integer
    """
    if dimension not in DIMENSIONS:
        return default

    if transform_type == "fill":
        preset = presets.get(_image_value(image, "aspect_ratio") or "")
        if preset is None:
            return default
        value = getattr(preset, dimension)
    else:
        value = _image_value(image, dimension)

    if not _positive(value):
        return default
    # Sub-pixel sizes truncate to zero
    size = int(value)
    return size if size > 0 else default


def resolve_output_size(
    transform_type: str,
    image: ImageState | Mapping[str, Any] | None,
    presets: Mapping[str, AspectRatioPreset] = ASPECT_RATIO_OPTIONS,
    default: int = DEFAULT_DIMENSION,
) -> tuple[int, int]:
    """Resolve (width, height) for a transformation."""
    return (
        resolve_image_size(transform_type, image, "width", presets, default),
        resolve_image_size(transform_type, image, "height", presets, default),
    )
