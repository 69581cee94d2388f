"""Centralized constants for imagemill.

The preset and transformation tables are read-only and shared process-wide.
A YAML config can layer additions on top (see imagemill.config).
"""

from types import MappingProxyType
from typing import Literal

from imagemill.models import AspectRatioPreset, TransformationType

# Fallback edge length for unknown sizes
DEFAULT_DIMENSION = 1000

# Credits charged per successful apply
DEFAULT_CREDIT_FEE = 1

# Quiet period before a text/color edit is staged
DEFAULT_DEBOUNCE_MS = 1000

Dimension = Literal["width", "height"]

TRANSFORM_TYPES = ("restore", "removeBackground", "fill", "remove", "recolor")
TransformType = Literal["restore", "removeBackground", "fill", "remove", "recolor"]

# Form field -> parameter name inside the directive's bag
FIELD_PARAMETERS = MappingProxyType({
    "prompt": "prompt",
    "color": "to",
})

ASPECT_RATIO_OPTIONS = MappingProxyType({
    "1:1": AspectRatioPreset(
        key="1:1",
        label="Square (1:1)",
        width=1000,
        height=1000,
        aspect_ratio="1:1",
    ),
    "3:4": AspectRatioPreset(
        key="3:4",
        label="Standard Portrait (3:4)",
        width=1000,
        height=1334,
        aspect_ratio="3:4",
    ),
    "9:16": AspectRatioPreset(
        key="9:16",
        label="Phone Portrait (9:16)",
        width=1000,
        height=1778,
        aspect_ratio="9:16",
    ),
})

TRANSFORMATION_TYPES = MappingProxyType({
    "restore": TransformationType(
        type="restore",
        title="Restore Image",
        subtitle="Refine images by removing noise and imperfections",
        config={"restore": True},
        auto_stage=True,
    ),
    "removeBackground": TransformationType(
        type="removeBackground",
        title="Background Remove",
        subtitle="Removes the background of the image using AI",
        config={"removeBackground": True},
        auto_stage=True,
    ),
    "fill": TransformationType(
        type="fill",
        title="Generative Fill",
        subtitle="Enhance an image's dimensions using AI outpainting",
        config={"fillBackground": True},
    ),
    "remove": TransformationType(
        type="remove",
        title="Object Remove",
        subtitle="Identify and eliminate objects from images",
        config={"remove": {"prompt": "", "removeShadow": True, "multiple": True}},
    ),
    "recolor": TransformationType(
        type="recolor",
        title="Object Recolor",
        subtitle="Identify and recolor objects from the image",
        config={"recolor": {"prompt": "", "to": "", "multiple": True}},
    ),
})
