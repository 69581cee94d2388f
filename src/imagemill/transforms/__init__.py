"""Transformation configuration primitives for imagemill.

Usage:
    from imagemill.transforms import merge_directive, resolve_image_size

    config = merge_directive({"recolor": {"prompt": "sky"}}, config)
    width = resolve_image_size("fill", image, "width")
"""

from imagemill.transforms.debounce import ChangeDebouncer
from imagemill.transforms.merge import copy_config, merge_directive, stage_parameter
from imagemill.transforms.sizing import resolve_image_size, resolve_output_size

__all__ = [
    "ChangeDebouncer",
    "copy_config",
    "merge_directive",
    "stage_parameter",
    "resolve_image_size",
    "resolve_output_size",
]
