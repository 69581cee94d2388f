"""CDN delivery URL builder for transformed images."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from imagemill.backends.base import TransformURLBuilder

# Flag-style config keys -> effect segment
FLAG_EFFECTS = {
    "restore": "e_gen_restore",
    "removeBackground": "e_background_removal",
}

# Parameter names renamed in effect qualifiers
PARAMETER_ALIASES = {
    "to": "to-color",
    "removeShadow": "remove-shadow",
}

# Parameter-bag config keys -> effect name
BAG_EFFECTS = {
    "remove": "gen_remove",
    "recolor": "gen_recolor",
}


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if text.startswith("#"):
        text = text[1:]
    return quote(text, safe="")


def _bag_segment(effect: str, params: Mapping[str, Any]) -> str:
    qualifiers = [
        f"{PARAMETER_ALIASES.get(key, key)}_{_format_value(value)}"
        for key, value in params.items()
        if value not in ("", None)
    ]
    if not qualifiers:
        return f"e_{effect}"
    return f"e_{effect}:{';'.join(qualifiers)}"


class DeliveryURLBuilder(TransformURLBuilder):
    """Build delivery URLs of the form
    ``{base_url}/{cloud_name}/image/upload/{transformations}/{public_id}``.

    Each config entry becomes one slash-separated transformation segment.
    "fillBackground" pads to the target size with generated fill; every
    other config limits the output to the target size.
    """

    def __init__(self, cloud_name: str, base_url: str = "https://res.cloudinary.com"):
        self.cloud_name = cloud_name
        self.base_url = base_url.rstrip("/")

    def segments(self, width: int, height: int, config: Mapping[str, Any]) -> list[str]:
        """Return the transformation segments for a config, in config order."""
        segments = []
        fill = False
        for key, value in config.items():
            if key == "fillBackground":
                fill = bool(value)
            elif isinstance(value, Mapping):
                segments.append(_bag_segment(BAG_EFFECTS.get(key, key), value))
            elif value is True:
                segments.append(FLAG_EFFECTS.get(key, f"e_{key}"))
            elif value not in (False, None, ""):
                segments.append(f"e_{key}:{_format_value(value)}")

        if fill:
            segments.insert(0, f"c_pad,w_{width},h_{height}")
            segments.insert(1, "b_gen_fill")
        else:
            segments.append(f"c_limit,w_{width},h_{height}")
        return segments

    def build(
        self,
        public_id: str,
        width: int,
        height: int,
        config: dict[str, Any],
    ) -> str:
        path = "/".join(self.segments(width, height, config or {}))
        return f"{self.base_url}/{self.cloud_name}/image/upload/{path}/{public_id}"
