"""Data model for the transformation configuration engine."""

from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# A directive or accumulated config: transform-type tag -> parameter bag.
# Flag-style types (e.g. {"restore": True}) carry a scalar instead of a bag.
TransformConfig = dict[str, Any]

DIMENSIONS = ("width", "height")


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


class TransformState(str, Enum):
    """States of a TransformController."""

    IDLE = "idle"  # Nothing staged, nothing in flight
    STAGED = "staged"  # A directive waits for apply
    COMMITTING = "committing"  # Credit deduction in flight
    COMMITTED = "committed"  # Config published, about to return to idle
    ERROR = "error"  # Last transition failed, waiting to be acknowledged


@dataclass
class ImageState:
    """The uploaded source asset being edited.

    All fields are optional: a form can exist before an upload finishes,
    and presets may be picked before the intrinsic size is known.
    """

    public_id: str | None = None
    width: int | None = None
    height: int | None = None
    secure_url: str | None = None
    aspect_ratio: str | None = None

    def dimension(self, name: str) -> int | None:
        """Return the stored width or height, or None for unknown names."""
        if name not in DIMENSIONS:
            return None
        return getattr(self, name)

    @classmethod
    def from_upload(cls, info: dict[str, Any]) -> "ImageState":
        """Build state from an upload widget result (public_id, width, height, secure_url)."""
        return cls(
            public_id=info.get("public_id"),
            width=info.get("width"),
            height=info.get("height"),
            secure_url=info.get("secure_url"),
        )


@dataclass(frozen=True)
class AspectRatioPreset:
    """A named output size used to resolve "fill" dimensions."""

    key: str
    label: str
    width: int
    height: int
    aspect_ratio: str


@dataclass(frozen=True)
class TransformationType:
    """A transformation offered to the user.

    Attributes:
        type: Tag used in directives and as the page route
        title: Display title
        subtitle: Display subtitle
        config: Default parameter bag staged by discrete selections (read-only)
        auto_stage: Stage `config` as soon as an image is present
    """

    type: str
    title: str
    subtitle: str = ""
    config: Mapping[str, Any] = field(default_factory=dict)
    auto_stage: bool = False

    def __post_init__(self):
        # Shared by every controller of this type
        object.__setattr__(self, "config", _freeze(self.config))

    def default_directive(self) -> TransformConfig:
        """Return a fresh, mutable copy of the default config."""
        return _thaw(self.config)


@dataclass(frozen=True)
class TransformDescriptor:
    """Final artifact handed to a PersistenceAdapter."""

    public_id: str
    transformation_type: str
    width: int
    height: int
    config: TransformConfig
    transformation_url: str
    title: str = ""
    secure_url: str | None = None
    aspect_ratio: str | None = None
    prompt: str | None = None
    color: str | None = None
    record_id: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Return a plain dict suitable for a document store."""
        record = {
            "title": self.title,
            "publicId": self.public_id,
            "transformationType": self.transformation_type,
            "width": self.width,
            "height": self.height,
            "config": deepcopy(self.config),
            "secureURL": self.secure_url,
            "transformationURL": self.transformation_url,
            "aspectRatio": self.aspect_ratio,
            "prompt": self.prompt,
            "color": self.color,
        }
        if self.record_id is not None:
            record["_id"] = self.record_id
        return record


@dataclass
class CommitResult:
    """Outcome of a successful apply."""

    config: TransformConfig
    new_balance: int
    fee: int
