"""
Normalized metadata and thumbnail position models.

NormalizedMetadata is the shape every tool parser produces, regardless of
which generator wrote the image. Its fields are always strings; missing
data is an empty string, never None.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class NormalizedMetadata:
    """
    Tool-agnostic generation metadata for one image.

    Attributes:
        title: Display title
        prompt: Generation prompt (possibly several, labeled)
        model: Model or tool name
        tags: Comma-separated tag list
        notes: Free-form, multi-line notes
    """
    title: str = ""
    prompt: str = ""
    model: str = ""
    tags: str = ""
    notes: str = ""

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) is None:
                setattr(self, f.name, "")

    @property
    def is_empty(self) -> bool:
        """True when every field is empty."""
        return not any(self.to_dict().values())

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for storage."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NormalizedMetadata":
        """Build from a dictionary, ignoring unknown keys."""
        data = data or {}
        return cls(**{f.name: str(data.get(f.name) or "") for f in fields(cls)})


@dataclass(frozen=True)
class ThumbnailPosition:
    """
    Focal point of a thumbnail crop, as percentages of the source image.

    Attributes:
        x: Horizontal focus, 0 (left) to 100 (right)
        y: Vertical focus, 0 (top) to 100 (bottom)
    """
    x: int = 50
    y: int = 25

    def __post_init__(self):
        for name in ("x", "y"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Thumbnail position {name} must be an integer, got {value!r}")
            if not 0 <= value <= 100:
                raise ValueError(f"Thumbnail position {name} must be within 0-100, got {value}")

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ThumbnailPosition":
        """
        Build from an {x, y} mapping.

        Missing coordinates fall back to the defaults. Float values are
        rounded so positions saved by a browser slider still load.
        """
        if not data:
            return cls()
        x = data.get("x")
        y = data.get("y")
        return cls(
            x=cls.x if x is None else int(round(float(x))),
            y=cls.y if y is None else int(round(float(y))),
        )


# Slightly above center; portraits usually keep the face in frame
DEFAULT_THUMBNAIL_POSITION = ThumbnailPosition(50, 25)
