"""Layer model for compositing rasters onto a base map."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image


class LayerAlignment(Enum):
    """How a layer is placed on the canvas."""

    FILL = "fill"  # Stretch to the whole canvas
    CENTER = "center"  # Native size, centered
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"

    @classmethod
    def parse(cls, value: "str | LayerAlignment") -> "LayerAlignment":
        """
        Parse an alignment name.

        Args:
            value: Alignment name such as "fill", "top-left" or "TopLeft"

        Returns:
            Matching LayerAlignment

        Raises:
            ValueError: If the name is not a known alignment
        """
        if isinstance(value, cls):
            return value

        normalized = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for alignment in cls:
            if alignment.value.replace("_", "") == normalized:
                return alignment

        valid = ", ".join(a.value for a in cls)
        raise ValueError(f"Alignment must be one of {valid}, got {value}")


@dataclass
class Layer:
    """A raster composited with uniform opacity and an alignment policy."""

    image: Image.Image
    opacity: float = 1.0  # 0.0-1.0
    alignment: LayerAlignment = LayerAlignment.FILL
    name: str = ""

    def __post_init__(self):
        """Validate layer settings."""
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Opacity must be between 0 and 1, got {self.opacity}")

        self.alignment = LayerAlignment.parse(self.alignment)

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        opacity: float = 1.0,
        alignment: LayerAlignment | str = LayerAlignment.FILL,
    ) -> "Layer":
        """
        Create a layer from an image file.

        Args:
            path: Image file path
            opacity: Layer opacity 0.0-1.0
            alignment: Placement on the canvas

        Returns:
            Layer named after the file stem

        Raises:
            FileNotFoundError: If the image file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Layer image not found: {path}")

        with Image.open(path) as img:
            image = img.convert("RGBA")

        return cls(image=image, opacity=opacity, alignment=alignment, name=path.stem)
