"""Utilities for colors and for encoding rendered images."""

import io
import logging
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

LIGHT_GRAY = (211, 211, 211, 255)


def parse_hex_color(value: str | None) -> tuple[int, int, int, int]:
    """
    Parse a hex color string.

    Accepts "#RRGGBB" and "#AARRGGBB", with or without the leading '#'.

    Args:
        value: Hex color string

    Returns:
        (r, g, b, a) tuple; light gray when value is empty or malformed
    """
    if not value or not value.strip():
        return LIGHT_GRAY

    digits = value.strip().lstrip("#")
    try:
        if len(digits) == 6:
            r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
            return (r, g, b, 255)
        if len(digits) == 8:
            a, r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4, 6))
            return (r, g, b, a)
    except ValueError:
        pass

    logger.warning(f"Invalid hex color '{value}', using light gray")
    return LIGHT_GRAY


class ImageEncoder:
    """Utilities for encoding rendered maps to PNG or JPEG."""

    @staticmethod
    def to_rgb(img: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
        """Flatten an image onto a solid background, dropping alpha."""
        if img.mode == "RGBA":
            flattened = Image.new("RGB", img.size, background)
            flattened.paste(img, mask=img.split()[3])
            return flattened
        if img.mode != "RGB":
            return img.convert("RGB")
        return img

    @staticmethod
    def encode(img: Image.Image, image_format: str = "png", jpeg_quality: int = 90) -> bytes:
        """
        Encode an image to bytes.

        JPEG doesn't support transparency, so RGBA images are composited onto
        a white background first.

        Args:
            img: Image to encode
            image_format: "png" or "jpg"
            jpeg_quality: JPEG quality 1-100

        Returns:
            Encoded image bytes

        Raises:
            ValueError: If image_format is not supported or jpeg_quality is invalid
        """
        buffer = io.BytesIO()
        if image_format == "png":
            img.save(buffer, format="PNG")
        elif image_format in ("jpg", "jpeg"):
            if not 1 <= jpeg_quality <= 100:
                raise ValueError(f"JPEG quality must be 1-100, got {jpeg_quality}")
            ImageEncoder.to_rgb(img).save(buffer, format="JPEG", quality=jpeg_quality)
        else:
            raise ValueError(f"Unsupported image format: {image_format}. Supported: 'png', 'jpg'")
        return buffer.getvalue()

    @staticmethod
    def save(img: Image.Image, output_path: str | Path, jpeg_quality: int = 90) -> Path:
        """
        Save an image, choosing the format from the file extension.

        Parent directories are created as needed.

        Args:
            img: Image to save
            output_path: Destination (.png, .jpg or .jpeg)
            jpeg_quality: JPEG quality 1-100

        Returns:
            Path the image was written to
        """
        output_path = Path(output_path)
        image_format = output_path.suffix.lower().lstrip(".") or "png"

        data = ImageEncoder.encode(img, image_format, jpeg_quality)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
        return output_path
