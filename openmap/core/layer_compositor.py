"""Alpha compositing of raster layers onto a base canvas."""

import logging

import numpy as np
from PIL import Image

from openmap.models.layer import Layer, LayerAlignment

logger = logging.getLogger(__name__)


class LayerCompositor:
    """Composites layers bottom-to-top with uniform opacity and alignment."""

    @staticmethod
    def destination_rect(layer: Layer, canvas_width: int, canvas_height: int) -> tuple[int, int, int, int]:
        """
        Get where a layer lands on the canvas.

        Args:
            layer: Layer to place
            canvas_width: Canvas width in pixels
            canvas_height: Canvas height in pixels

        Returns:
            (x, y, width, height); x and y may be negative when the layer is
            larger than the canvas
        """
        width, height = layer.size
        alignment = layer.alignment

        if alignment == LayerAlignment.FILL:
            return (0, 0, canvas_width, canvas_height)
        if alignment == LayerAlignment.CENTER:
            return ((canvas_width - width) // 2, (canvas_height - height) // 2, width, height)
        if alignment == LayerAlignment.TOP_LEFT:
            return (0, 0, width, height)
        if alignment == LayerAlignment.TOP_RIGHT:
            return (canvas_width - width, 0, width, height)
        if alignment == LayerAlignment.BOTTOM_LEFT:
            return (0, canvas_height - height, width, height)
        if alignment == LayerAlignment.BOTTOM_RIGHT:
            return (canvas_width - width, canvas_height - height, width, height)

        raise ValueError(f"Unsupported alignment: {alignment}")

    @staticmethod
    def blend(base: np.ndarray, overlay: np.ndarray, opacity: float) -> np.ndarray:
        """
        Blend an RGBA overlay onto an RGBA region of the same shape.

        The layer's own alpha is scaled by the uniform opacity and the color
        channels use straight (non-premultiplied) blending:
        out = src * a + dst * (1 - a).

        Args:
            base: uint8 array (h, w, 4)
            overlay: uint8 array (h, w, 4)
            opacity: Layer opacity 0.0-1.0

        Returns:
            Blended uint8 array (h, w, 4)
        """
        base_f = base.astype(np.float64)
        overlay_f = overlay.astype(np.float64)

        alpha = (overlay_f[:, :, 3:4] / 255.0) * opacity

        result_rgb = overlay_f[:, :, :3] * alpha + base_f[:, :, :3] * (1.0 - alpha)
        result_alpha = alpha * 255.0 + base_f[:, :, 3:4] * (1.0 - alpha)

        result = np.concatenate([result_rgb, result_alpha], axis=2)
        return np.clip(np.rint(result), 0, 255).astype(np.uint8)

    @staticmethod
    def composite_layers(base: Image.Image, layers: list[Layer]) -> Image.Image:
        """
        Composite layers onto a base image.

        Args:
            base: Base raster; its size defines the output size
            layers: Layers in order from bottom to top

        Returns:
            New RGBA image; the base image is not modified
        """
        canvas_width, canvas_height = base.size
        canvas = np.array(base.convert("RGBA"), dtype=np.uint8)

        for layer in layers:
            if layer.opacity <= 0.0:
                logger.debug(f"Skipping layer '{layer.name}' (opacity 0)")
                continue

            x, y, width, height = LayerCompositor.destination_rect(layer, canvas_width, canvas_height)

            image = layer.image.convert("RGBA")
            if image.size != (width, height):
                image = image.resize((width, height), Image.Resampling.BICUBIC)

            # Clip destination to the canvas
            left, top = max(0, x), max(0, y)
            right, bottom = min(canvas_width, x + width), min(canvas_height, y + height)
            if right <= left or bottom <= top:
                logger.debug(f"Layer '{layer.name}' lies outside the canvas")
                continue

            overlay = np.array(image, dtype=np.uint8)[top - y : bottom - y, left - x : right - x]
            canvas[top:bottom, left:right] = LayerCompositor.blend(
                canvas[top:bottom, left:right], overlay, layer.opacity
            )

        return Image.fromarray(canvas)
