"""Tests for layer compositing."""

import numpy as np
import pytest
from PIL import Image

from openmap.core.layer_compositor import LayerCompositor
from openmap.models.layer import Layer, LayerAlignment

WHITE = (255, 255, 255, 255)


def _noise(width, height, seed=0):
    rng = np.random.default_rng(seed)
    rgb = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    alpha = np.full((height, width, 1), 255, dtype=np.uint8)
    return Image.fromarray(np.concatenate([rgb, alpha], axis=2))


def test_fill_layer_round_trip():
    """Test that an opaque FILL layer at full opacity replaces the base exactly."""
    base = Image.new("RGBA", (64, 48), WHITE)
    image = _noise(64, 48)

    result = LayerCompositor.composite_layers(base, [Layer(image=image)])

    assert np.array_equal(np.array(result), np.array(image))


def test_fill_resizes_to_canvas():
    """Test that FILL stretches layers of another size."""
    base = Image.new("RGBA", (40, 30), WHITE)
    layer = Layer(image=Image.new("RGBA", (4, 3), (0, 0, 255, 255)))

    result = LayerCompositor.composite_layers(base, [layer])

    assert result.size == (40, 30)
    assert np.all(np.array(result) == (0, 0, 255, 255))


def test_base_is_not_modified():
    base = Image.new("RGBA", (10, 10), WHITE)
    LayerCompositor.composite_layers(base, [Layer(image=Image.new("RGBA", (10, 10), (0, 0, 0, 255)))])

    assert base.getpixel((5, 5)) == WHITE


def test_zero_opacity_is_skipped():
    base = _noise(16, 16, seed=1)
    layer = Layer(image=Image.new("RGBA", (16, 16), (0, 0, 0, 255)), opacity=0.0)

    result = LayerCompositor.composite_layers(base, [layer])

    assert np.array_equal(np.array(result), np.array(base))


def test_layer_alpha_scales_with_opacity():
    """Test that per-pixel alpha and layer opacity multiply."""
    base = Image.new("RGBA", (1, 1), WHITE)
    layer = Layer(image=Image.new("RGBA", (1, 1), (0, 0, 0, 128)), opacity=0.5)

    r, g, b, a = LayerCompositor.composite_layers(base, [layer]).getpixel((0, 0))

    # Effective alpha is 128/255 * 0.5, about 0.251
    assert r == g == b
    assert abs(r - 191) <= 1
    assert a == 255


def test_layers_stack_bottom_to_top():
    base = Image.new("RGBA", (8, 8), WHITE)
    red = Layer(image=Image.new("RGBA", (8, 8), (255, 0, 0, 255)), name="red")
    blue = Layer(image=Image.new("RGBA", (4, 4), (0, 0, 255, 255)), alignment="top_left", name="blue")

    result = LayerCompositor.composite_layers(base, [red, blue])

    assert result.getpixel((0, 0)) == (0, 0, 255, 255)
    assert result.getpixel((7, 7)) == (255, 0, 0, 255)


@pytest.mark.parametrize(
    "alignment, inside, outside",
    [
        (LayerAlignment.CENTER, (4, 3), (3, 3)),
        (LayerAlignment.TOP_LEFT, (0, 0), (2, 0)),
        (LayerAlignment.TOP_RIGHT, (9, 0), (7, 0)),
        (LayerAlignment.BOTTOM_LEFT, (0, 7), (0, 5)),
        (LayerAlignment.BOTTOM_RIGHT, (9, 7), (7, 7)),
    ],
)
def test_alignment_placement(alignment, inside, outside):
    """Test that native-size layers land where their alignment says."""
    base = Image.new("RGBA", (10, 8), WHITE)
    layer = Layer(image=Image.new("RGBA", (2, 2), (0, 0, 0, 255)), alignment=alignment)

    result = LayerCompositor.composite_layers(base, [layer])

    assert result.getpixel(inside) == (0, 0, 0, 255)
    assert result.getpixel(outside) == WHITE


def test_destination_rect_center_uses_floor():
    layer = Layer(image=Image.new("RGBA", (3, 3)), alignment=LayerAlignment.CENTER)

    assert LayerCompositor.destination_rect(layer, 10, 8) == (3, 2, 3, 3)


def test_oversized_layer_is_clipped():
    """Test that layers larger than the canvas are clipped, not resized."""
    base = Image.new("RGBA", (4, 4), WHITE)
    big = np.zeros((8, 8, 4), dtype=np.uint8)
    big[..., 3] = 255
    big[2:6, 2:6, 0] = 255  # Red center block
    layer = Layer(image=Image.fromarray(big), alignment=LayerAlignment.CENTER)

    result = LayerCompositor.composite_layers(base, [layer])

    assert result.size == (4, 4)
    assert np.all(np.array(result) == (255, 0, 0, 255))


def test_layer_validation(tmp_path):
    with pytest.raises(ValueError):
        Layer(image=Image.new("RGBA", (1, 1)), opacity=1.5)
    with pytest.raises(ValueError):
        Layer(image=Image.new("RGBA", (1, 1)), alignment="diagonal")
    with pytest.raises(FileNotFoundError):
        Layer.from_file(tmp_path / "missing.png")


def test_layer_from_file(tmp_path):
    path = tmp_path / "radar.png"
    Image.new("RGB", (5, 4), (1, 2, 3)).save(path)

    layer = Layer.from_file(path, opacity=0.7, alignment="Top-Left")

    assert layer.name == "radar"
    assert layer.size == (5, 4)
    assert layer.image.mode == "RGBA"
    assert layer.alignment == LayerAlignment.TOP_LEFT


def test_fill_radar_opacity():
    """Test a red radar layer at 70% over a white base."""
    base = Image.new("RGBA", (100, 100), WHITE)
    radar = Layer(image=Image.new("RGBA", (100, 100), (255, 0, 0, 255)), opacity=0.7)

    r, g, b, a = LayerCompositor.composite_layers(base, [radar]).getpixel((0, 0))

    assert r == 255
    assert abs(g - 76) <= 1
    assert abs(b - 76) <= 1
    assert a == 255
