"""Tests for CLI argument parsing."""

from unittest.mock import patch

import pytest
from PIL import Image

from openmap.cli import parse_layer_spec, run_clear_cache, run_composite
from openmap.core.tile_cache import TileCache
from openmap.models.geo import BoundingBox, GeoPoint
from openmap.models.layer import LayerAlignment


def test_render_subcommand():
    """Test that 'render' builds a center point and forwards options."""
    test_args = ["openmap", "render", "43.6532", "-79.3832", "--zoom", "12", "--style", "terrain", "-o", "t.png"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_render") as mock_render:
        from openmap.main import main

        mock_render.return_value = 0
        result = main()

        assert result == 0
        assert mock_render.called
        location, output = mock_render.call_args[0]
        assert location == GeoPoint(43.6532, -79.3832)
        assert output == "t.png"
        assert mock_render.call_args[1]["zoom"] == 12
        assert mock_render.call_args[1]["style"] == "terrain"
        assert mock_render.call_args[1]["width"] is None


def test_render_subcommand_invalid_center():
    """Test that an out-of-range center exits with an error before rendering."""
    test_args = ["openmap", "render", "95", "0"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_render") as mock_render:
        from openmap.main import main

        assert main() == 1
        assert not mock_render.called


def test_render_bounds_subcommand():
    """Test that 'render-bounds' builds a bounding box with padding."""
    test_args = ["openmap", "render-bounds", "42", "-83", "46", "-76", "--padding", "0.1", "--width", "800"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_render") as mock_render:
        from openmap.main import main

        mock_render.return_value = 0
        main()

        bbox = mock_render.call_args[0][0]
        assert isinstance(bbox, BoundingBox)
        assert bbox.min_lat == pytest.approx(41.6)
        assert bbox.max_lon == pytest.approx(-75.3)
        assert mock_render.call_args[1]["width"] == 800


def test_region_subcommand():
    """Test that 'region' resolves presets by name."""
    test_args = ["openmap", "region", "Ontario", "-c", "settings.yaml"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_render") as mock_render:
        from openmap.main import main

        mock_render.return_value = 0
        main()

        assert isinstance(mock_render.call_args[0][0], BoundingBox)
        assert mock_render.call_args[1]["config_path"] == "settings.yaml"


def test_region_subcommand_unknown():
    test_args = ["openmap", "region", "atlantis"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_render") as mock_render:
        from openmap.main import main

        assert main() == 1
        assert not mock_render.called


def test_list_styles_subcommand(capsys):
    """Test that list-styles prints every style."""
    with patch("sys.argv", ["openmap", "list-styles"]):
        from openmap.main import main

        assert main() == 0

    output = capsys.readouterr().out
    for name in ("standard", "minimal", "terrain", "satellite", "terrain_dark"):
        assert name in output


def test_attribution_subcommand(capsys):
    with patch("sys.argv", ["openmap", "attribution", "standard", "satellite"]):
        from openmap.main import main

        assert main() == 0

    output = capsys.readouterr().out
    assert "© OpenStreetMap contributors; Esri, Maxar, Earthstar Geographics" in output


def test_clear_cache_subcommand():
    test_args = ["openmap", "clear-cache", "--expired", "-v"]

    with patch("sys.argv", test_args), patch("openmap.cli.run_clear_cache") as mock_clear:
        from openmap.main import main

        mock_clear.return_value = 0
        main()

        assert mock_clear.call_args[0][0] is None
        assert mock_clear.call_args[1]["expired_only"] is True


def test_no_args_prints_help(capsys):
    with patch("sys.argv", ["openmap"]):
        from openmap.main import main

        assert main() == 1

    assert "usage" in capsys.readouterr().out


def test_parse_layer_spec(tmp_path):
    """Test PATH[:OPACITY[:ALIGNMENT]] layer arguments."""
    path = tmp_path / "radar.png"
    Image.new("RGBA", (10, 10), (255, 0, 0, 255)).save(path)

    plain = parse_layer_spec(str(path))
    assert plain.opacity == 1.0
    assert plain.alignment == LayerAlignment.FILL

    with_opacity = parse_layer_spec(f"{path}:0.7")
    assert with_opacity.opacity == 0.7

    full = parse_layer_spec(f"{path}:0.5:bottom_right")
    assert full.opacity == 0.5
    assert full.alignment == LayerAlignment.BOTTOM_RIGHT

    with pytest.raises(ValueError):
        parse_layer_spec(f"{path}:0.5:diagonal")


def test_run_composite(tmp_path):
    """Test compositing files from the command line."""
    base = tmp_path / "base.png"
    overlay = tmp_path / "overlay.png"
    output = tmp_path / "out.png"
    Image.new("RGBA", (20, 20), (255, 255, 255, 255)).save(base)
    Image.new("RGBA", (5, 5), (0, 0, 0, 255)).save(overlay)

    assert run_composite(str(base), [f"{overlay}:1.0:top_left"], str(output)) == 0

    with Image.open(output) as result:
        assert result.size == (20, 20)
        assert result.convert("RGBA").getpixel((0, 0)) == (0, 0, 0, 255)
        assert result.convert("RGBA").getpixel((10, 10)) == (255, 255, 255, 255)


def test_run_composite_missing_base(tmp_path):
    assert run_composite(str(tmp_path / "missing.png"), [], str(tmp_path / "out.png")) == 1


def test_run_clear_cache(tmp_path):
    """Test clearing the cache directory named in a settings file."""
    cache_dir = tmp_path / "tiles"
    cache = TileCache(cache_dir)
    cache.put("10_1_2_abcdef01.png", b"data")
    config = tmp_path / "settings.yaml"
    config.write_text(f"tile_cache_directory: {cache_dir}\n")

    assert run_clear_cache(str(config)) == 0
    assert list(cache_dir.iterdir()) == []


def test_run_clear_cache_bad_config(tmp_path):
    assert run_clear_cache(str(tmp_path / "missing.yaml")) == 1
