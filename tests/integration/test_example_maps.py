import os
from pathlib import Path

import pytest

from tiled_render.maps import MapLoader
from tiled_render.render import Renderer

TILED_MAPS_PATH = os.environ.get("TILED_MAPS_PATH") or "examples/maps"


def example_maps() -> list[Path]:
    root = Path(TILED_MAPS_PATH)
    if not root.exists():
        return []
    return sorted(root.rglob("*.tmj"))


@pytest.mark.skipif(not Path(TILED_MAPS_PATH).exists(), reason="Tiled example maps not found")
@pytest.mark.parametrize("map_file", example_maps(), ids=lambda p: p.name)
def test_render_example_map(map_file: Path, tmp_path: Path):
    tiled_map = MapLoader().load(map_file)
    if tiled_map.orientation != "orthogonal":
        pytest.skip(f"{map_file.name} is {tiled_map.orientation}")

    renderer = Renderer(tiled_map)
    renderer.render_visible_layers_and_object_groups()
    renderer.render_visible_groups()

    out = tmp_path / f"{map_file.stem}.png"
    renderer.save(out)
    assert out.stat().st_size > 0
    print(f"✓ {map_file.name} rendered to {renderer.result.size}")
