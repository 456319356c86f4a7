"""Test de la síntesis de escenas.

Casos:
    - sin solape y con holgura: distancias entre centros >= 2r
    - configuración imposible: termina y devuelve exactamente dot_count puntos
    - centros dentro de [r, size-r)
    - píxeles binarios en [0,1] coherentes con la imagen PIL

Ejecutar:
    pytest tests/test_scene.py -v
"""

import itertools
import math

import numpy as np
import pytest

from rng import Mulberry32
from scene import foreground_pixels, place_dots, render_scene


@pytest.mark.parametrize("seed", range(20))
def test_disallow_overlap_keeps_distance(seed):
    scene = render_scene(64, 3, 3, Mulberry32(seed), allow_overlap=False)
    assert scene.relaxed == 0
    for (x1, y1, _), (x2, y2, _) in itertools.combinations(scene.dot_positions, 2):
        assert math.hypot(x1 - x2, y1 - y2) >= 6


def test_infeasible_configuration_terminates_with_all_dots():
    scene = render_scene(64, 50, 10, Mulberry32(3), allow_overlap=False)
    assert len(scene.dot_positions) == 50
    assert scene.dot_count == 50
    assert scene.relaxed > 0


def test_centers_within_margin():
    centers, _ = place_dots(32, 40, 4, Mulberry32(11), allow_overlap=True)
    assert len(centers) == 40
    for x, y in centers:
        assert 4 <= x < 28
        assert 4 <= y < 28


def test_allow_overlap_never_relaxes():
    _, relaxed = place_dots(16, 30, 3, Mulberry32(1), allow_overlap=True)
    assert relaxed == 0


def test_pixels_match_image():
    scene = render_scene(32, 4, 2, Mulberry32(42), allow_overlap=False)
    assert scene.pixels.shape == (32, 32)
    assert scene.pixels.dtype == np.float32
    assert set(np.unique(scene.pixels)) <= {0.0, 1.0}
    np.testing.assert_array_equal(scene.pixels, np.asarray(scene.image) / 255.0)
    # cada centro queda pintado
    for x, y, _ in scene.dot_positions:
        assert scene.pixels[y, x] == 1.0


def test_zero_dots_is_blank():
    scene = render_scene(16, 0, 2, Mulberry32(0), allow_overlap=False)
    assert scene.dot_positions == []
    assert foreground_pixels(scene) == 0


def test_same_rng_seed_same_scene():
    a = render_scene(32, 5, 2, Mulberry32(8), allow_overlap=False)
    b = render_scene(32, 5, 2, Mulberry32(8), allow_overlap=False)
    assert a.dot_positions == b.dot_positions
    np.testing.assert_array_equal(a.pixels, b.pixels)
