# ================== SÍNTESIS DE ESCENAS: PUNTOS SOBRE FONDO NEGRO ==================
import logging
import math
from dataclasses import dataclass, field

import numpy as np
from PIL import Image, ImageDraw

from config import PLACEMENT_ATTEMPTS

logger = logging.getLogger(__name__)


@dataclass
class Scene:
    pixels: np.ndarray           # (size, size) float32 en [0,1]
    image: Image.Image           # mismo render, listo para mostrar
    size: int
    dot_count: int
    dot_positions: list = field(default_factory=list)   # [(x, y, radio)]
    relaxed: int = 0             # puntos colocados sin respetar la separación


def place_dots(size, dot_count, dot_radius, rng, allow_overlap, max_attempts=PLACEMENT_ATTEMPTS):
    """
    Elige centros uniformes en [r, size-r). Sin solape, un candidato a menos de 2r
    de otro centro se descarta; tras `max_attempts` descartes se acepta igualmente.
    Devuelve (centros, relajados); siempre hay exactamente `dot_count` centros.
    """
    span = size - 2 * dot_radius
    min_dist = 2 * dot_radius
    positions, relaxed = [], 0
    for _ in range(dot_count):
        for attempt in range(1, max_attempts + 1):
            x = math.floor(rng() * span) + dot_radius
            y = math.floor(rng() * span) + dot_radius
            if allow_overlap:
                break
            if all(math.hypot(px - x, py - y) >= min_dist for px, py in positions):
                break
        else:
            relaxed += 1
            logger.debug("Punto %d colocado con solape tras %d intentos", len(positions), attempt)
        positions.append((x, y))
    return positions, relaxed


def render_scene(size, dot_count, dot_radius, rng, allow_overlap):
    """
    Rasteriza los puntos como círculos rellenos (blanco=255 sobre negro=0).
    `pixels` sale del mismo render normalizado a [0,1].
    """
    centers, relaxed = place_dots(size, dot_count, dot_radius, rng, allow_overlap)

    img  = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(img)
    for x, y in centers:
        draw.ellipse([x - dot_radius, y - dot_radius, x + dot_radius, y + dot_radius], fill=255)

    pixels = np.asarray(img, dtype=np.float32) / 255.0
    return Scene(pixels=pixels, image=img, size=size, dot_count=dot_count,
                 dot_positions=[(x, y, dot_radius) for x, y in centers],
                 relaxed=relaxed)


def foreground_pixels(scene:Scene) -> int:
    return int((scene.pixels > 0.5).sum())
