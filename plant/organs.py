"""Parametric organ shapes: leaf blades, petals and the assembled flower.

Leaf and petal outlines are drawn in the XY plane with the attachment point
at the origin, then extruded along +Z. The flower is assembled around the +Y
axis, with petal rows rotated about it.
"""

import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import NamedTuple

import numpy as np

from plant import sampling
from plant.config import PlantConfig
from plant.geometry import Outline, compute_vertex_normals, cylinder, extrude, sphere
from plant.health import hex_to_rgb, offset_hsl
from plant.scene import Mesh, Node

STEM_GREEN = 0x2E8B57
STAMEN_COLUMN_COLOR = 0xFF3300
ANTHER_COLOR = 0xFFDD00
STAMEN_COLOR = 0xFFAA00
STAMEN_TIP_COLOR = 0xFFFF00

RIPPLE_FREQUENCY = 4
RIPPLE_AMPLITUDE = 0.015


class PetalRow(NamedTuple):
    width: float
    length: float
    curve: float  # cup depth at mid-length
    height: float  # y offset above the flower base
    tilt: float  # lift away from the horizontal, radians
    phase: float  # angular offset in units of one petal step


LOWER_ROW = PetalRow(width=0.2, length=0.45, curve=0.08, height=0.03, tilt=0.4, phase=0.0)
UPPER_ROW = PetalRow(width=0.18, length=0.4, curve=0.06, height=0.08, tilt=0.6, phase=0.5)


@lru_cache(maxsize=8)
def leaf_geometry(curve_segments: int = 12) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Pointed-oval leaf blade, base at the origin, tip at (0, 0.4).

    Shared by every leaf; callers must not modify the returned arrays.

    Returns:
        vertices, faces, normals
    """
    outline = Outline(curve_segments)
    outline.move_to(0, 0)
    outline.quadratic_curve_to(0.15, 0.2, 0, 0.4)
    outline.quadratic_curve_to(-0.15, 0.2, 0, 0)

    vertices, faces = extrude(
        outline.points(),
        depth=0.03,
        bevel_thickness=0.002,
        bevel_size=0.005,
        bevel_segments=1,
    )
    normals = compute_vertex_normals(vertices, faces)
    for arr in (vertices, faces, normals):
        arr.setflags(write=False)
    return vertices, faces, normals


def petal_outline(width: float, length: float, curve_segments: int = 12) -> np.ndarray:
    """Rippled petal outline along +X, base at the origin.

    Each side follows ``width * sin(t*pi)`` plus a small sinusoidal ripple.
    The two sides use different ripple phases so the petal is not mirror
    symmetric.
    """
    outline = Outline(curve_segments)
    outline.move_to(0, 0)

    # Sides stop one step short of the tip so the tip curve has room
    samples = np.linspace(0.0, 0.9, 10)
    for t in samples:
        x = t * length
        ripple = math.sin(t * math.pi * RIPPLE_FREQUENCY) * RIPPLE_AMPLITUDE
        y = width * math.sin(t * math.pi) + ripple
        if t == 0:
            outline.line_to(x, y)
        else:
            outline.bezier_curve_to(x - 0.05, y - 0.01, x - 0.02, y + 0.01, x, y)

    # Tip
    outline.bezier_curve_to(length - 0.05, 0.02, length - 0.05, -0.02, length, 0)

    for t in samples[::-1]:
        x = t * length
        ripple = math.sin(t * math.pi * RIPPLE_FREQUENCY + 1) * RIPPLE_AMPLITUDE
        y = -(width * math.sin(t * math.pi) + ripple)
        if t == 0:
            outline.line_to(x, y)
        else:
            outline.bezier_curve_to(x + 0.03, y - 0.01, x + 0.01, y + 0.01, x, y)

    outline.line_to(0, 0)
    return outline.points()


@lru_cache(maxsize=8)
def petal_geometry(
    width: float,
    length: float,
    curve: float,
    curve_segments: int = 12,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Extruded petal cupped along its length, shared like ``leaf_geometry``.

    Every vertex is pushed along the thickness axis by
    ``curve * sin(t*pi)`` with ``t = x / length``.

    Returns:
        vertices, faces, normals
    """
    vertices, faces = extrude(
        petal_outline(width, length, curve_segments),
        depth=0.02,
        steps=2,
        bevel_thickness=0.01,
        bevel_size=0.01,
        bevel_segments=3,
    )
    t = vertices[:, 0] / length
    vertices[:, 2] += curve * np.sin(t * np.pi)
    normals = compute_vertex_normals(vertices, faces)
    for arr in (vertices, faces, normals):
        arr.setflags(write=False)
    return vertices, faces, normals


@dataclass
class Flower:
    """Handles to the parts of one flower."""

    node: Node
    base_color: int
    petals: list[Node] = field(default_factory=list)
    stamens: list[Node] = field(default_factory=list)
    calyx: Node = None
    stamen_column: Node = None
    anther: Node = None

    @property
    def petal_count(self) -> int:
        return len(self.petals)


def _part(name: str, geometry, color: int) -> Node:
    vertices, faces = geometry
    return Node(name, Mesh(vertices, faces, color=hex_to_rgb(color)))


def build_flower(rng, scale: float = 1.0, config: PlantConfig = None) -> Flower:
    """Assemble a flower centered on the origin, opening towards +Y.

    One palette color is drawn for the whole flower; each petal gets a small
    hue and lightness offset from it.
    """
    config = config or PlantConfig()
    radial = config.radial_segments
    sphere_res = config.sphere_segments

    center = Node("flower")
    center.scale[:] = scale

    base_color = sampling.choice(rng, config.petal_palette)
    flower = Flower(node=center, base_color=base_color)

    calyx = _part("calyx", cylinder(0.08, 0.05, 0.08, radial), STEM_GREEN)
    calyx.position[1] = -0.02
    center.add(calyx)
    flower.calyx = calyx

    per_row = config.petals_per_row
    for row_name, row in (("lower", LOWER_ROW), ("upper", UPPER_ROW)):
        vertices, faces, normals = petal_geometry(row.width, row.length, row.curve, config.curve_segments)
        for i in range(per_row):
            color = offset_hsl(
                hex_to_rgb(base_color),
                hue=sampling.jitter(rng, 0.05),
                lightness=sampling.jitter(rng, 0.1),
            )
            petal = Node(f"petal/{row_name}/{i}", Mesh(vertices, faces, normals, color))
            angle = (i + row.phase) / per_row * 2 * math.pi
            petal.position[1] = row.height
            # Lay the blade flat (cup up), lift the tip, then spin about the axis
            petal.rotation_order = "YZX"
            petal.rotation[:] = (
                -math.pi / 2 + sampling.jitter(rng, 0.1),
                angle,
                row.tilt + sampling.jitter(rng, 0.1),
            )
            center.add(petal)
            flower.petals.append(petal)

    column = _part("stamen_column", cylinder(0.015, 0.015, 0.3, radial), STAMEN_COLUMN_COLOR)
    column.position[1] = 0.15
    center.add(column)
    flower.stamen_column = column

    anther = _part("anther", sphere(0.04, sphere_res, sphere_res), ANTHER_COLOR)
    anther.position[1] = 0.3
    center.add(anther)
    flower.anther = anther

    stamen_geometry = cylinder(0.008, 0.008, 0.06, max(radial // 2, 3))
    tip_geometry = sphere(0.01, max(sphere_res // 2, 3), max(sphere_res // 2, 3))
    for i in range(5):
        angle = i / 5 * 2 * math.pi
        stamen = _part(f"stamen/{i}", stamen_geometry, STAMEN_COLOR)
        stamen.position[:] = (
            math.cos(angle) * 0.025,
            0.27 + (i % 2) * 0.015,
            math.sin(angle) * 0.025,
        )
        # Splay outward along the ring direction
        stamen.rotation_order = "YZX"
        stamen.rotation[:] = (0.0, -angle, -(math.pi / 2 - 0.3))

        tip = _part("tip", tip_geometry, STAMEN_TIP_COLOR)
        tip.position[1] = 0.035
        stamen.add(tip)

        center.add(stamen)
        flower.stamens.append(stamen)

    return flower
