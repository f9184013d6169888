"""Leaf and flower placement along a stem.

A stem's organs live in two groups: a ``LeafGroup`` holding a batch of leaves
that is always rebuilt as a whole, and a ``FlowerGroup`` holding at most one
flower at the stem's free end.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from plant import sampling
from plant.config import PlantConfig
from plant.health import leaf_color
from plant.organs import Flower, build_flower, leaf_geometry
from plant.scene import Mesh, Node
from plant.states import EnvironmentalState

if TYPE_CHECKING:
    from plant.topology import Segment, Stem


def target_leaf_count(moisture: float, config: PlantConfig = None) -> int:
    """Main-stem leaf count for a moisture level: 10 + one per 10% moisture."""
    config = config or PlantConfig()
    return config.base_leaf_count + int(math.floor(moisture / config.moisture_per_leaf))


@dataclass
class Leaf:
    connector: Node  # sits on the stem surface, faces outward
    blade: Node  # carries the mesh; droop rotates this node
    scale: float
    azimuth: float


class LeafGroup:
    """The current batch of leaves on one stem."""

    def __init__(self, name: str = "leaves"):
        self.node = Node(name)
        self.leaves: list[Leaf] = []

    def __len__(self) -> int:
        return len(self.leaves)

    def __iter__(self):
        return iter(self.leaves)

    def clear(self):
        self.node.clear()
        self.leaves = []

    def regenerate(
        self,
        segments: list["Segment"],
        min_height: float,
        max_height: float,
        count: int,
        color: np.ndarray,
        rng,
        config: PlantConfig = None,
    ) -> list[Leaf]:
        """Discard every leaf and build a fresh batch of ``count`` leaves.

        Leaf ``i`` sits at ``min_height + (i / count) * (max_height - min_height)``
        on the segment covering that fraction of the stem, clamped into the
        segment's vertical span. A stem without segments ends up bare.
        """
        config = config or PlantConfig()
        self.clear()
        if not segments or count <= 0:
            return self.leaves

        vertices, faces, normals = leaf_geometry(config.curve_segments)
        n_segments = len(segments)

        for i in range(count):
            progress = i / count
            height = min_height + progress * (max_height - min_height)
            segment = segments[min(int(progress * n_segments), n_segments - 1)]
            y = min(max(height, segment.bottom_y), segment.top_y)

            scale = sampling.uniform(rng, *config.leaf_scale)
            azimuth = sampling.uniform(rng, 0.0, 2 * math.pi)

            connector = Node(f"leaf/{i}")
            connector.position[:] = (
                math.cos(azimuth) * segment.radius_top,
                y,
                math.sin(azimuth) * segment.radius_top,
            )
            # Local +X points away from the stem axis
            connector.rotation[1] = -azimuth

            blade = Node("blade", Mesh(vertices, faces, normals, color))
            blade.scale[:] = scale
            blade.rotation[:] = (
                math.pi / 2 + sampling.jitter(rng, config.leaf_jitter),
                0.0,
                -math.pi / 2 + sampling.jitter(rng, config.leaf_jitter),
            )
            connector.add(blade)

            self.node.add(connector)
            self.leaves.append(Leaf(connector=connector, blade=blade, scale=scale, azimuth=azimuth))

        return self.leaves

    def recolor(self, color: np.ndarray):
        for leaf in self.leaves:
            leaf.blade.mesh.color = np.array(color, dtype=np.float64)

    def droop(self, droop_factor: float):
        """Set every blade's absolute droop pose; 0 is upright, 1 fully wilted."""
        for leaf in self.leaves:
            leaf.blade.rotation[0] = math.pi / 2 + droop_factor * 0.5
            leaf.blade.rotation[2] = -math.pi / 2 - droop_factor * 0.3


class FlowerGroup:
    """Holds the single flower at a stem's tip, if any."""

    def __init__(self, name: str = "flowers"):
        self.node = Node(name)
        self.flower: Flower = None

    def __len__(self) -> int:
        return 0 if self.flower is None else 1

    def clear(self):
        self.node.clear()
        self.flower = None

    def set(self, flower: Flower):
        self.clear()
        self.node.add(flower.node)
        self.flower = flower


def place_leaves(
    stem: "Stem",
    min_height: float,
    max_height: float,
    state: EnvironmentalState,
    rng,
    count: int = None,
    config: PlantConfig = None,
) -> list[Leaf]:
    """Rebuild the leaves of ``stem`` between two stem-local heights.

    Without an explicit ``count`` the moisture-driven target is used. Leaves
    are tinted with the current health color.
    """
    config = config or PlantConfig()
    if count is None:
        count = target_leaf_count(state.moisture, config)
    return stem.leaf_group.regenerate(
        stem.segments,
        min_height,
        max_height,
        count,
        leaf_color(state.moisture, state.light),
        rng,
        config,
    )


def place_flower(stem: "Stem", rng, scale: float = 1.0, config: PlantConfig = None) -> Flower:
    """Put one flower on the top face of the stem's last segment.

    Returns None, leaving the stem without a flower, when the stem has no
    segments.
    """
    stem.flower_group.clear()
    if not stem.segments:
        return None

    top = stem.segments[-1]
    flower = build_flower(rng, scale=scale, config=config)
    flower.node.position[:] = (top.node.position[0], top.top_y, top.node.position[2])
    stem.flower_group.set(flower)
    return flower
