"""The plant aggregate: a potted, branching plant driven by moisture and light.

Usage:
    plant = Plant()
    scene.add(plant.mesh)        # hand the root node to a renderer
    plant.update(25, 700)        # each time a new environment reading arrives
"""

import logging
import math

import numpy as np

from plant import sampling
from plant.animation import refresh_leaves, repose_branches
from plant.config import PlantConfig
from plant.geometry import cylinder, lathe
from plant.health import hex_to_rgb
from plant.placement import place_flower, place_leaves, target_leaf_count
from plant.scene import Mesh, Node
from plant.states import EnvironmentalState
from plant.topology import Branch, Stem, attach_branches, build_main_stem

logger = logging.getLogger(__name__)

POT_COLOR = 0x8B4513
SOIL_COLOR = 0x5E2605

POT_PROFILE = np.array([
    [0.0, 0.0],
    [0.5, 0.0],
    [0.6, 0.2],
    [0.7, 0.5],
    [0.6, 0.6],
    [0.4, 0.65],
    [0.0, 0.65],
])


class Plant:
    """Generates the full plant on construction and re-poses it on ``update``.

    Not safe for concurrent ``update`` calls; callers serialize them.
    """

    def __init__(self, config: PlantConfig = None, rng=None):
        self.config = config or PlantConfig()
        self.rng = sampling.make_rng(rng)
        self.moisture_level = self.config.initial_moisture
        self.light_level = self.config.initial_light

        self.mesh = Node("plant")
        self.pot = self.mesh.add(self._build_pot())
        self.soil = self.mesh.add(self._build_soil())

        self.main_stem = self._build_main_stem()
        self.mesh.add(self.main_stem.node)
        self.branches: list[Branch] = attach_branches(
            self.main_stem, self.state, self.rng, self.config
        )

        self.mesh.rotation[1] = sampling.uniform(self.rng, 0.0, 2 * math.pi)
        logger.info(
            "Created plant with %d branches, %d leaves",
            len(self.branches),
            sum(len(stem.leaves) for stem in self.stems),
        )

    @property
    def state(self) -> EnvironmentalState:
        return EnvironmentalState(self.moisture_level, self.light_level)

    @property
    def stems(self) -> list[Stem]:
        """Main stem first, then side branches in creation order."""
        return [self.main_stem, *self.branches]

    @property
    def flowers(self):
        return [stem.flower for stem in self.stems if stem.flower is not None]

    def _build_pot(self) -> Node:
        vertices, faces = lathe(POT_PROFILE, self.config.pot_segments)
        return Node("pot", Mesh(vertices, faces, color=hex_to_rgb(POT_COLOR)))

    def _build_soil(self) -> Node:
        vertices, faces = cylinder(0.45, 0.45, 0.1, self.config.pot_segments)
        soil = Node("soil", Mesh(vertices, faces, color=hex_to_rgb(SOIL_COLOR)))
        soil.position[1] = self.config.stem_base_height - 0.05
        return soil

    def _build_main_stem(self) -> Stem:
        stem = build_main_stem(self.rng, self.config)
        self._place_main_leaves(stem)
        place_flower(stem, self.rng, config=self.config)
        return stem

    def _place_main_leaves(self, stem: Stem):
        low, high = self.config.main_leaf_heights
        place_leaves(stem, low, high, self.state, self.rng, config=self.config)

    def update(self, moisture: float, light: float):
        """Apply a new environment reading.

        Sways the branches, rebuilds the main stem's leaves if the target
        count changed, then recolors and droops every leaf.
        """
        self.moisture_level = moisture
        self.light_level = light

        repose_branches(self.main_stem, self.branches, moisture, light, self.config)

        target = target_leaf_count(moisture, self.config)
        if len(self.main_stem.leaf_group) != target:
            logger.debug("Rebuilding main stem leaves: %d -> %d", len(self.main_stem.leaf_group), target)
            self._place_main_leaves(self.main_stem)

        refresh_leaves(self.stems, moisture, light)
