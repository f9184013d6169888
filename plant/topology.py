"""Stem and branch topology.

A stem is a stack of tapered cylinder segments. The main stem always has
five; side branches have three to five and hang off the main stem at
well-separated azimuths, leaning outward by 30 to 60 degrees.
"""

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

from plant import sampling
from plant.config import PlantConfig
from plant.geometry import cylinder
from plant.health import hex_to_rgb
from plant.organs import STEM_GREEN
from plant.placement import FlowerGroup, LeafGroup, place_flower, place_leaves
from plant.scene import Mesh, Node
from plant.states import EnvironmentalState

logger = logging.getLogger(__name__)


@dataclass
class Segment:
    radius_top: float
    radius_bottom: float
    height: float
    node: Node

    @property
    def center_y(self) -> float:
        return float(self.node.position[1])

    @property
    def bottom_y(self) -> float:
        return self.center_y - self.height / 2

    @property
    def top_y(self) -> float:
        return self.center_y + self.height / 2


class TiltRotation(NamedTuple):
    """Branch lean as rotations about the X and Z axes, radians."""

    x: float
    z: float

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.z)


class Stem:
    """Segment stack plus explicit handles to its organ groups."""

    def __init__(self, name: str, segments: list[Segment]):
        self.name = name
        self.node = Node(name)
        self.segment_group = self.node.add(Node(f"{name}/segments"))
        for segment in segments:
            self.segment_group.add(segment.node)
        self._segments = list(segments)

        self.leaf_group = LeafGroup(f"{name}/leaves")
        self.flower_group = FlowerGroup(f"{name}/flowers")
        self.node.add(self.leaf_group.node)
        self.node.add(self.flower_group.node)

    @property
    def segments(self) -> list[Segment]:
        return self._segments

    @property
    def length(self) -> float:
        return sum(segment.height for segment in self._segments)

    @property
    def leaves(self):
        return self.leaf_group.leaves

    @property
    def flower(self):
        return self.flower_group.flower


class Branch(Stem):
    """Side branch with the rest pose it was generated in.

    ``original_rotation`` is fixed at construction; animation perturbs the
    node rotation around it and clamps back towards it.
    """

    def __init__(
        self,
        name: str,
        segments: list[Segment],
        attach_segment_index: int,
        angle: float,
        height_fraction: float,
        tilt: float,
    ):
        super().__init__(name, segments)
        self.attach_segment_index = attach_segment_index
        self.angle = angle
        self.height_fraction = height_fraction
        self.tilt = tilt

        rest = TiltRotation(x=math.sin(angle) * tilt, z=-math.cos(angle) * tilt)
        self.node.rotation[0] = rest.x
        self.node.rotation[2] = rest.z
        self._original_rotation = rest

    @property
    def original_rotation(self) -> TiltRotation:
        return self._original_rotation

    @property
    def rotation(self) -> TiltRotation:
        return TiltRotation(float(self.node.rotation[0]), float(self.node.rotation[2]))

    @rotation.setter
    def rotation(self, value: TiltRotation):
        self.node.rotation[0] = value.x
        self.node.rotation[2] = value.z


def build_stem(
    segment_count: int,
    base_radius: float,
    taper_per_segment: float,
    segment_height: float,
    tilt_spread: float,
    rng,
    config: PlantConfig = None,
) -> list[Segment]:
    """Stack ``segment_count`` tapered segments upward from y=0.

    Segment ``i`` has top radius ``base_radius * (1 - i*taper)`` and bottom
    radius ``base_radius * (1 - (i+1)*taper)``. Every segment but the first
    gets a small random tilt on X and Z, purely cosmetic.
    """
    if segment_count < 1:
        raise ValueError(f"A stem needs at least one segment, got {segment_count}")
    config = config or PlantConfig()
    color = hex_to_rgb(STEM_GREEN)

    segments = []
    for i in range(segment_count):
        radius_top = max(base_radius * (1 - i * taper_per_segment), 0.0)
        radius_bottom = max(base_radius * (1 - (i + 1) * taper_per_segment), 0.0)
        vertices, faces = cylinder(radius_top, radius_bottom, segment_height, config.radial_segments)

        node = Node(f"segment/{i}", Mesh(vertices, faces, color=color))
        node.position[1] = segment_height / 2 + segment_height * i
        if i > 0:
            node.rotation[2] = sampling.jitter(rng, tilt_spread)
            node.rotation[0] = sampling.jitter(rng, tilt_spread)

        segments.append(Segment(radius_top, radius_bottom, segment_height, node))
    return segments


def build_main_stem(rng, config: PlantConfig = None) -> Stem:
    config = config or PlantConfig()
    segments = build_stem(
        config.main_segments,
        config.main_base_radius,
        config.main_taper,
        config.main_segment_height,
        config.main_tilt_spread,
        rng,
        config,
    )
    stem = Stem("main_stem", segments)
    stem.node.position[1] = config.stem_base_height
    return stem


def build_branch_stem(rng, config: PlantConfig = None) -> list[Segment]:
    """Segments for one side branch: 3-5 of them, 0.15-0.25 tall each."""
    config = config or PlantConfig()
    segment_count = sampling.randint(rng, config.min_branch_segments, config.max_branch_segments)
    segment_height = sampling.uniform(rng, *config.branch_segment_height)
    return build_stem(
        segment_count,
        config.branch_base_radius,
        config.branch_taper,
        segment_height,
        config.branch_tilt_spread,
        rng,
        config,
    )


def attach_branches(
    main_stem: Stem,
    state: EnvironmentalState,
    rng,
    config: PlantConfig = None,
) -> list[Branch]:
    """Grow 3-5 side branches off the main stem.

    Each branch hangs off a random non-terminal segment, at an azimuth kept
    at least ``branch_min_separation`` from the previous branches (rejection
    sampling, best effort), leaning outward along that azimuth. Branches get
    their own leaves and, half of the time, a smaller flower.
    """
    config = config or PlantConfig()
    anchors = main_stem.segments
    if not anchors:
        return []

    branch_count = sampling.randint(rng, config.min_branches, config.max_branches)
    used_angles: list[float] = []
    branches = []

    for b in range(branch_count):
        attach_index = sampling.randint(rng, 0, max(len(anchors) - 2, 0))
        anchor = anchors[attach_index]

        angle, separated = sampling.sample_separated_angle(
            rng,
            used_angles,
            config.branch_min_separation,
            config.branch_angle_attempts,
        )
        if not separated:
            logger.warning(
                "Branch %d: no azimuth at least %.3f rad from %d others after %d attempts; "
                "accepting %.3f",
                b,
                config.branch_min_separation,
                len(used_angles),
                config.branch_angle_attempts,
                angle,
            )
        used_angles.append(angle)

        tilt = sampling.uniform(rng, *config.branch_tilt)
        segments = build_branch_stem(rng, config)
        height_fraction = sampling.uniform(rng, *config.branch_height_fraction)

        branch = Branch(
            f"branch/{b}",
            segments,
            attach_segment_index=attach_index,
            angle=angle,
            height_fraction=height_fraction,
            tilt=tilt,
        )
        local_height = height_fraction * anchor.height - anchor.height / 2
        branch.node.position[:] = (
            math.cos(angle) * anchor.radius_top,
            anchor.center_y + local_height,
            math.sin(angle) * anchor.radius_top,
        )
        main_stem.node.add(branch.node)

        leaf_count = sampling.randint(rng, *config.branch_leaf_count)
        place_leaves(
            branch,
            config.branch_leaf_start,
            branch.length * config.branch_leaf_reach,
            state,
            rng,
            count=leaf_count,
            config=config,
        )
        if rng.random() < config.branch_flower_chance:
            place_flower(branch, rng, scale=config.branch_flower_scale, config=config)

        branches.append(branch)
        logger.debug(
            "Branch %d: segment %d, angle %.3f, tilt %.3f, %d leaves",
            b, attach_index, angle, tilt, leaf_count,
        )

    return branches
