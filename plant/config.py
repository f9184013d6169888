"""Generation and animation parameters for the procedural plant."""

import math
from dataclasses import dataclass, field


@dataclass
class PlantConfig:
    # Environment before the first update
    initial_moisture: float = 70.0
    initial_light: float = 500.0

    # Main stem
    main_segments: int = 5
    main_base_radius: float = 0.05
    main_taper: float = 0.1
    main_segment_height: float = 0.25
    main_tilt_spread: float = 0.1  # per-segment tilt in [-0.05, 0.05]
    stem_base_height: float = 0.65  # stem root sits on the soil surface
    main_leaf_heights: tuple[float, float] = (0.05, 1.15)

    # Side branches
    min_branches: int = 3
    max_branches: int = 5
    min_branch_segments: int = 3
    max_branch_segments: int = 5
    branch_base_radius: float = 0.03
    branch_taper: float = 0.2
    branch_segment_height: tuple[float, float] = (0.15, 0.25)
    branch_tilt_spread: float = 0.15
    branch_min_separation: float = math.pi / 6  # 30 degrees
    branch_angle_attempts: int = 20
    branch_tilt: tuple[float, float] = (math.pi / 6, math.pi / 3)
    branch_height_fraction: tuple[float, float] = (0.2, 0.8)
    branch_leaf_count: tuple[int, int] = (5, 9)
    branch_leaf_start: float = 0.1
    branch_leaf_reach: float = 0.9  # fraction of branch length covered by leaves
    branch_flower_chance: float = 0.5
    branch_flower_scale: float = 0.8

    # Leaves
    base_leaf_count: int = 10
    moisture_per_leaf: float = 10.0
    leaf_scale: tuple[float, float] = (0.2, 0.35)
    leaf_jitter: float = 0.3

    # Animation
    min_tilt: float = math.pi / 6
    max_rotation_offset: float = 0.7
    variation_step: float = 0.2

    # Mesh resolution
    radial_segments: int = 8
    curve_segments: int = 12
    sphere_segments: int = 12
    pot_segments: int = 32

    # Flower
    petals_per_row: int = 5
    petal_palette: tuple[int, ...] = field(
        default_factory=lambda: (
            0xFF69B4,  # pink
            0xFF0000,  # red
            0xFF4500,  # orange-red
            0xFFB6C1,  # light pink
            0xFFFFFF,  # white
        )
    )

    def __post_init__(self):
        for name in (
            "branch_segment_height",
            "branch_tilt",
            "branch_height_fraction",
            "branch_leaf_count",
            "leaf_scale",
            "main_leaf_heights",
        ):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name}: lower bound {low} exceeds upper bound {high}")
        if self.min_branches > self.max_branches:
            raise ValueError("min_branches exceeds max_branches")
        if self.min_branch_segments > self.max_branch_segments:
            raise ValueError("min_branch_segments exceeds max_branch_segments")
        if self.branch_tilt[0] < self.min_tilt:
            raise ValueError("branch_tilt must start at or above min_tilt")


@dataclass
class LowPolyPlantConfig(PlantConfig):
    """Coarser meshes for testing."""
    radial_segments: int = 4
    curve_segments: int = 3
    sphere_segments: int = 4
    pot_segments: int = 6
