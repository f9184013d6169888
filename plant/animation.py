"""Re-pose and recolor an existing plant after an environment change.

Every pose written here is absolute: it depends only on the new moisture and
light values (and each branch's fixed rest pose), so applying the same
update twice leaves the plant unchanged.
"""

from plant.config import PlantConfig
from plant.health import leaf_color
from plant.topology import Branch, Stem, TiltRotation


def light_factor(light: float) -> float:
    """1 in darkness, 0 at 500 and above."""
    return 1.0 - min(light, 500.0) / 500.0


def moisture_factor(moisture: float) -> float:
    """1 when dry, 0 when saturated."""
    return 1.0 - moisture / 100.0


def enforce_min_tilt(rotation: TiltRotation, original: TiltRotation, min_tilt: float) -> TiltRotation:
    """Scale ``rotation`` up to ``min_tilt`` if it leans less, keeping its direction.

    A rotation with no lean at all borrows the direction of ``original``.
    """
    magnitude = rotation.magnitude
    if magnitude >= min_tilt:
        return rotation
    if magnitude < 1e-12:
        rotation, magnitude = original, original.magnitude
    factor = min_tilt / magnitude
    return TiltRotation(rotation.x * factor, rotation.z * factor)


def clamp_to_window(rotation: TiltRotation, original: TiltRotation, max_offset: float) -> TiltRotation:
    """Clamp each axis to within ``max_offset`` of the rest pose."""
    return TiltRotation(
        min(max(rotation.x, original.x - max_offset), original.x + max_offset),
        min(max(rotation.z, original.z - max_offset), original.z + max_offset),
    )


def branch_pose(
    branch: Branch,
    index: int,
    moisture: float,
    light: float,
    config: PlantConfig = None,
) -> TiltRotation:
    """Target rotation for the side branch at animation ``index`` (main stem is 0).

    The offset from the rest pose grows with ``(index % 3) * variation_step``
    so neighbouring branches sway by different amounts. The minimum-tilt
    rescale runs before the window clamp.
    """
    config = config or PlantConfig()
    variation = (index % 3) * config.variation_step
    original = branch.original_rotation

    pose = TiltRotation(
        x=original.x + (moisture_factor(moisture) * 0.2 - 0.1) * (1 + variation),
        z=original.z + (light_factor(light) * 0.3 - 0.15) * (1 + variation),
    )
    pose = enforce_min_tilt(pose, original, config.min_tilt)
    return clamp_to_window(pose, original, config.max_rotation_offset)


def repose_branches(
    main_stem: Stem,
    branches: list[Branch],
    moisture: float,
    light: float,
    config: PlantConfig = None,
):
    """Lean the main stem and sway each side branch around its rest pose."""
    main_stem.node.rotation[0] = moisture_factor(moisture) * 0.3
    main_stem.node.rotation[2] = light_factor(light) * 0.5

    for k, branch in enumerate(branches):
        branch.rotation = branch_pose(branch, k + 1, moisture, light, config)


def refresh_leaves(stems: list[Stem], moisture: float, light: float):
    """Tint every leaf with the health color and set its droop."""
    color = leaf_color(moisture, light)
    droop = moisture_factor(moisture)
    for stem in stems:
        stem.leaf_group.recolor(color)
        stem.leaf_group.droop(droop)
