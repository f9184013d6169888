"""Tests for branch re-posing and leaf refresh."""

import math

import numpy as np
import pytest

from plant.animation import (
    branch_pose,
    clamp_to_window,
    enforce_min_tilt,
    light_factor,
    moisture_factor,
    refresh_leaves,
    repose_branches,
)
from plant.config import PlantConfig
from plant.health import leaf_color
from plant.topology import Branch, TiltRotation, build_stem

MIN_TILT = math.pi / 6


def _branch(rng, config, angle=0.0, tilt=0.6):
    segments = build_stem(3, 0.03, 0.2, 0.2, 0.15, rng, config)
    return Branch("b", segments, attach_segment_index=0, angle=angle, height_fraction=0.5, tilt=tilt)


class TestFactors:
    def test_light_factor(self):
        assert light_factor(0) == pytest.approx(1.0)
        assert light_factor(250) == pytest.approx(0.5)
        assert light_factor(500) == pytest.approx(0.0)
        assert light_factor(1500) == pytest.approx(0.0)

    def test_moisture_factor(self):
        assert moisture_factor(0) == pytest.approx(1.0)
        assert moisture_factor(100) == pytest.approx(0.0)
        assert moisture_factor(25) == pytest.approx(0.75)


class TestEnforceMinTilt:
    def test_leaves_large_tilt(self):
        rot = TiltRotation(0.5, -0.5)
        assert enforce_min_tilt(rot, rot, MIN_TILT) == rot

    def test_rescales_small_tilt(self):
        rot = TiltRotation(0.1, 0.2)
        out = enforce_min_tilt(rot, TiltRotation(0.0, -0.6), MIN_TILT)
        assert out.magnitude == pytest.approx(MIN_TILT)
        # Direction kept
        assert out.x / out.z == pytest.approx(0.5)

    def test_zero_borrows_original_direction(self):
        original = TiltRotation(0.3, -0.4)
        out = enforce_min_tilt(TiltRotation(0.0, 0.0), original, MIN_TILT)
        assert out.magnitude == pytest.approx(MIN_TILT)
        assert out.x / out.z == pytest.approx(original.x / original.z)


class TestClampToWindow:
    def test_inside(self):
        rot = TiltRotation(0.2, -0.3)
        assert clamp_to_window(rot, TiltRotation(0.0, 0.0), 0.7) == rot

    def test_clamps_each_axis(self):
        out = clamp_to_window(TiltRotation(2.0, -2.0), TiltRotation(0.5, -0.5), 0.7)
        assert out.x == pytest.approx(1.2)
        assert out.z == pytest.approx(-1.2)


class TestBranchPose:
    def test_neutral_environment(self, rng, low_poly):
        branch = _branch(rng, low_poly)
        # mf*0.2 - 0.1 == 0 and lf*0.3 - 0.15 == 0
        pose = branch_pose(branch, 1, moisture=50, light=250, config=low_poly)
        assert pose.x == pytest.approx(branch.original_rotation.x)
        assert pose.z == pytest.approx(branch.original_rotation.z)

    def test_variation_by_index(self, rng, low_poly):
        branch = _branch(rng, low_poly, angle=math.pi / 2, tilt=0.8)
        original = branch.original_rotation
        offsets = []
        for index in (0, 1, 2, 3):
            pose = branch_pose(branch, index, moisture=0, light=0, config=low_poly)
            offsets.append(pose.z - original.z)
        # (index % 3) * 0.2 scales the light term 0.15
        np.testing.assert_allclose(offsets, [0.15, 0.18, 0.21, 0.15])

    def test_floor_then_window(self, rng):
        config = PlantConfig(max_rotation_offset=0.05)
        branch = _branch(rng, config, angle=0.0, tilt=MIN_TILT)
        # Pushing the lean towards zero: the floor rescale runs first, then
        # the tighter window pulls it back to within 0.05 of rest
        pose = branch_pose(branch, 0, moisture=0, light=0, config=config)
        original = branch.original_rotation
        assert abs(pose.x - original.x) <= 0.05 + 1e-12
        assert abs(pose.z - original.z) <= 0.05 + 1e-12

    def test_invariants_over_environment_grid(self, rng, low_poly):
        for angle in np.linspace(0, 2 * math.pi, 7, endpoint=False):
            for tilt in (MIN_TILT, 0.8, math.pi / 3):
                branch = _branch(rng, low_poly, angle=angle, tilt=tilt)
                original = branch.original_rotation
                for moisture in (0, 25, 50, 100):
                    for light in (0, 100, 500, 2000):
                        for index in (1, 2, 3):
                            pose = branch_pose(branch, index, moisture, light, low_poly)
                            assert pose.magnitude >= MIN_TILT - 1e-9
                            assert abs(pose.x - original.x) <= 0.7 + 1e-9
                            assert abs(pose.z - original.z) <= 0.7 + 1e-9


class TestRepose:
    def test_main_stem_lean(self, plant):
        repose_branches(plant.main_stem, plant.branches, 25, 100, plant.config)
        assert plant.main_stem.node.rotation[0] == pytest.approx(0.75 * 0.3)
        assert plant.main_stem.node.rotation[2] == pytest.approx(0.8 * 0.5)

    def test_branch_indices_start_at_one(self, plant):
        repose_branches(plant.main_stem, plant.branches, 25, 100, plant.config)
        for k, branch in enumerate(plant.branches):
            expected = branch_pose(branch, k + 1, 25, 100, plant.config)
            assert branch.rotation.x == pytest.approx(expected.x)
            assert branch.rotation.z == pytest.approx(expected.z)

    def test_refresh_leaves(self, plant):
        refresh_leaves(plant.stems, 20, 100)
        color = leaf_color(20, 100)
        for stem in plant.stems:
            for leaf in stem.leaves:
                np.testing.assert_allclose(leaf.blade.mesh.color, color)
                assert leaf.blade.rotation[0] == pytest.approx(math.pi / 2 + 0.8 * 0.5)
                assert leaf.blade.rotation[2] == pytest.approx(-math.pi / 2 - 0.8 * 0.3)
