"""Tests for stem construction and branch attachment."""

import logging
import math

import numpy as np
import pytest

from plant import sampling
from plant.config import LowPolyPlantConfig, PlantConfig
from plant.states import EnvironmentalState
from plant.topology import (
    Branch,
    Stem,
    TiltRotation,
    attach_branches,
    build_branch_stem,
    build_main_stem,
    build_stem,
)

STATE = EnvironmentalState(70, 500)


def _grow(seed, config=None):
    config = config or LowPolyPlantConfig()
    rng = np.random.default_rng(seed)
    main = build_main_stem(rng, config)
    branches = attach_branches(main, STATE, rng, config)
    return main, branches


class TestBuildStem:
    def test_taper(self, rng, low_poly):
        segments = build_stem(5, 0.05, 0.1, 0.25, 0.1, rng, low_poly)
        for i, segment in enumerate(segments):
            assert segment.radius_top == pytest.approx(0.05 * (1 - i * 0.1))
            assert segment.radius_bottom == pytest.approx(0.05 * (1 - (i + 1) * 0.1))

    def test_stacked(self, rng, low_poly):
        segments = build_stem(4, 0.03, 0.2, 0.2, 0.15, rng, low_poly)
        assert segments[0].bottom_y == pytest.approx(0.0)
        for lower, upper in zip(segments, segments[1:]):
            assert upper.bottom_y == pytest.approx(lower.top_y)

    def test_first_segment_untilted(self, rng, low_poly):
        segments = build_stem(3, 0.03, 0.2, 0.2, 0.15, rng, low_poly)
        np.testing.assert_allclose(segments[0].node.rotation, 0.0)
        for segment in segments[1:]:
            assert abs(segment.node.rotation[0]) <= 0.075
            assert abs(segment.node.rotation[2]) <= 0.075

    def test_radius_never_negative(self, rng, low_poly):
        segments = build_stem(6, 0.03, 0.2, 0.2, 0.15, rng, low_poly)
        assert all(s.radius_top >= 0 and s.radius_bottom >= 0 for s in segments)

    def test_needs_a_segment(self, rng, low_poly):
        with pytest.raises(ValueError):
            build_stem(0, 0.05, 0.1, 0.25, 0.1, rng, low_poly)


class TestMainStem:
    def test_structure(self, rng, low_poly):
        stem = build_main_stem(rng, low_poly)
        assert len(stem.segments) == 5
        assert stem.length == pytest.approx(1.25)
        assert stem.node.position[1] == pytest.approx(0.65)
        assert stem.segments[0].radius_top == pytest.approx(0.05)

    def test_explicit_groups(self, rng, low_poly):
        stem = build_main_stem(rng, low_poly)
        assert stem.segment_group.parent is stem.node
        assert stem.leaf_group.node.parent is stem.node
        assert stem.flower_group.node.parent is stem.node
        assert len(stem.segment_group.children) == 5


class TestBranchStem:
    def test_segment_range(self, low_poly):
        for seed in range(20):
            segments = build_branch_stem(np.random.default_rng(seed), low_poly)
            assert 3 <= len(segments) <= 5
            assert 0.15 <= segments[0].height <= 0.25
            assert segments[0].radius_top == pytest.approx(0.03)


class TestAttachBranches:
    def test_branch_count(self):
        for seed in range(10):
            _, branches = _grow(seed)
            assert 3 <= len(branches) <= 5

    def test_max_branches(self, scripted_rng, low_poly):
        main = build_main_stem(scripted_rng([0.5]), low_poly)
        branches = attach_branches(main, STATE, scripted_rng([0.99]), low_poly)
        assert len(branches) == 5

    def test_initial_tilt_range(self):
        for seed in range(10):
            _, branches = _grow(seed)
            for branch in branches:
                magnitude = branch.rotation.magnitude
                assert math.pi / 6 - 1e-9 <= magnitude <= math.pi / 3 + 1e-9
                assert branch.original_rotation == branch.rotation

    def test_leans_along_azimuth(self):
        _, branches = _grow(3)
        for branch in branches:
            assert branch.rotation.x == pytest.approx(math.sin(branch.angle) * branch.tilt)
            assert branch.rotation.z == pytest.approx(-math.cos(branch.angle) * branch.tilt)

    def test_separation(self, caplog):
        for seed in range(10):
            caplog.clear()
            with caplog.at_level(logging.WARNING, logger="plant.topology"):
                _, branches = _grow(seed)
            if caplog.records:
                continue
            angles = [b.angle for b in branches]
            for i, a in enumerate(angles):
                for b in angles[i + 1:]:
                    assert sampling.wrapped_angle_difference(a, b) >= math.pi / 6

    def test_exhaustion_logs_and_accepts(self, scripted_rng, low_poly, caplog):
        source = scripted_rng([0.0])
        main = build_main_stem(source, low_poly)
        with caplog.at_level(logging.WARNING, logger="plant.topology"):
            branches = attach_branches(main, STATE, source, low_poly)
        # Every draw is 0: three branches, all at azimuth 0
        assert len(branches) == 3
        assert [b.angle for b in branches] == [0.0, 0.0, 0.0]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2

    def test_attach_position(self):
        main, branches = _grow(5)
        for branch in branches:
            assert 0 <= branch.attach_segment_index <= len(main.segments) - 2
            anchor = main.segments[branch.attach_segment_index]
            radial = math.hypot(branch.node.position[0], branch.node.position[2])
            assert radial == pytest.approx(anchor.radius_top)
            assert anchor.bottom_y <= branch.node.position[1] <= anchor.top_y
            assert 0.2 <= branch.height_fraction <= 0.8

    def test_branches_parented_to_main_stem(self):
        main, branches = _grow(1)
        for branch in branches:
            assert branch.node.parent is main.node

    def test_branch_organs(self):
        for seed in range(10):
            _, branches = _grow(seed)
            for branch in branches:
                assert 5 <= len(branch.leaves) <= 9
                assert len(branch.flower_group) in (0, 1)

    def test_flower_chance(self, scripted_rng, low_poly):
        main = build_main_stem(scripted_rng([0.5]), low_poly)
        branches = attach_branches(main, STATE, scripted_rng([0.0]), low_poly)
        assert all(branch.flower is not None for branch in branches)
        np.testing.assert_allclose(branches[0].flower.node.scale, 0.8)

        main = build_main_stem(scripted_rng([0.5]), low_poly)
        branches = attach_branches(main, STATE, scripted_rng([0.6]), low_poly)
        assert all(branch.flower is None for branch in branches)

    def test_no_anchor_segments(self, rng, low_poly):
        assert attach_branches(Stem("bare", []), STATE, rng, low_poly) == []


class TestBranch:
    def test_original_rotation_immutable(self, rng, low_poly):
        segments = build_stem(3, 0.03, 0.2, 0.2, 0.15, rng, low_poly)
        branch = Branch("b", segments, attach_segment_index=0, angle=0.0, height_fraction=0.5, tilt=0.6)
        original = branch.original_rotation
        branch.rotation = TiltRotation(0.1, -0.9)
        assert branch.original_rotation == original
        assert branch.rotation == TiltRotation(0.1, -0.9)
        with pytest.raises(AttributeError):
            branch.original_rotation = TiltRotation(0.0, 0.0)


class TestConfigValidation:
    def test_inverted_range(self):
        with pytest.raises(ValueError):
            PlantConfig(branch_tilt=(1.0, 0.5))

    def test_branch_bounds(self):
        with pytest.raises(ValueError):
            PlantConfig(min_branches=6)

    def test_tilt_below_floor(self):
        with pytest.raises(ValueError):
            PlantConfig(branch_tilt=(0.1, 1.0))
