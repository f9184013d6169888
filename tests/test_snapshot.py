"""Tests for software-rendered plant snapshots."""

import json
import os

import numpy as np
import pytest
from PIL import Image

from plant.geometry import cylinder
from plant.health import hex_to_rgb
from plant.scene import Mesh, Node, flatten
from viewer.camera import look_at
from viewer.plant_mesh import sun_light
from viewer.snapshot import (
    orbit_poses,
    project_vertices,
    render_plant,
    render_scene,
    render_state_snapshots,
)

BACKGROUND = np.array([0.94, 0.94, 0.94])


def _red_cylinder():
    vertices, faces = cylinder(0.5, 0.5, 1.0, 12)
    return flatten(Node("cyl", Mesh(vertices, faces, color=hex_to_rgb(0xFF0000))))


class TestProjectVertices:
    def test_output_shape(self):
        verts = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float64)
        c2w = look_at(np.array([0.0, 0.0, 3.0]))
        screen = project_vertices(verts, c2w, focal=50.0, height=100, width=100)
        assert screen.shape == (3, 3)

    def test_center_projects_to_center(self):
        c2w = look_at(np.array([0.0, 0.0, 3.0]))
        screen = project_vertices(np.array([[0.0, 0.0, 0.0]]), c2w, focal=50.0, height=100, width=100)
        np.testing.assert_allclose(screen[0], [50.0, 50.0, 3.0], atol=1e-6)

    def test_up_is_up_in_image(self):
        c2w = look_at(np.array([0.0, 0.0, 3.0]))
        screen = project_vertices(np.array([[0.0, 1.0, 0.0]]), c2w, focal=50.0, height=100, width=100)
        assert screen[0, 1] < 50.0

    def test_behind_camera(self):
        c2w = look_at(np.array([0.0, 0.0, 3.0]))
        screen = project_vertices(np.array([[0.0, 0.0, 5.0]]), c2w, focal=50.0, height=100, width=100)
        assert screen[0, 2] >= 1e9


class TestRenderScene:
    def test_output_shape_and_range(self):
        v, n, c, f = _red_cylinder()
        c2w = look_at(np.array([0.0, 1.0, 3.0]))
        img = render_scene(v, f, c, n, c2w, focal=30.0, height=32, width=32)
        assert img.shape == (32, 32, 3)
        assert img.dtype == np.float32
        assert img.min() >= 0.0
        assert img.max() <= 1.0

    def test_object_visible(self):
        v, n, c, f = _red_cylinder()
        c2w = look_at(np.array([0.0, 1.0, 3.0]))
        img = render_scene(v, f, c, n, c2w, focal=30.0, height=32, width=32)
        center = img[16, 16]
        # Red surface: green and blue stay dark
        assert center[0] > center[1] + 0.2
        assert center[1] < 0.05

    def test_empty_scene_is_background(self):
        v, n, c, f = flatten(Node("empty"))
        c2w = look_at(np.array([0.0, 0.0, 3.0]))
        img = render_scene(v, f, c, n, c2w, focal=30.0, height=8, width=8)
        np.testing.assert_allclose(img, np.broadcast_to(BACKGROUND, img.shape), atol=1e-6)

    def test_darker_in_low_light(self):
        v, n, c, f = _red_cylinder()
        c2w = look_at(np.array([0.0, 1.0, 3.0]))
        bright = render_scene(v, f, c, n, c2w, focal=30.0, height=16, width=16, light=2000)
        dark = render_scene(v, f, c, n, c2w, focal=30.0, height=16, width=16, light=0)
        assert dark[8, 8, 0] < bright[8, 8, 0]


class TestSunLight:
    def test_saturates(self):
        _, full = sun_light(2000)
        _, beyond = sun_light(5000)
        assert full == beyond
        assert full[0] == pytest.approx(1.0)

    def test_dark(self):
        _, diffuse = sun_light(0)
        assert diffuse[:3] == [0.0, 0.0, 0.0]

    def test_directional(self):
        position, _ = sun_light(800)
        assert position[3] == 0.0
        assert position[1] > 0


class TestOrbitPoses:
    def test_count_and_radius(self):
        poses = orbit_poses(6, radius=4.0, height=2.0)
        assert len(poses) == 6
        for c2w in poses:
            assert c2w.shape == (4, 4)
            assert np.linalg.norm(c2w[[0, 2], 3]) == pytest.approx(4.0)
            assert c2w[1, 3] == pytest.approx(2.0)


class TestRenderPlant:
    def test_plant_visible(self, plant):
        c2w = orbit_poses(1)[0]
        img = render_plant(plant, c2w, image_size=24)
        assert img.shape == (24, 24, 3)
        non_bg = np.any(np.abs(img - BACKGROUND) > 0.05, axis=-1)
        assert non_bg.sum() > 10


class TestStateSnapshots:
    def test_writes_images_and_manifest(self, plant, tmp_path):
        out = str(tmp_path / "snaps")
        manifest = render_state_snapshots(
            output_dir=out,
            state_names=["healthy", "dehydrated"],
            image_size=16,
            plant=plant,
        )
        assert sorted(os.listdir(out)) == ["dehydrated_00.png", "healthy_00.png", "states.json"]

        with open(os.path.join(out, "states.json")) as f:
            saved = json.load(f)
        assert saved == manifest
        assert [s["state"] for s in saved["snapshots"]] == ["healthy", "dehydrated"]
        assert [s["leaf_count"] for s in saved["snapshots"]] == [16, 12]
        assert saved["snapshots"][0]["health"] == pytest.approx(0.71)

    def test_image_size_and_views(self, plant, tmp_path):
        out = str(tmp_path / "snaps")
        render_state_snapshots(out, ["stressed"], n_views=2, image_size=12, plant=plant)
        for i in range(2):
            img = Image.open(os.path.join(out, f"stressed_{i:02d}.png"))
            assert img.size == (12, 12)

    def test_matrices_valid(self, plant, tmp_path):
        manifest = render_state_snapshots(str(tmp_path), ["healthy"], n_views=3, image_size=8, plant=plant)
        for snap in manifest["snapshots"]:
            mat = np.array(snap["transform_matrix"])
            assert mat.shape == (4, 4)
            np.testing.assert_allclose(abs(np.linalg.det(mat[:3, :3])), 1.0, atol=1e-6)
