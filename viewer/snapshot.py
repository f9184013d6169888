"""Software-rendered PNG snapshots of the plant.

Renders the flattened plant with a small z-buffered rasterizer so snapshots
work without a display or OpenGL (CI, headless servers).
"""

import json
import os

import numpy as np
from PIL import Image

from plant.model import Plant
from plant.scene import flatten
from plant.states import PRESET_STATES
from viewer.camera import look_at
from viewer.plant_mesh import sun_light


def project_vertices(
    vertices: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
) -> np.ndarray:
    """Project 3D vertices to 2D screen coordinates.

    Returns:
        (N, 3) screen-space positions [x, y, depth]; points behind the camera
        get depth 1e10
    """
    w2c = np.linalg.inv(c2w)
    cam_pts = vertices @ w2c[:3, :3].T + w2c[:3, 3]

    # OpenGL: camera looks down -Z, so depth = -z
    depth = -cam_pts[:, 2]
    screen = np.zeros((len(vertices), 3))
    valid = depth > 0.01
    screen[valid, 0] = focal * cam_pts[valid, 0] / depth[valid] + width * 0.5
    screen[valid, 1] = -focal * cam_pts[valid, 1] / depth[valid] + height * 0.5
    screen[valid, 2] = depth[valid]
    screen[~valid, 2] = 1e10
    return screen


def rasterize_triangle(
    screen: np.ndarray,
    colors: np.ndarray,
    image: np.ndarray,
    zbuf: np.ndarray,
):
    """Z-buffered fill of one triangle with per-vertex (already shaded) colors.

    Args:
        screen: (3, 3) projected corners [x, y, depth]
        colors: (3, 3) RGB at the corners
    """
    H, W = zbuf.shape
    min_x = max(int(np.floor(screen[:, 0].min())), 0)
    max_x = min(int(np.ceil(screen[:, 0].max())), W - 1)
    min_y = max(int(np.floor(screen[:, 1].min())), 0)
    max_y = min(int(np.ceil(screen[:, 1].max())), H - 1)
    if min_x > max_x or min_y > max_y:
        return

    v0, v1, v2 = screen[:, :2]
    e01 = v1 - v0
    e02 = v2 - v0
    det = e01[0] * e02[1] - e01[1] * e02[0]
    if abs(det) < 1e-10:
        return

    # Barycentric coordinates over the bounding box, all pixels at once
    px, py = np.meshgrid(np.arange(min_x, max_x + 1) + 0.5, np.arange(min_y, max_y + 1) + 0.5)
    ex = px - v0[0]
    ey = py - v0[1]
    u = (ex * e02[1] - ey * e02[0]) / det
    v = (e01[0] * ey - e01[1] * ex) / det
    w = 1.0 - u - v
    inside = (u >= 0) & (v >= 0) & (w >= 0)
    if not inside.any():
        return

    z = w * screen[0, 2] + u * screen[1, 2] + v * screen[2, 2]
    region = zbuf[min_y:max_y + 1, min_x:max_x + 1]
    closer = inside & (z < region)
    if not closer.any():
        return

    region[closer] = z[closer]
    shaded = (
        w[closer, None] * colors[0]
        + u[closer, None] * colors[1]
        + v[closer, None] * colors[2]
    )
    image[min_y:max_y + 1, min_x:max_x + 1][closer] = np.clip(shaded, 0, 1)


def shade_vertices(
    normals: np.ndarray,
    colors: np.ndarray,
    light_dir: np.ndarray,
    light_color: np.ndarray = None,
    ambient: float = 0.45,
) -> np.ndarray:
    """Two-sided Lambertian shading per vertex."""
    if light_color is None:
        light_color = np.ones(3)
    diffuse = np.abs(normals @ light_dir)[:, None]
    return np.clip(colors * (ambient + (1.0 - ambient) * diffuse * light_color), 0, 1)


def render_scene(
    vertices: np.ndarray,
    faces: np.ndarray,
    colors: np.ndarray,
    normals: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
    light: float = 1000.0,
    background: np.ndarray = None,
) -> np.ndarray:
    """Render flattened mesh arrays from a camera pose.

    Returns:
        (H, W, 3) float32 image in [0, 1]
    """
    if background is None:
        background = np.array([0.94, 0.94, 0.94])

    screen = project_vertices(vertices, c2w, focal, height, width)
    position, diffuse = sun_light(light)
    light_dir = np.array(position[:3]) / np.linalg.norm(position[:3])
    shaded = shade_vertices(normals, colors, light_dir, np.array(diffuse[:3]))

    image = np.full((height, width, 3), background, dtype=np.float64)
    zbuf = np.full((height, width), np.inf, dtype=np.float64)

    corners = screen[faces]
    lo = np.ceil(corners[:, :, :2].min(axis=1) - 0.5)
    hi = np.floor(corners[:, :, :2].max(axis=1) - 0.5)
    # Skip faces behind the camera and faces that cover no pixel center
    visible = (
        np.all(corners[:, :, 2] < 1e9, axis=1)
        & np.all(lo <= hi, axis=1)
        & (hi[:, 0] >= 0) & (lo[:, 0] < width)
        & (hi[:, 1] >= 0) & (lo[:, 1] < height)
    )
    for f in faces[visible]:
        rasterize_triangle(screen[f], shaded[f], image, zbuf)

    return image.astype(np.float32)


def orbit_poses(
    n_views: int,
    radius: float = 4.0,
    height: float = 2.0,
    target: np.ndarray = None,
) -> list[np.ndarray]:
    """Camera poses evenly spaced on a horizontal circle around the plant."""
    if target is None:
        target = np.array([0.0, 1.2, 0.0])

    poses = []
    for i in range(n_views):
        theta = 2 * np.pi * i / n_views
        cam_pos = np.array([radius * np.cos(theta), height, radius * np.sin(theta)])
        poses.append(look_at(cam_pos, target))
    return poses


def render_plant(plant: Plant, c2w: np.ndarray, image_size: int = 128, fov_x: float = 0.9) -> np.ndarray:
    """Render the plant in its current state from one pose."""
    vertices, normals, colors, faces = flatten(plant.mesh)
    focal = image_size * 0.5 / np.tan(fov_x * 0.5)
    return render_scene(
        vertices, faces, colors, normals,
        c2w, focal, image_size, image_size,
        light=plant.light_level,
    )


def save_image(image: np.ndarray, path: str):
    img_uint8 = (np.clip(image, 0, 1) * 255).astype(np.uint8)
    Image.fromarray(img_uint8).save(path)


def render_state_snapshots(
    output_dir: str = "snapshots",
    state_names: list[str] = None,
    n_views: int = 1,
    image_size: int = 128,
    plant: Plant = None,
) -> dict:
    """Drive one plant through named states and save a PNG per state and view.

    Args:
        output_dir: Directory for images and ``states.json``
        state_names: Preset names to visit in order (default: all presets)
        n_views: Orbit views per state
        image_size: Image height and width
        plant: Plant to render (default: a freshly generated one)

    Returns:
        dict with a 'snapshots' list describing every saved image
    """
    os.makedirs(output_dir, exist_ok=True)
    plant = plant or Plant()
    state_names = state_names or list(PRESET_STATES)
    poses = orbit_poses(n_views)

    snapshots = []
    for name in state_names:
        preset = PRESET_STATES[name]
        plant.update(preset.state.moisture, preset.state.light)

        for i, c2w in enumerate(poses):
            file_name = f"{name}_{i:02d}.png"
            save_image(render_plant(plant, c2w, image_size), os.path.join(output_dir, file_name))
            snapshots.append({
                "file_path": f"./{file_name}",
                "state": name,
                "moisture": preset.state.moisture,
                "light": preset.state.light,
                "health": preset.state.health,
                "leaf_count": len(plant.main_stem.leaf_group),
                "transform_matrix": c2w.tolist(),
            })

    manifest = {"image_size": image_size, "snapshots": snapshots}
    with open(os.path.join(output_dir, "states.json"), "w") as f:
        json.dump(manifest, f, indent=2)

    print(f"Rendered {len(snapshots)} snapshots at {image_size}x{image_size} in {output_dir}/")
    return manifest
