"""Interactive plant viewer.

Controls:
    Mouse drag: Orbit around the plant
    1-5: Switch to a preset environment state
    +/-: Zoom in/out
    ESC: Quit

Headless mode (--headless):
    Orbits the camera and cycles the plant through the preset states without
    opening a window, useful for testing.

Snapshot mode (--snapshots DIR):
    Renders one PNG per preset state with the software rasterizer.
"""

import argparse
import logging
import sys

import numpy as np

from plant.model import Plant
from plant.states import PRESET_STATES
from viewer.camera import OrbitCamera
from viewer.snapshot import render_state_snapshots

logger = logging.getLogger(__name__)


def run_headless(
    num_frames: int = 60,
    state_names: list[str] = None,
    plant: Plant = None,
) -> tuple[list[np.ndarray], list[str]]:
    """Simulate a viewing session without a display.

    The camera makes one full orbit over ``num_frames``; the plant steps
    through ``state_names`` (default: all presets) at evenly spaced frames.

    Returns:
        poses: (4, 4) camera-to-world matrix per frame
        visited: state name active at each frame
    """
    plant = plant or Plant()
    state_names = state_names or list(PRESET_STATES)
    camera = OrbitCamera()

    poses = []
    visited = []
    current = None
    for i in range(num_frames):
        name = state_names[i * len(state_names) // max(num_frames, 1)]
        if name != current:
            preset = PRESET_STATES[name]
            plant.update(preset.state.moisture, preset.state.light)
            logger.info("Frame %d: %s (%s)", i, name, preset.description)
            current = name

        camera.azimuth = 360.0 * i / num_frames
        poses.append(camera.get_c2w_matrix())
        visited.append(name)

    return poses, visited


def run_viewer(initial_state: str = None):
    """Launch the interactive OpenGL viewer."""
    try:
        import pygame
        from pygame.locals import (
            DOUBLEBUF,
            HWSURFACE,
            KEYDOWN,
            MOUSEBUTTONDOWN,
            MOUSEBUTTONUP,
            MOUSEMOTION,
            OPENGL,
            QUIT,
            K_ESCAPE,
            K_PLUS,
            K_MINUS,
            K_EQUALS,
            K_KP_PLUS,
            K_KP_MINUS,
            K_1,
        )
        import OpenGL.GL as GL
        import OpenGL.GLU as GLU
    except ImportError as e:
        print(f"Error: {e}")
        print("Install pygame and PyOpenGL: pip install pygame PyOpenGL")
        sys.exit(1)

    from viewer.plant_mesh import PlantRenderer

    pygame.init()
    width, height = 800, 600
    pygame.display.set_mode((width, height), DOUBLEBUF | OPENGL | HWSURFACE)

    preset_names = list(PRESET_STATES)
    plant = Plant()
    if initial_state is not None:
        preset = PRESET_STATES[initial_state]
        plant.update(preset.state.moisture, preset.state.light)

    def set_caption(name):
        pygame.display.set_caption(f"Plant Viewer [{name}] - Drag/1-5/+/- | ESC=Quit")

    set_caption(initial_state or "initial")

    camera = OrbitCamera()
    GL.glViewport(0, 0, width, height)

    renderer = PlantRenderer(plant)
    renderer.init_gl()

    clock = pygame.time.Clock()
    dragging = False
    running = True

    while running:
        clock.tick(60)

        for event in pygame.event.get():
            if event.type == QUIT:
                running = False
            elif event.type == KEYDOWN:
                if event.key == K_ESCAPE:
                    running = False
                elif event.key in (K_PLUS, K_EQUALS, K_KP_PLUS):
                    camera.zoom(0.5)
                elif event.key in (K_MINUS, K_KP_MINUS):
                    camera.zoom(-0.5)
                elif K_1 <= event.key < K_1 + len(preset_names):
                    name = preset_names[event.key - K_1]
                    preset = PRESET_STATES[name]
                    plant.update(preset.state.moisture, preset.state.light)
                    renderer.refresh()
                    set_caption(name)
                    print(f"State: {name} (moisture={preset.state.moisture}, light={preset.state.light})")
            elif event.type == MOUSEBUTTONDOWN and event.button == 1:
                dragging = True
            elif event.type == MOUSEBUTTONUP and event.button == 1:
                dragging = False
            elif event.type == MOUSEMOTION and dragging:
                dx, dy = event.rel
                camera.process_mouse(dx, dy)

        GL.glMatrixMode(GL.GL_PROJECTION)
        GL.glLoadIdentity()
        GLU.gluPerspective(camera.fov, width / height, 0.1, 100.0)
        GL.glMatrixMode(GL.GL_MODELVIEW)

        GL.glClear(GL.GL_COLOR_BUFFER_BIT | GL.GL_DEPTH_BUFFER_BIT)
        GL.glLoadIdentity()

        view = camera.get_view_matrix()
        GL.glMultMatrixf(view.T.astype(np.float32).flatten())
        # Directional light is specified in world space, after the view
        renderer.set_light(plant.light_level)

        renderer.render()

        pygame.display.flip()

    renderer.cleanup()
    pygame.quit()


def main():
    parser = argparse.ArgumentParser(description="Procedural Plant Viewer")
    parser.add_argument("--headless", action="store_true", help="Run without display")
    parser.add_argument("--num_frames", type=int, default=60, help="Frames for headless mode")
    parser.add_argument("--snapshots", default=None, metavar="DIR",
                        help="Render a PNG per preset state into DIR and exit")
    parser.add_argument("--image_size", type=int, default=256, help="Snapshot resolution")
    parser.add_argument("--state", choices=list(PRESET_STATES), default=None,
                        help="Preset state to start from (or the only one to snapshot)")
    parser.add_argument("--verbose", action="store_true", help="Log plant generation details")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    state_names = [args.state] if args.state else None
    if args.snapshots:
        render_state_snapshots(args.snapshots, state_names, image_size=args.image_size)
    elif args.headless:
        poses, visited = run_headless(args.num_frames, state_names)
        print(f"Headless: {len(poses)} frames across {len(set(visited))} states")
    else:
        run_viewer(args.state)


if __name__ == "__main__":
    main()
