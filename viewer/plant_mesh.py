"""OpenGL renderer for the plant scene graph."""

import math

from plant.model import Plant
from plant.scene import flatten

# Imported lazily; OpenGL may be missing in headless and test environments
_gl = None


def _import_gl():
    global _gl
    if _gl is None:
        import OpenGL.GL as GL
        _gl = GL
    return _gl


class PlantRenderer:
    """Draws a plant with directional lighting.

    The plant's mesh is baked once into a display list; call ``refresh``
    after ``plant.update`` so the new pose and colors show up.
    """

    def __init__(self, plant: Plant):
        self.plant = plant
        self._display_list = None
        self.vertices, self.normals, self.colors, self.faces = flatten(plant.mesh)

    def init_gl(self):
        """Initialize OpenGL state for rendering (call after context creation)."""
        GL = _import_gl()

        GL.glEnable(GL.GL_DEPTH_TEST)
        GL.glEnable(GL.GL_LIGHTING)
        GL.glEnable(GL.GL_LIGHT0)
        GL.glEnable(GL.GL_COLOR_MATERIAL)
        GL.glEnable(GL.GL_NORMALIZE)

        # Leaves and petals are thin shells; light both faces
        GL.glLightModeli(GL.GL_LIGHT_MODEL_TWO_SIDE, GL.GL_TRUE)
        GL.glColorMaterial(GL.GL_FRONT_AND_BACK, GL.GL_AMBIENT_AND_DIFFUSE)
        GL.glClearColor(0.94, 0.94, 0.94, 1.0)

        self.set_light(self.plant.light_level)
        self._build_display_list()

    def set_light(self, light: float):
        """Move and dim the sun to match a light reading (saturates at 2000)."""
        GL = _import_gl()
        position, diffuse = sun_light(light)

        GL.glLightfv(GL.GL_LIGHT0, GL.GL_POSITION, position)
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_DIFFUSE, diffuse)
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_AMBIENT, [0.5, 0.5, 0.5, 1.0])

    def refresh(self):
        """Re-bake the plant after an update."""
        self.vertices, self.normals, self.colors, self.faces = flatten(self.plant.mesh)
        if self._display_list is not None:
            GL = _import_gl()
            GL.glDeleteLists(self._display_list, 1)
            self.set_light(self.plant.light_level)
            self._build_display_list()

    def _build_display_list(self):
        GL = _import_gl()

        self._display_list = GL.glGenLists(1)
        GL.glNewList(self._display_list, GL.GL_COMPILE)

        GL.glBegin(GL.GL_TRIANGLES)
        for face in self.faces:
            for idx in face:
                GL.glNormal3fv(self.normals[idx].tolist())
                GL.glColor3fv(self.colors[idx].tolist())
                GL.glVertex3fv(self.vertices[idx].tolist())
        GL.glEnd()

        GL.glEndList()

    def render(self):
        GL = _import_gl()
        if self._display_list is not None:
            GL.glCallList(self._display_list)

    def cleanup(self):
        """Free OpenGL resources."""
        GL = _import_gl()
        if self._display_list is not None:
            GL.glDeleteLists(self._display_list, 1)
            self._display_list = None


def sun_light(light: float) -> tuple[list[float], list[float]]:
    """Directional light position and diffuse color for a light reading.

    Brightness saturates at 2000; the sun swings from one side of the plant
    to the other as the reading rises.
    """
    level = min(max(light, 0.0) / 2000.0, 1.0)
    angle = level * math.pi - math.pi / 2
    position = [5.0 * math.cos(angle), 5.0, 5.0 * math.sin(angle), 0.0]  # w=0 -> directional
    diffuse = [level, level * 0.96, level * 0.67, 1.0]
    return position, diffuse
