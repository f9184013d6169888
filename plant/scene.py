"""Minimal scene graph: transform nodes carrying optional triangle meshes.

Rotations are Euler angles in XYZ order (``Rx @ Ry @ Rz``) unless a node
sets another ``rotation_order``; positions and scales are per-axis.
``flatten`` bakes a subtree into world-space arrays that a renderer can
draw directly.
"""

import numpy as np

from plant.geometry import compute_vertex_normals


def rotation_matrix(rotation: np.ndarray, order: str = "XYZ") -> np.ndarray:
    """3x3 rotation matrix for Euler angles (x, y, z).

    ``order`` names the factors left to right, so "XYZ" is ``Rx @ Ry @ Rz``
    and the Z rotation is applied to a vector first.
    """
    rx, ry, rz = rotation
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)

    Rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    Ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    Rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    axes = {"X": Rx, "Y": Ry, "Z": Rz}
    if sorted(order) != ["X", "Y", "Z"]:
        raise ValueError(f"Invalid Euler order: {order!r}")
    return axes[order[0]] @ axes[order[1]] @ axes[order[2]]


class Mesh:
    """Triangle mesh with a single material color.

    Vertex and face arrays may be shared between meshes; the color is
    per-mesh so organs built from one template can be tinted independently.
    """

    def __init__(
        self,
        vertices: np.ndarray,
        faces: np.ndarray,
        normals: np.ndarray = None,
        color: np.ndarray = None,
    ):
        self.vertices = np.asarray(vertices, dtype=np.float64)
        self.faces = np.asarray(faces, dtype=np.int32)
        if normals is None:
            normals = compute_vertex_normals(self.vertices, self.faces)
        self.normals = normals
        self.color = np.array(color if color is not None else [1.0, 1.0, 1.0], dtype=np.float64)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)


class Node:
    """Transform node in the plant hierarchy."""

    def __init__(self, name: str = "", mesh: Mesh = None):
        self.name = name
        self.mesh = mesh
        self.position = np.zeros(3)
        self.rotation = np.zeros(3)
        self.rotation_order = "XYZ"
        self.scale = np.ones(3)
        self.children: list["Node"] = []
        self.parent: "Node" = None

    def add(self, child: "Node") -> "Node":
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: "Node"):
        self.children.remove(child)
        child.parent = None

    def clear(self):
        for child in self.children:
            child.parent = None
        self.children = []

    def local_matrix(self) -> np.ndarray:
        """4x4 transform: translate @ rotate @ scale."""
        m = np.eye(4)
        m[:3, :3] = rotation_matrix(self.rotation, self.rotation_order) * self.scale
        m[:3, 3] = self.position
        return m

    def world_matrix(self) -> np.ndarray:
        m = self.local_matrix()
        node = self.parent
        while node is not None:
            m = node.local_matrix() @ m
            node = node.parent
        return m

    def traverse(self):
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.traverse()

    def find(self, name: str) -> "Node":
        for node in self.traverse():
            if node.name == name:
                return node
        return None

    def __repr__(self):
        return f"Node({self.name!r}, children={len(self.children)})"


def flatten(root: Node) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Bake every mesh under ``root`` into merged arrays.

    Positions are expressed in the frame of ``root``'s parent, i.e. the
    root's own transform is applied.

    Returns:
        vertices: (N, 3) float32
        normals: (N, 3) float32
        colors: (N, 3) float32 per-vertex RGB in [0, 1]
        faces: (M, 3) int32 triangle indices
    """
    all_verts = []
    all_normals = []
    all_colors = []
    all_faces = []
    offset = 0

    def visit(node: Node, parent_matrix: np.ndarray):
        nonlocal offset
        matrix = parent_matrix @ node.local_matrix()
        mesh = node.mesh
        if mesh is not None and mesh.vertex_count > 0:
            linear = matrix[:3, :3]
            v = mesh.vertices @ linear.T + matrix[:3, 3]

            # Normals transform by the inverse transpose
            n = mesh.normals @ np.linalg.inv(linear)
            norms = np.linalg.norm(n, axis=-1, keepdims=True)
            n = n / np.maximum(norms, 1e-8)

            all_verts.append(v)
            all_normals.append(n)
            all_colors.append(np.tile(mesh.color, (len(v), 1)))
            all_faces.append(mesh.faces + offset)
            offset += len(v)
        for child in node.children:
            visit(child, matrix)

    visit(root, np.eye(4))

    if not all_verts:
        return (
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.int32),
        )

    vertices = np.concatenate(all_verts, axis=0).astype(np.float32)
    normals = np.concatenate(all_normals, axis=0).astype(np.float32)
    colors = np.concatenate(all_colors, axis=0).astype(np.float32)
    faces = np.concatenate(all_faces, axis=0).astype(np.int32)

    return vertices, normals, colors, faces
