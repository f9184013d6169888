"""Parametric mesh primitives used to assemble the plant.

All builders return ``(vertices, faces)`` with vertices as (N, 3) float64 and
faces as (M, 3) int32 counter-clockwise triangles (outward normals). Stems,
pot and flower parts follow the Y-up convention; flat organs are drawn in the
XY plane and extruded along +Z.
"""

import numpy as np


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted per-vertex normals.

    Vertices not touched by any non-degenerate face get a default +Z normal.
    """
    normals = np.zeros_like(vertices, dtype=np.float64)
    if len(faces) == 0:
        normals[:, 2] = 1.0
        return normals

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)  # length = 2 * area

    for k in range(3):
        np.add.at(normals, faces[:, k], face_normals)

    norms = np.linalg.norm(normals, axis=-1, keepdims=True)
    degenerate = (norms < 1e-12).squeeze(-1)
    normals = normals / np.maximum(norms, 1e-12)
    normals[degenerate] = np.array([0.0, 0.0, 1.0])
    return normals


def cylinder(
    radius_top: float,
    radius_bottom: float,
    height: float,
    radial_segments: int = 8,
) -> tuple[np.ndarray, np.ndarray]:
    """Tapered cylinder centered on the origin, axis along +Y.

    Caps get their own vertices so side shading stays smooth while the caps
    stay flat. A cap is skipped when its radius is zero (cone tip).
    """
    theta = np.linspace(0, 2 * np.pi, radial_segments, endpoint=False)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    half = height / 2.0
    n = radial_segments

    top = np.stack([radius_top * cos_t, np.full(n, half), radius_top * sin_t], axis=-1)
    bottom = np.stack([radius_bottom * cos_t, np.full(n, -half), radius_bottom * sin_t], axis=-1)
    vertices = [top, bottom]
    faces = []

    for j in range(n):
        j_next = (j + 1) % n
        a, b = j, j_next
        c, d = n + j, n + j_next
        faces.append([a, b, c])
        faces.append([b, d, c])

    offset = 2 * n
    for radius, y, flip in ((radius_top, half, False), (radius_bottom, -half, True)):
        if radius <= 0:
            continue
        ring = np.stack([radius * cos_t, np.full(n, y), radius * sin_t], axis=-1)
        center = np.array([[0.0, y, 0.0]])
        vertices.extend([center, ring])
        for j in range(n):
            j_next = (j + 1) % n
            if flip:
                faces.append([offset, offset + 1 + j, offset + 1 + j_next])
            else:
                faces.append([offset, offset + 1 + j_next, offset + 1 + j])
        offset += n + 1

    return np.concatenate(vertices, axis=0), np.array(faces, dtype=np.int32)


def sphere(
    radius: float,
    n_lat: int = 8,
    n_lon: int = 12,
) -> tuple[np.ndarray, np.ndarray]:
    """UV sphere centered on the origin."""
    phi = np.linspace(0, np.pi, n_lat)
    theta = np.linspace(0, 2 * np.pi, n_lon, endpoint=False)
    PHI, THETA = np.meshgrid(phi, theta, indexing="ij")

    x = radius * np.sin(PHI) * np.cos(THETA)
    y = radius * np.cos(PHI)
    z = radius * np.sin(PHI) * np.sin(THETA)
    vertices = np.stack([x, y, z], axis=-1).reshape(-1, 3)

    faces = []
    for i in range(n_lat - 1):
        for j in range(n_lon):
            j_next = (j + 1) % n_lon
            idx = i * n_lon + j
            idx_next = i * n_lon + j_next
            idx_below = idx + n_lon
            idx_below_next = idx_next + n_lon
            faces.append([idx, idx_next, idx_below])
            faces.append([idx_next, idx_below_next, idx_below])

    return vertices, np.array(faces, dtype=np.int32)


def lathe(profile: np.ndarray, segments: int = 32) -> tuple[np.ndarray, np.ndarray]:
    """Revolve a (K, 2) profile of (radius, y) points, ordered bottom to top, around +Y."""
    profile = np.asarray(profile, dtype=np.float64)
    k = len(profile)
    theta = np.linspace(0, 2 * np.pi, segments, endpoint=False)

    r = profile[:, 0][:, None]
    y = np.broadcast_to(profile[:, 1][:, None], (k, segments))
    vertices = np.stack([r * np.cos(theta), y, r * np.sin(theta)], axis=-1).reshape(-1, 3)

    faces = []
    for i in range(k - 1):
        for j in range(segments):
            j_next = (j + 1) % segments
            a = i * segments + j
            b = (i + 1) * segments + j
            c = i * segments + j_next
            d = (i + 1) * segments + j_next
            faces.append([a, b, c])
            faces.append([b, d, c])

    return vertices, np.array(faces, dtype=np.int32)


class Outline:
    """Closed 2D outline assembled from line and curve commands.

    Curves are flattened into ``curve_segments`` straight pieces each.

    Usage:
        outline = Outline()
        outline.move_to(0, 0)
        outline.quadratic_curve_to(0.15, 0.2, 0, 0.4)
        outline.quadratic_curve_to(-0.15, 0.2, 0, 0)
        pts = outline.points()
    """

    def __init__(self, curve_segments: int = 12):
        self.curve_segments = curve_segments
        self._points: list[np.ndarray] = []

    @property
    def current(self) -> np.ndarray:
        if not self._points:
            return np.zeros(2)
        return self._points[-1]

    def move_to(self, x: float, y: float):
        self._points.append(np.array([x, y], dtype=np.float64))

    def line_to(self, x: float, y: float):
        self._points.append(np.array([x, y], dtype=np.float64))

    def quadratic_curve_to(self, cx: float, cy: float, x: float, y: float):
        p0 = self.current
        p1 = np.array([cx, cy])
        p2 = np.array([x, y])
        for t in np.linspace(0, 1, self.curve_segments + 1)[1:]:
            s = 1 - t
            self._points.append(s * s * p0 + 2 * s * t * p1 + t * t * p2)

    def bezier_curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float):
        p0 = self.current
        p1 = np.array([c1x, c1y])
        p2 = np.array([c2x, c2y])
        p3 = np.array([x, y])
        for t in np.linspace(0, 1, self.curve_segments + 1)[1:]:
            s = 1 - t
            self._points.append(s**3 * p0 + 3 * s**2 * t * p1 + 3 * s * t**2 * p2 + t**3 * p3)

    def points(self) -> np.ndarray:
        """(K, 2) outline vertices without repeated or closing points."""
        kept = []
        for p in self._points:
            if kept and np.linalg.norm(p - kept[-1]) < 1e-9:
                continue
            kept.append(p)
        if len(kept) > 1 and np.linalg.norm(kept[0] - kept[-1]) < 1e-9:
            kept.pop()
        if len(kept) < 3:
            raise ValueError(f"Outline needs at least 3 distinct points, got {len(kept)}")
        return np.array(kept)


def signed_area(points: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise outlines."""
    x, y = points[:, 0], points[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def triangulate_polygon(points: np.ndarray) -> np.ndarray:
    """Ear-clipping triangulation of a simple polygon.

    Returns (M, 3) int32 indices into ``points``, wound counter-clockwise.
    Collinear vertices are dropped; if no ear can be found (self-touching
    input) the remainder is closed with a fan.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 3:
        raise ValueError("Polygon needs at least 3 points")

    idx = list(range(len(points)))
    if signed_area(points) < 0:
        idx.reverse()

    eps = 1e-14
    triangles = []
    while len(idx) > 3:
        clipped = False
        m = len(idx)
        for k in range(m):
            i0, i1, i2 = idx[k - 1], idx[k], idx[(k + 1) % m]
            a, b, c = points[i0], points[i1], points[i2]
            turn = _cross(a, b, c)
            if abs(turn) <= eps:
                del idx[k]
                clipped = True
                break
            if turn < 0:
                continue  # reflex

            blocked = False
            for j in idx:
                if j in (i0, i1, i2):
                    continue
                p = points[j]
                # Points on the ear boundary block it too, unless they
                # coincide with one of its corners
                if (
                    _cross(a, b, p) >= -eps
                    and _cross(b, c, p) >= -eps
                    and _cross(c, a, p) >= -eps
                    and not any(np.array_equal(p, q) for q in (a, b, c))
                ):
                    blocked = True
                    break
            if blocked:
                continue

            triangles.append([i0, i1, i2])
            del idx[k]
            clipped = True
            break

        if not clipped:
            for k in range(1, len(idx) - 1):
                triangles.append([idx[0], idx[k], idx[k + 1]])
            idx = []
            break

    if len(idx) == 3:
        triangles.append(idx)

    return np.array(triangles, dtype=np.int32).reshape(-1, 3)


def _outward_normals(contour: np.ndarray) -> np.ndarray:
    """Per-vertex outward 2D normals of a counter-clockwise contour."""
    prev_edge = contour - np.roll(contour, 1, axis=0)
    next_edge = np.roll(contour, -1, axis=0) - contour

    def edge_normal(e):
        n = np.stack([e[:, 1], -e[:, 0]], axis=-1)
        return n / np.maximum(np.linalg.norm(n, axis=-1, keepdims=True), 1e-12)

    n = edge_normal(prev_edge) + edge_normal(next_edge)
    return n / np.maximum(np.linalg.norm(n, axis=-1, keepdims=True), 1e-12)


def extrude(
    outline: np.ndarray,
    depth: float,
    steps: int = 1,
    bevel_thickness: float = 0.0,
    bevel_size: float = 0.0,
    bevel_segments: int = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """Extrude a closed 2D outline along +Z into a solid with optional bevels.

    The body spans z in [0, depth]. Bevels add a rounded rim: the outline
    grows by up to ``bevel_size`` while the caps move out to
    ``-bevel_thickness`` and ``depth + bevel_thickness``.
    """
    if depth <= 0:
        raise ValueError(f"Extrusion depth must be positive, got {depth}")

    contour = np.asarray(outline, dtype=np.float64)
    if signed_area(contour) < 0:
        contour = contour[::-1].copy()
    n = len(contour)
    offsets = _outward_normals(contour)

    layers = []
    bevelled = bevel_segments > 0 and (bevel_thickness > 0 or bevel_size > 0)
    if bevelled:
        for k in range(bevel_segments + 1):
            a = k / bevel_segments * np.pi / 2
            layers.append((-bevel_thickness * np.cos(a), bevel_size * np.sin(a)))
        for s in range(1, steps + 1):
            layers.append((depth * s / steps, bevel_size))
        for k in reversed(range(bevel_segments)):
            a = k / bevel_segments * np.pi / 2
            layers.append((depth + bevel_thickness * np.cos(a), bevel_size * np.sin(a)))
    else:
        for s in range(steps + 1):
            layers.append((depth * s / steps, 0.0))

    rings = []
    for z, grow in layers:
        xy = contour + grow * offsets
        rings.append(np.column_stack([xy, np.full(n, z)]))

    faces = []
    for layer in range(len(layers) - 1):
        base = layer * n
        for i in range(n):
            i_next = (i + 1) % n
            a, b = base + i, base + i_next
            c, d = base + n + i, base + n + i_next
            faces.append([a, b, c])
            faces.append([b, d, c])

    # Caps get their own vertices for flat shading
    cap = triangulate_polygon(contour)
    front_offset = len(layers) * n
    back_offset = front_offset + n
    vertices = np.concatenate(rings + [rings[0], rings[-1]], axis=0)
    faces = np.array(faces, dtype=np.int32).reshape(-1, 3)
    front = cap[:, ::-1] + front_offset
    back = cap + back_offset
    faces = np.concatenate([faces, front, back], axis=0).astype(np.int32)

    return vertices, faces
