"""
StaggeredGrid: geometry and degree-of-freedom layout of a 3D staggered Cartesian grid.

Layout Conventions:
- Pressure lives at cell centres, Np = nx * ny * nz unknowns.
- Velocity component u lives at x-faces, v at y-faces, w at z-faces.
  Only interior faces carry unknowns; wall-normal velocities are boundary values.
- All 3D arrays are flattened with x fastest, then y, then z
  (index = i + nx * (j + ny * k)); operators are built as kron(Z, kron(Y, X)).
- The velocity vector V concatenates [u; v; w]; ``indu``, ``indv``, ``indw``
  are the slices of each component.
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class Axis:
    """Face and centre coordinates along one direction."""

    faces: np.ndarray

    def __post_init__(self):
        self.faces = np.asarray(self.faces, dtype=np.float64)
        self.n = self.faces.shape[0] - 1
        self.centres = 0.5 * (self.faces[:-1] + self.faces[1:])
        # Widths of cells and of the staggered volumes around interior faces
        self.widths = np.diff(self.faces)
        self.staggered_widths = np.diff(self.centres)

    def ext(self, kind):
        """Source node positions: ``"F"`` faces, ``"C"`` centres padded with walls."""
        if kind == "F":
            return self.faces
        return np.concatenate([self.faces[:1], self.centres, self.faces[-1:]])

    def points(self, kind):
        """Target point positions: ``"c"``, ``"f"`` or ``"fi"``."""
        if kind == "c":
            return self.centres
        if kind == "f":
            return self.faces
        return self.faces[1:-1]

    def interior_mask(self, kind):
        mask = np.ones(self.n + 1 if kind == "F" else self.n + 2, dtype=bool)
        mask[0] = mask[-1] = False
        return mask

    def volume_widths(self, kind):
        """Widths of the control volumes centred on ``"c"`` or ``"fi"`` points."""
        return self.widths if kind == "c" else self.staggered_widths

    @property
    def is_uniform(self):
        return np.allclose(self.widths, self.widths[0])


@dataclass
class StaggeredGrid:
    """Degree-of-freedom counts, index sets and volumes of a staggered grid."""

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray

    axes: tuple = field(init=False)
    shapes: tuple = field(init=False)

    def __post_init__(self):
        self.axes = (Axis(self.x), Axis(self.y), Axis(self.z))
        self.nx, self.ny, self.nz = (ax.n for ax in self.axes)
        if min(self.nx, self.ny, self.nz) < 2:
            raise ValueError("A staggered grid needs at least 2 cells per direction")

        # Interior unknowns per direction for each component
        self.shapes = tuple(
            tuple(ax.n - 1 if d == a else ax.n for d, ax in enumerate(self.axes))
            for a in range(3)
        )
        sizes = [int(np.prod(s)) for s in self.shapes]
        self.Nu, self.Nv, self.Nw = sizes
        self.NV = sum(sizes)
        self.Np = self.nx * self.ny * self.nz

        offsets = np.cumsum([0] + sizes)
        self.indu = slice(offsets[0], offsets[1])
        self.indv = slice(offsets[1], offsets[2])
        self.indw = slice(offsets[2], offsets[3])

        self.omega = np.concatenate([self._component_volumes(a) for a in range(3)])
        self.omega_p = _kron3([ax.widths for ax in self.axes])

    @property
    def component_slices(self):
        return (self.indu, self.indv, self.indw)

    def point_kinds(self, a):
        """Target kinds of component ``a`` unknowns along each direction."""
        return tuple("fi" if d == a else "c" for d in range(3))

    def source_kinds(self, a):
        """Source kinds of the boundary-extended vector of component ``a``."""
        return tuple("F" if d == a else "C" for d in range(3))

    def _component_volumes(self, a):
        return _kron3([ax.volume_widths(k) for ax, k in zip(self.axes, self.point_kinds(a))])

    def velocity_points(self, a):
        """Coordinates (x, y, z) of the unknowns of component ``a``, flattened."""
        coords = [ax.points(k) for ax, k in zip(self.axes, self.point_kinds(a))]
        return _meshgrid3(*coords)

    def pressure_points(self):
        return _meshgrid3(*(ax.centres for ax in self.axes))

    @property
    def domain_volume(self):
        return float(np.prod([ax.faces[-1] - ax.faces[0] for ax in self.axes]))


def _kron3(vectors):
    x, y, z = vectors
    return np.kron(z, np.kron(y, x))


def _meshgrid3(x, y, z):
    Z, Y, X = np.meshgrid(z, y, x, indexing="ij")
    return X.ravel(), Y.ravel(), Z.ravel()


def _stretched_faces(lims, n, stretch):
    """Faces on ``lims`` with widths growing geometrically by ``stretch``."""
    a, b = lims
    if stretch == 1:
        return np.linspace(a, b, n + 1)
    widths = stretch ** np.arange(n)
    faces = np.concatenate([[0.0], np.cumsum(widths)])
    return a + (b - a) * faces / faces[-1]


def create_grid(nx, ny, nz, xlims=(0.0, 1.0), ylims=(0.0, 1.0), zlims=(0.0, 1.0),
                stretch=(1, 1, 1)):
    """Create a Cartesian staggered grid.

    Parameters
    ----------
    nx, ny, nz : int
        Number of cells per direction (at least 2 each).
    xlims, ylims, zlims : tuple of float
        Domain limits per direction.
    stretch : tuple of float
        Geometric growth factor of the cell widths per direction (1 = uniform).

    Returns
    -------
    StaggeredGrid
    """
    return StaggeredGrid(
        x=_stretched_faces(xlims, nx, stretch[0]),
        y=_stretched_faces(ylims, ny, stretch[1]),
        z=_stretched_faces(zlims, nz, stretch[2]),
    )
