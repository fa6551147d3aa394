"""
Writer for ASCII Fluent mesh (.msh) files.

Faces are written in zones: all interior faces first, then one zone per
boundary condition kind. Indices in section headers and connectivity are
hexadecimal, as Fluent expects.
"""
import numpy

from . import __version__
from .nmf import BC, bcName

# Fluent face zone bc-type codes
FLUENT_INTERIOR = 2
FLUENT_WALL = 3
FLUENT_PRESSURE_OUTLET = 5
FLUENT_SYMMETRY = 7
FLUENT_VELOCITY_INLET = 10
FLUENT_INTERFACE = 24
FLUENT_AXIS = 37

FLUENT_ZONE_NAMES = {
    FLUENT_INTERIOR: "interior",
    FLUENT_WALL: "wall",
    FLUENT_PRESSURE_OUTLET: "pressure-outlet",
    FLUENT_SYMMETRY: "symmetry",
    FLUENT_VELOCITY_INLET: "velocity-inlet",
    FLUENT_INTERFACE: "interface",
    FLUENT_AXIS: "axis",
}

BC_TO_FLUENT = {
    BC["WALL"]: FLUENT_WALL,
    BC["SYM"]: FLUENT_SYMMETRY,
    BC["SYM_X"]: FLUENT_SYMMETRY,
    BC["SYM_Y"]: FLUENT_SYMMETRY,
    BC["SYM_Z"]: FLUENT_SYMMETRY,
    BC["INFLOW"]: FLUENT_VELOCITY_INLET,
    BC["OUTFLOW"]: FLUENT_PRESSURE_OUTLET,
    BC["POLE_DIR1"]: FLUENT_AXIS,
    BC["POLE_DIR2"]: FLUENT_AXIS,
    BC["PATCHED"]: FLUENT_INTERFACE,
}

# Zone ids of the node and cell zones
NODE_ZONE = 1
CELL_ZONE = 2


def faceZones(mesh):
    """Group faces into zones. Returns a list of (zoneId, fluentType, name,
    faceIndices) with 0-based face indices, interior zone first."""
    groups = [(FLUENT_INTERIOR, "interior", numpy.nonzero(~mesh.boundary)[0])]

    kinds = numpy.unique(mesh.faceBC[mesh.boundary])
    # Faces without boundary condition go last
    kinds = sorted(kinds, key=lambda k: (k == 0, k))
    for kind in kinds:
        ids = numpy.nonzero(mesh.boundary & (mesh.faceBC == kind))[0]
        fluentType = BC_TO_FLUENT.get(int(kind), FLUENT_WALL)
        name = bcName(int(kind)).lower() if kind else "unspecified"
        groups.append((fluentType, name, ids))

    groups = [group for group in groups if len(group[2])]
    return [(CELL_ZONE + n + 1,) + group for n, group in enumerate(groups)]


def writeFluent(mesh, fileName, title=None):
    """Write a glued hexahedral mesh to an ASCII Fluent mesh file"""
    if title is None:
        title = "Grid-Glue V%s" % __version__

    zones = faceZones(mesh)
    with open(fileName, "w") as f:
        f.write('(0 "%s")\n' % title)
        f.write("(2 3)\n")

        # Declarations
        f.write("(10 (0 1 %x 0 3))\n" % mesh.nNode)
        f.write("(12 (0 1 %x 0 0))\n" % mesh.nCell)
        f.write("(13 (0 1 %x 0 0))\n" % mesh.nFace)

        # Nodes
        f.write("(10 (%x 1 %x 1 3)(\n" % (NODE_ZONE, mesh.nNode))
        numpy.savetxt(f, mesh.nodes, fmt="%20.15g")
        f.write("))\n")

        # Cells, all hexahedral
        f.write("(12 (%x 1 %x 1 4))\n" % (CELL_ZONE, mesh.nCell))

        # Faces, all quadrilateral: 4 nodes then right and left cells
        first = 1
        for zoneId, fluentType, _, ids in zones:
            last = first + len(ids) - 1
            f.write("(13 (%x %x %x %x 4)(\n" % (zoneId, first, last, fluentType))
            data = numpy.column_stack([mesh.faceNodes[ids], mesh.rightCell[ids], mesh.leftCell[ids]])
            numpy.savetxt(f, data, fmt="%x")
            f.write("))\n")
            first = last + 1

        # Zone labels
        f.write("(45 (%d fluid fluid)())\n" % CELL_ZONE)
        for zoneId, fluentType, name, _ in zones:
            f.write("(45 (%d %s %s)())\n" % (zoneId, FLUENT_ZONE_NAMES[fluentType], name))

    return zones
