"""
Topology of a 3D multiblock structured grid described by a Neutral Map
File (NMF).

The map file lists the dimensions of every block followed by one line per
interface: either a boundary condition on a sub-range of one block surface,
or a ONE_TO_ONE match between sub-ranges of two block surfaces. From these
entries the Mapping links block surfaces to each other and works out how the
local (primary, secondary) frames of the two sides of every interface line
up. Global numbering of cells, faces, edges and nodes is done in
gridglue.numbering, the flat mesh is assembled in gridglue.mesh.

Surfaces are numbered 1 to 6 (I-min, I-max, J-min, J-max, K-min, K-max).
The primary and secondary directions of a surface are cyclic: (J, K) on the
I surfaces, (K, I) on the J surfaces and (I, J) on the K surfaces.
"""
import itertools
from collections import namedtuple
import numpy

from .errors import (
    DuplicateLinkError,
    InconsistentGridError,
    ParseError,
    RangeError,
    TopologyError,
    UnknownBoundaryConditionError,
)

# Closed vocabulary of boundary condition keywords
BC = {
    "COLLAPSED": 1,
    "ONE_TO_ONE": 2,
    "PATCHED": 3,
    "POLE_DIR1": 4,
    "POLE_DIR2": 5,
    "SYM_X": 6,
    "SYM_Y": 7,
    "SYM_Z": 8,
    "UNPROCESSED": 9,
    "WALL": 10,
    "SYM": 11,
    "INFLOW": 12,
    "OUTFLOW": 13,
}

BC_ALIASES = {"SYMMETRY": "SYM"}

BC_NAMES = {val: key for key, val in BC.items()}

# (fixed axis, primary axis, secondary axis) of each surface, 0-based I/J/K
SURFACE_AXES = {
    1: (0, 1, 2),
    2: (0, 1, 2),
    3: (1, 2, 0),
    4: (1, 2, 0),
    5: (2, 0, 1),
    6: (2, 0, 1),
}

# The 4 frame edges of each surface, in cyclic order
SURFACE_EDGES = {
    1: (5, 9, 8, 12),
    2: (6, 11, 7, 10),
    3: (1, 10, 4, 9),
    4: (2, 12, 3, 11),
    5: (1, 5, 2, 6),
    6: (3, 8, 4, 7),
}

# The 2 surfaces bounding each frame edge. Edges 1-4 run along I, 5-8 along
# J and 9-12 along K.
EDGE_SURFACES = {
    1: (3, 5),
    2: (5, 4),
    3: (4, 6),
    4: (6, 3),
    5: (1, 5),
    6: (5, 2),
    7: (2, 6),
    8: (6, 1),
    9: (1, 3),
    10: (3, 2),
    11: (2, 4),
    12: (4, 1),
}

HexCell = namedtuple("HexCell", ["cellId", "nodes", "faces"])


def formalizeBC(name):
    """Upper case the keyword and treat '-' and '_' alike"""
    return name.strip().upper().replace("-", "_")


def bcIndex(name):
    """Return the integer boundary condition type of a keyword"""
    key = formalizeBC(name)
    key = BC_ALIASES.get(key, key)
    if key not in BC:
        raise UnknownBoundaryConditionError('Unsupported B.C. name: "%s"' % name)
    return BC[key]


def bcName(bcType):
    """Return the keyword of an integer boundary condition type"""
    try:
        return BC_NAMES[bcType]
    except KeyError:
        raise UnknownBoundaryConditionError("Unsupported B.C. type: %s" % bcType) from None


def isMaxSurface(iSurf):
    return iSurf % 2 == 0


def _surfaceCorners(iSurf):
    fixed = SURFACE_AXES[iSurf][0]
    side = 1 if isMaxSurface(iSurf) else 0
    return {c for c in itertools.product((0, 1), repeat=3) if c[fixed] == side}


def _edgeCorners(iEdge):
    sa, sb = EDGE_SURFACES[iEdge]
    return _surfaceCorners(sa) & _surfaceCorners(sb)


def checkIncidence():
    """Verify the static surface/edge incidence tables. Every edge must be
    bounded by exactly 2 surfaces, and every surface must hold 4 distinct
    edges where consecutive edges meet at a block corner."""
    for iEdge, surfs in EDGE_SURFACES.items():
        owners = [iSurf for iSurf, edges in SURFACE_EDGES.items() if iEdge in edges]
        if len(surfs) != 2 or sorted(owners) != sorted(surfs):
            raise TopologyError("Edge %d must have exactly 2 dependent surfaces" % iEdge)
        if len(_edgeCorners(iEdge)) != 2:
            raise TopologyError("Surfaces of edge %d do not meet along an edge" % iEdge)

    for iSurf, edges in SURFACE_EDGES.items():
        if len(set(edges)) != 4:
            raise TopologyError("Surface %d must have 4 distinct edges" % iSurf)
        for n in range(4):
            shared = _edgeCorners(edges[n]) & _edgeCorners(edges[(n + 1) % 4])
            if len(shared) != 1:
                raise TopologyError("Edges of surface %d are not in cyclic order" % iSurf)


def edgeSide(iSurf, iEdge):
    """Return (axis, end) of the side of surface iSurf that edge iEdge
    lies on. axis is 0 when the side has a constant primary index and 1
    for a constant secondary index; end is 0 at the low and 1 at the high
    index."""
    sa, sb = EDGE_SURFACES[iEdge]
    if iSurf == sa:
        other = sb
    elif iSurf == sb:
        other = sa
    else:
        raise TopologyError("Edge %d does not bound surface %d" % (iEdge, iSurf))

    axis = 0 if SURFACE_AXES[other][0] == SURFACE_AXES[iSurf][1] else 1
    return axis, int(isMaxSurface(other))


def sideEdge(iSurf, axis, end):
    """Inverse of edgeSide"""
    for iEdge in SURFACE_EDGES[iSurf]:
        if edgeSide(iSurf, iEdge) == (axis, end):
            return iEdge
    raise TopologyError("No edge on side (%d, %d) of surface %d" % (axis, end, iSurf))


def surfaceView(arr, iSurf):
    """Return the layer of a block array lying on surface iSurf, with the
    primary direction first. The first three axes of 'arr' must be I, J, K;
    any trailing axes are kept. The result is a view."""
    fixed, pri, sec = SURFACE_AXES[iSurf]
    sl = [slice(None)] * 3
    sl[fixed] = arr.shape[fixed] - 1 if isMaxSurface(iSurf) else 0
    view = arr[tuple(sl)]
    if pri > sec:
        view = numpy.swapaxes(view, 0, 1)
    return view


class Range(object):
    """Rectangular window of a block surface given by node indices along
    the primary (S1, E1) and secondary (S2, E2) directions of the surface.
    S > E means the range runs backwards along that direction."""

    def __init__(self, blk, face, s1, e1, s2, e2):
        self.B = int(blk)
        self.F = int(face)
        self.S1 = int(s1)
        self.E1 = int(e1)
        self.S2 = int(s2)
        self.E2 = int(e2)

    def __repr__(self):
        return "Range(%d, %d, %d, %d, %d, %d)" % tuple(self.asList())

    def __eq__(self, other):
        return isinstance(other, Range) and self.asList() == other.asList()

    def asList(self):
        return [self.B, self.F, self.S1, self.E1, self.S2, self.E2]

    @property
    def priLow(self):
        return min(self.S1, self.E1)

    @property
    def priHigh(self):
        return max(self.S1, self.E1)

    @property
    def secLow(self):
        return min(self.S2, self.E2)

    @property
    def secHigh(self):
        return max(self.S2, self.E2)

    @property
    def priForward(self):
        return self.S1 <= self.E1

    @property
    def secForward(self):
        return self.S2 <= self.E2

    def contains(self, pri, sec):
        """Check if the given node index is within this range"""
        return self.priLow <= pri <= self.priHigh and self.secLow <= sec <= self.secHigh

    def priNodeNum(self):
        """Nodes in primary direction"""
        return self.priHigh - self.priLow + 1

    def secNodeNum(self):
        """Nodes in secondary direction"""
        return self.secHigh - self.secLow + 1

    def nodeNum(self):
        return self.priNodeNum() * self.secNodeNum()

    def edgeNum(self):
        nPri = (self.priNodeNum() - 1) * self.secNodeNum()
        nSec = (self.secNodeNum() - 1) * self.priNodeNum()
        return nPri + nSec

    def faceNum(self):
        """Total quad faces on this range"""
        return (self.priNodeNum() - 1) * (self.secNodeNum() - 1)

    def nodeWindow(self):
        """0-based slices selecting the nodes of this range out of a surface view"""
        return slice(self.priLow - 1, self.priHigh), slice(self.secLow - 1, self.secHigh)

    def cellWindow(self):
        """0-based slices selecting the faces of this range out of a surface view"""
        return slice(self.priLow - 1, self.priHigh - 1), slice(self.secLow - 1, self.secHigh - 1)

    def overlaps(self, other):
        """Check if two ranges on the same surface share at least one face"""
        if (self.B, self.F) != (other.B, other.F):
            return False
        pri = min(self.priHigh, other.priHigh) - max(self.priLow, other.priLow)
        sec = min(self.secHigh, other.secHigh) - max(self.secLow, other.secLow)
        return pri > 0 and sec > 0


class Orientation(namedtuple("Orientation", ["swap", "reversePri", "reverseSec"])):
    """
    How the first range of a one-to-one interface lines up with the second.

    A node (or face) at 0-based offset (u, v) from the low corner of the
    first range sits at offset (a, b) on the second range, where (a, b) is
    (u, v) when 'swap' is False and (v, u) when it is True, and 'a'
    ('b') is then counted from the high end of the second range when
    reversePri (reverseSec) is set.
    """

    __slots__ = ()

    def map(self, u, v, nPri, nSec):
        """Map offsets on the first range to offsets on the second range,
        which has nPri x nSec points. Works on arrays."""
        if self.swap:
            a, b = v, u
        else:
            a, b = u, v
        if self.reversePri:
            a = nPri - 1 - a
        if self.reverseSec:
            b = nSec - 1 - b
        return a, b

    def mapSide(self, axis, end):
        """Map a side (axis, end) of the first range to the matching side
        of the second range"""
        if self.swap:
            axis = 1 - axis
        reverse = self.reversePri if axis == 0 else self.reverseSec
        return axis, end ^ int(reverse)

    def candidates(self):
        """All orientations with the same swap flag, this one first"""
        others = [
            Orientation(self.swap, rp, rs)
            for rp, rs in itertools.product((False, True), repeat=2)
            if (rp, rs) != (self.reversePri, self.reverseSec)
        ]
        return [self] + others


class SingleSideEntry(object):
    """Boundary condition on a range of one block surface"""

    def __init__(self, bcType, rg):
        self.type = bcType
        self.range1 = rg

    def ranges(self):
        return [self.range1]

    def contains(self, blk, face, pri, sec):
        rg = self.range1
        return 1 if (rg.B == blk and rg.F == face and rg.contains(pri, sec)) else 0


class DoubleSideEntry(object):
    """One-to-one match between ranges on two block surfaces. 'swap' tells
    whether the primary direction of range1 runs along the secondary
    direction of range2."""

    def __init__(self, rg1, rg2, swap):
        self.type = BC["ONE_TO_ONE"]
        self.range1 = rg1
        self.range2 = rg2
        self.swap = bool(swap)

    def ranges(self):
        return [self.range1, self.range2]

    def contains(self, blk, face, pri, sec):
        rg1, rg2 = self.range1, self.range2
        if rg1.B == blk and rg1.F == face and rg1.contains(pri, sec):
            return 1
        elif rg2.B == blk and rg2.F == face and rg2.contains(pri, sec):
            return 2
        else:
            return 0

    def declaredOrientation(self, iEntry=None):
        """Orientation implied by the swap flag and the S/E trends of the
        two ranges. Aligned directions with different trends run in
        opposite senses."""
        rg1, rg2 = self.range1, self.range2
        if self.swap:
            sizes1 = (rg1.priNodeNum(), rg1.secNodeNum())
            sizes2 = (rg2.secNodeNum(), rg2.priNodeNum())
            reversePri = rg1.secForward != rg2.priForward
            reverseSec = rg1.priForward != rg2.secForward
        else:
            sizes1 = (rg1.priNodeNum(), rg1.secNodeNum())
            sizes2 = (rg2.priNodeNum(), rg2.secNodeNum())
            reversePri = rg1.priForward != rg2.priForward
            reverseSec = rg1.secForward != rg2.secForward

        if sizes1 != sizes2:
            raise TopologyError(
                "Ranges of one-to-one interface have different sizes: %s and %s" % (sizes1, sizes2),
                block=rg1.B,
                surface=rg1.F,
                entry=iEntry,
            )

        return Orientation(self.swap, reversePri, reverseSec)


class Surface(object):
    """One of the 6 bounding surfaces of a block. Only holds topology."""

    def __init__(self, block, index):
        self.block = block
        self.index = index
        self.neighbour = None  # (block, surface) on the other side of a one-to-one interface
        self.counterpartEdges = {}  # local edge -> (block, edge) across the interface
        self.globalId = 0

    @property
    def edges(self):
        return SURFACE_EDGES[self.index]


class Edge(object):
    """One of the 12 frame edges of a block"""

    def __init__(self, block, index):
        self.block = block
        self.index = index
        self.globalId = 0

    @property
    def surfaces(self):
        return EDGE_SURFACES[self.index]


class Block(object):
    """A single 3D structured block of nI x nJ x nK nodes.

    Global ids are stored in Fortran-ordered numpy arrays once the grid
    has been numbered: 'cellIds' (nI-1, nJ-1, nK-1), 'nodeIds' (nI, nJ, nK)
    and 'faceIds', the I, J and K face arrays of shapes (nI, nJ-1, nK-1),
    (nI-1, nJ, nK-1) and (nI-1, nJ-1, nK). All accessors are 1-based.
    """

    NumOfEdge = 12
    NumOfSurf = 6

    def __init__(self, index, dims):
        if len(dims) != 3 or min(dims) < 2:
            raise RangeError("Invalid dimension: %s" % (list(dims),), block=index)

        self.index = index
        self.dims = [int(d) for d in dims]
        self.coords = None
        self.surfs = [Surface(index, i) for i in range(1, self.NumOfSurf + 1)]
        self.edges = [Edge(index, i) for i in range(1, self.NumOfEdge + 1)]

        self.cellIds = None
        self.nodeIds = None
        self.faceIds = None

    def getNumNodes(self):
        return self.dims[0] * self.dims[1] * self.dims[2]

    def getNumCells(self):
        return (self.dims[0] - 1) * (self.dims[1] - 1) * (self.dims[2] - 1)

    def getNumFaces(self):
        il, jl, kl = self.dims
        return il * (jl - 1) * (kl - 1) + (il - 1) * jl * (kl - 1) + (il - 1) * (jl - 1) * kl

    def getNumSurfaceFaces(self):
        """Faces lying on the 6 block surfaces"""
        il, jl, kl = self.dims
        return 2 * ((jl - 1) * (kl - 1) + (kl - 1) * (il - 1) + (il - 1) * (jl - 1))

    def getNumInteriorFaces(self):
        return self.getNumFaces() - self.getNumSurfaceFaces()

    def surfaceDims(self, iSurf):
        """Number of nodes along the primary and secondary directions of a surface"""
        _, pri, sec = SURFACE_AXES[iSurf]
        return self.dims[pri], self.dims[sec]

    def surf(self, n):
        if 1 <= n <= self.NumOfSurf:
            return self.surfs[n - 1]
        elif -self.NumOfSurf <= n <= -1:
            return self.surfs[self.NumOfSurf + n]
        raise RangeError('"%d" is not a valid 1-based surface index for a block.' % n, block=self.index)

    def edge(self, n):
        if 1 <= n <= self.NumOfEdge:
            return self.edges[n - 1]
        elif -self.NumOfEdge <= n <= -1:
            return self.edges[self.NumOfEdge + n]
        raise RangeError('"%d" is not a valid edge index for a 3D block.' % n, block=self.index)

    def _checkIndex(self, ijk, upper):
        for n, (idx, top) in enumerate(zip(ijk, upper)):
            if not 1 <= idx <= top:
                raise RangeError(
                    '"%d" is not a valid 1-based %s index.' % (idx, "IJK"[n]), block=self.index
                )

    def cell(self, i, j, k):
        """Return the cell whose lowest corner is node (i, j, k)"""
        self._checkIndex((i, j, k), [d - 1 for d in self.dims])
        if self.cellIds is None or self.faceIds is None or self.nodeIds is None:
            raise TopologyError("Block has not been numbered", block=self.index)

        i0, j0, k0 = i - 1, j - 1, k - 1
        nodes = self.cellNodeIds()[i0, j0, k0]
        faces = self.cellFaceIds()[i0, j0, k0]
        return HexCell(int(self.cellIds[i0, j0, k0]), tuple(int(n) for n in nodes), tuple(int(f) for f in faces))

    def nodeIndex(self, i, j, k):
        """Global 1-based index of node (i, j, k)"""
        self._checkIndex((i, j, k), self.dims)
        if self.nodeIds is None:
            raise TopologyError("Block has not been numbered", block=self.index)
        return int(self.nodeIds[i - 1, j - 1, k - 1])

    def cellNodeIds(self):
        """Global node ids of every cell, shape (nI-1, nJ-1, nK-1, 8)"""
        N = self.nodeIds
        return numpy.stack(
            [
                N[:-1, :-1, :-1],
                N[1:, :-1, :-1],
                N[1:, 1:, :-1],
                N[:-1, 1:, :-1],
                N[:-1, :-1, 1:],
                N[1:, :-1, 1:],
                N[1:, 1:, 1:],
                N[:-1, 1:, 1:],
            ],
            axis=-1,
        )

    def cellFaceIds(self):
        """Global face ids of every cell, shape (nI-1, nJ-1, nK-1, 6)"""
        iFace, jFace, kFace = self.faceIds
        return numpy.stack(
            [iFace[:-1], iFace[1:], jFace[:, :-1], jFace[:, 1:], kFace[:, :, :-1], kFace[:, :, 1:]], axis=-1
        )

    def surfaceFaces(self, iSurf):
        """View of the global face ids on a surface, shape (pri cells, sec cells)"""
        fixed = SURFACE_AXES[iSurf][0]
        return surfaceView(self.faceIds[fixed], iSurf)

    def surfaceCells(self, iSurf):
        return surfaceView(self.cellIds, iSurf)

    def surfaceNodes(self, iSurf):
        return surfaceView(self.nodeIds, iSurf)


class Mapping(object):
    """Blocks and interface entries of a multiblock grid"""

    def __init__(self, fileName=None):
        self.blocks = []
        self.entries = []
        self.links = {}  # (block, surface) -> (0-based entry position, side)
        self.orientations = {}  # 0-based entry position -> Orientation
        self.totalNodes = 0
        self.totalEdges = 0
        self.totalSurfaces = 0

        if fileName is not None:
            self.readFromFile(fileName)
            self.computeTopology()

    # ----------------------------------------
    # Construction
    # ----------------------------------------
    def addBlock(self, dims):
        """Append a block and return it. Blocks are numbered from 1 in the
        order they are added."""
        blk = Block(len(self.blocks) + 1, dims)
        self.blocks.append(blk)
        return blk

    def addEntry(self, entry):
        """Append an interface entry after checking its ranges"""
        for rg in entry.ranges():
            _checkRange(self.blocks, rg, len(self.entries) + 1)
        self.entries.append(entry)
        return entry

    def readFromFile(self, fileName):
        """Read a neutral map file. Nothing is replaced until the whole
        file has been read successfully."""
        try:
            with open(fileName, "r") as f:
                lines = [(n + 1, line) for n, line in enumerate(f)]
        except UnicodeDecodeError:
            raise ParseError("Map file %s is not a text file" % fileName) from None

        # Skip blank lines and comments
        lines = [(n, line.split()) for n, line in lines if line.strip() and not line.strip().startswith("#")]
        if not lines:
            raise ParseError("Map file %s is empty" % fileName)

        lineNo, tokens = lines[0]
        if len(tokens) != 1:
            raise ParseError(
                "Line %d: failed to match the single line where only the num of blocks is specified." % lineNo
            )
        NumOfBlk = _toInt(tokens[0], lineNo)
        if NumOfBlk <= 0:
            raise ParseError('Line %d: invalid num of blocks: "%s".' % (lineNo, tokens[0]))
        if len(lines) < NumOfBlk + 1:
            raise ParseError("Expected %d block lines in %s" % (NumOfBlk, fileName))

        dims = {}
        for lineNo, tokens in lines[1 : NumOfBlk + 1]:
            if len(tokens) != 4:
                raise ParseError("Line %d: failed to match 4 integers." % lineNo)
            idx, il, jl, kl = [_toInt(t, lineNo) for t in tokens]
            if idx < 1 or idx > NumOfBlk:
                raise RangeError("Line %d: invalid order of block: %d" % (lineNo, idx))
            if idx in dims:
                raise ParseError("Line %d: block %d is defined twice" % (lineNo, idx))
            dims[idx] = [il, jl, kl]

        blocks = [Block(idx, dims[idx]) for idx in range(1, NumOfBlk + 1)]

        entries = []
        for lineNo, tokens in lines[NumOfBlk + 1 :]:
            bcType = bcIndex(tokens[0])
            if bcType == BC["ONE_TO_ONE"]:
                if len(tokens) != 14:
                    raise ParseError("Line %d: one-to-one entry needs 12 integers and a swap flag." % lineNo)
                values = [_toInt(t, lineNo) for t in tokens[1:13]]
                swap = tokens[13].upper()
                if swap not in ("TRUE", "FALSE"):
                    raise ParseError('Line %d: swap flag must be TRUE or FALSE, got "%s".' % (lineNo, tokens[13]))
                entry = DoubleSideEntry(Range(*values[:6]), Range(*values[6:]), swap == "TRUE")
            else:
                if len(tokens) != 7:
                    raise ParseError("Line %d: boundary entry needs 6 integers." % lineNo)
                values = [_toInt(t, lineNo) for t in tokens[1:7]]
                entry = SingleSideEntry(bcType, Range(*values))

            for rg in entry.ranges():
                _checkRange(blocks, rg, len(entries) + 1)
            entries.append(entry)

        self.blocks = blocks
        self.entries = entries
        self.links = {}
        self.orientations = {}
        self.totalNodes = 0
        self.totalEdges = 0
        self.totalSurfaces = 0

    def writeToFile(self, fileName):
        """Write the blocks and entries in neutral map file format"""
        sep = "# " + "-" * 108 + "\n"
        with open(fileName, "w") as f:
            f.write("# " + " Neutral Map File generated by the Grid-Glue software ".center(108, "=") + "\n")
            f.write("# " + "=" * 108 + "\n")
            f.write("# Block#    IDIM    JDIM    KDIM\n")
            f.write(sep)
            f.write("%8d\n" % self.nBlock())
            for blk in self.blocks:
                f.write("%8d%8d%8d%8d\n" % (blk.index, blk.dims[0], blk.dims[1], blk.dims[2]))

            f.write("# " + "=" * 108 + "\n")
            f.write(
                "# Type           B1    F1       S1    E1       S2    E2"
                "       B2    F2       S1    E1       S2    E2      Swap\n"
            )
            f.write(sep)
            for entry in self.entries:
                f.write("%-13s" % bcName(entry.type))
                f.write("%6d%6d%9d%6d%9d%6d" % tuple(entry.range1.asList()))
                if isinstance(entry, DoubleSideEntry):
                    f.write("%9d%6d%9d%6d%9d%6d" % tuple(entry.range2.asList()))
                    f.write("%10s" % ("TRUE" if entry.swap else "FALSE"))
                f.write("\n")

    # ----------------------------------------
    # Topology
    # ----------------------------------------
    def computeTopology(self):
        """Link the surfaces of every one-to-one entry and record the
        orientation declared by the map file"""
        for blk in self.blocks:
            for surf in blk.surfs:
                surf.neighbour = None
                surf.counterpartEdges = {}

        self.links = {}
        self.orientations = {}
        for iEntry, entry in enumerate(self.entries):
            if not isinstance(entry, DoubleSideEntry):
                continue

            rg1, rg2 = entry.range1, entry.range2
            key1, key2 = (rg1.B, rg1.F), (rg2.B, rg2.F)
            if key1 == key2:
                raise DuplicateLinkError(
                    "A surface cannot be linked to itself", block=rg1.B, surface=rg1.F, entry=iEntry + 1
                )
            for key in (key1, key2):
                if key in self.links:
                    raise DuplicateLinkError(
                        "Surface is already linked by entry %d" % (self.links[key][0] + 1),
                        block=key[0],
                        surface=key[1],
                        entry=iEntry + 1,
                    )

            surf1 = self.block(rg1.B).surf(rg1.F)
            surf2 = self.block(rg2.B).surf(rg2.F)
            surf1.neighbour = key2
            surf2.neighbour = key1
            self.links[key1] = (iEntry, 1)
            self.links[key2] = (iEntry, 2)

            self.orientations[iEntry] = entry.declaredOrientation(iEntry + 1)

        # Boundary conditions may not cover a one-to-one interface
        for iEntry, entry in enumerate(self.entries):
            if isinstance(entry, DoubleSideEntry):
                continue
            rg = entry.range1
            link = self.links.get((rg.B, rg.F))
            if link is None:
                continue
            other = self.entries[link[0]].ranges()[link[1] - 1]
            if rg.overlaps(other):
                raise TopologyError(
                    "Boundary condition overlaps the one-to-one interface of entry %d" % (link[0] + 1),
                    block=rg.B,
                    surface=rg.F,
                    entry=iEntry + 1,
                )

    def interfaceOf(self, blk, iSurf):
        """Return (entry position, entry, side, orientation) of the
        one-to-one interface on a block surface, or None"""
        link = self.links.get((blk, iSurf))
        if link is None:
            return None
        iEntry, side = link
        return iEntry, self.entries[iEntry], side, self.orientations[iEntry]

    def interfaceMask(self, blk, iSurf):
        """Boolean (pri cells, sec cells) array, True for surface faces that
        belong to a one-to-one interface"""
        mask = numpy.zeros([n - 1 for n in self.block(blk).surfaceDims(iSurf)], bool)
        link = self.interfaceOf(blk, iSurf)
        if link is not None:
            _, entry, side, _ = link
            mask[entry.ranges()[side - 1].cellWindow()] = True
        return mask

    def checkGrid(self, coords):
        """Check that a list of (nI, nJ, nK, 3) coordinate arrays matches
        the blocks of this mapping"""
        if len(coords) != self.nBlock():
            raise InconsistentGridError(
                "Inconsistent num of blocks between NMF (%d) and PLOT3D (%d)." % (self.nBlock(), len(coords))
            )
        for blk, X in zip(self.blocks, coords):
            for iDim, name in enumerate("IJK"):
                if X.shape[iDim] != blk.dims[iDim]:
                    raise InconsistentGridError(
                        "Inconsistent num of nodes in %s dimension: %d in NMF, %d in PLOT3D."
                        % (name, blk.dims[iDim], X.shape[iDim]),
                        block=blk.index,
                    )

    def setCoordinates(self, coords, tol=1e-12):
        """Attach block coordinates and fix the orientation of every
        one-to-one interface from them"""
        self.checkGrid(coords)
        for blk, X in zip(self.blocks, coords):
            blk.coords = X
        self.resolveOrientation(tol)

    def resolveOrientation(self, tol=1e-12):
        """Compare the nodes of both sides of every one-to-one interface.
        The declared orientation is kept when the nodes coincide within
        'tol', taken relative to the largest coordinate of the interface;
        otherwise the unique orientation that makes them coincide is used
        instead. Changing an orientation discards any previous numbering."""
        changed = False
        for iEntry, entry in enumerate(self.entries):
            if not isinstance(entry, DoubleSideEntry):
                continue

            rg1, rg2 = entry.range1, entry.range2
            blk1, blk2 = self.block(rg1.B), self.block(rg2.B)
            if blk1.coords is None or blk2.coords is None:
                continue

            X1 = surfaceView(blk1.coords, rg1.F)[rg1.nodeWindow()]
            X2 = surfaceView(blk2.coords, rg2.F)[rg2.nodeWindow()]
            U, V = numpy.meshgrid(numpy.arange(X1.shape[0]), numpy.arange(X1.shape[1]), indexing="ij")
            scaledTol = scaleTolerance(tol, X1, X2)

            declared = entry.declaredOrientation(iEntry + 1)
            matches = []
            for orient in declared.candidates():
                A, B = orient.map(U, V, X2.shape[0], X2.shape[1])
                if numpy.abs(X1 - X2[A, B]).max() <= scaledTol:
                    matches.append(orient)

            if declared in matches:
                orient = declared
            elif len(matches) == 1:
                orient = matches[0]
                print(
                    "Warning: orientation of entry %d corrected from the grid coordinates (%s -> %s)"
                    % (iEntry + 1, tuple(declared), tuple(orient))
                )
            elif not matches:
                raise TopologyError(
                    "Nodes of the one-to-one interface do not coincide", block=rg1.B, surface=rg1.F, entry=iEntry + 1
                )
            else:
                raise TopologyError(
                    "Orientation of the one-to-one interface is ambiguous", block=rg1.B, surface=rg1.F, entry=iEntry + 1
                )

            if orient != self.orientations.get(iEntry):
                changed = True
            self.orientations[iEntry] = orient

        if changed:
            self.clearNumbering()

    def numbering(self):
        """Assign global ids to surfaces, edges, cells, faces and nodes"""
        from .numbering import numberGrid

        numberGrid(self)

    def clearNumbering(self):
        """Drop the global ids of every block. They are recomputed by the
        next call to numbering()."""
        for blk in self.blocks:
            blk.cellIds = None
            blk.nodeIds = None
            blk.faceIds = None
        self.totalNodes = 0
        self.totalEdges = 0
        self.totalSurfaces = 0

    # ----------------------------------------
    # Queries
    # ----------------------------------------
    def block(self, n):
        """Return block 'n' (1-based)"""
        if 1 <= n <= len(self.blocks):
            return self.blocks[n - 1]
        raise RangeError('"%d" is not a valid 1-based block index.' % n, block=n)

    def nBlock(self):
        return len(self.blocks)

    def oneToOneEntries(self):
        return [entry for entry in self.entries if isinstance(entry, DoubleSideEntry)]

    def nCell(self):
        return sum(blk.getNumCells() for blk in self.blocks)

    def nFace(self):
        """Total faces, counting each one-to-one interface once"""
        ret = sum(blk.getNumFaces() for blk in self.blocks)
        for entry in self.oneToOneEntries():
            ret -= entry.range1.faceNum()
        return ret

    def nInteriorFace(self):
        ret = sum(blk.getNumInteriorFaces() for blk in self.blocks)
        return ret + sum(entry.range1.faceNum() for entry in self.oneToOneEntries())

    def nBoundaryFace(self):
        ret = sum(blk.getNumSurfaceFaces() for blk in self.blocks)
        return ret - 2 * sum(entry.range1.faceNum() for entry in self.oneToOneEntries())

    def nNode(self):
        """Total nodes after merging interfaces. Available after numbering."""
        return self.totalNodes

    def nEdge(self):
        """Total frame edges after merging interfaces. Available after numbering."""
        return self.totalEdges

    def printInfo(self):
        """Print block, entry and face counts"""
        print("Total Blocks:", self.nBlock())
        print("One-to-one Interfaces:", len(self.oneToOneEntries()))
        print("Boundary Entries:", len(self.entries) - len(self.oneToOneEntries()))
        print("Total Cells:", self.nCell())
        print("Total Faces:", self.nFace())
        print("Interior Faces:", self.nInteriorFace())
        print("Boundary Faces:", self.nBoundaryFace())
        if self.totalNodes:
            print("Total Nodes:", self.nNode())
            print("Total Frame Edges:", self.nEdge())


def scaleTolerance(tol, *coords):
    """Scale an absolute tolerance by the largest coordinate magnitude of
    the given arrays. Tolerances are never scaled down."""
    scale = max([1.0] + [float(numpy.abs(X).max()) for X in coords if X.size])
    return tol * scale


def _toInt(token, lineNo):
    try:
        return int(token)
    except ValueError:
        raise ParseError('Line %d: "%s" is not an integer.' % (lineNo, token)) from None


def _checkRange(blocks, rg, iEntry):
    """Check that a range refers to an existing block and surface and that
    it fits on that surface"""
    if not 1 <= rg.B <= len(blocks):
        raise RangeError('"%d" is not a valid 1-based block index.' % rg.B, block=rg.B, entry=iEntry)
    if not 1 <= rg.F <= Block.NumOfSurf:
        raise RangeError(
            '"%d" is not a valid 1-based surface index for a block.' % rg.F, block=rg.B, surface=rg.F, entry=iEntry
        )

    nPri, nSec = blocks[rg.B - 1].surfaceDims(rg.F)
    for low, high, top, name in ((rg.priLow, rg.priHigh, nPri, "primary"), (rg.secLow, rg.secHigh, nSec, "secondary")):
        if low < 1 or high > top:
            raise RangeError(
                "Range %d-%d exceeds the %s direction of the surface (1-%d)" % (low, high, name, top),
                block=rg.B,
                surface=rg.F,
                entry=iEntry,
            )
        if low == high:
            raise RangeError(
                "Range is empty along the %s direction" % name, block=rg.B, surface=rg.F, entry=iEntry
            )


checkIncidence()
