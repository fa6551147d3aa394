"""
Assembly of a numbered multiblock grid into a flat unstructured
hexahedral mesh.

Every face carries 4 node ids ordered so that its normal (right-hand rule)
points from the right cell towards the left cell, together with the ids of
both cells. Boundary faces have a right cell only; their left cell is 0.
"""
from collections import namedtuple
import numpy

from .errors import RangeError, TopologyError
from .nmf import Mapping, SingleSideEntry, scaleTolerance, surfaceView
from .plot3d import readPlot3d

# Cell-local node numbers (1-8) of the 6 faces of a hexahedron. Local face
# n lies on block surface n. Normals point out of the cell.
FACE_NODES = {
    1: (1, 5, 8, 4),
    2: (2, 3, 7, 6),
    3: (6, 5, 1, 2),
    4: (3, 4, 8, 7),
    5: (4, 3, 2, 1),
    6: (8, 5, 6, 7),
}

Node = namedtuple("Node", ["nodeId", "coords"])
Face = namedtuple("Face", ["faceId", "nodes", "leftCell", "rightCell", "boundary", "bcType"])
Cell = namedtuple("Cell", ["cellId", "nodes", "faces"])


def _faceNodeIndex(iFace):
    return [n - 1 for n in FACE_NODES[iFace]]


class FaceLedger(object):
    """Tracks how often every face has been visited while walking the cells
    of the grid. A face goes UNSEEN -> PARTIAL on its first visit and
    PARTIAL -> RESOLVED on its second. Boundary faces stay PARTIAL."""

    UNSEEN = 0
    PARTIAL = 1
    RESOLVED = 2

    def __init__(self, nFace):
        self.nFace = nFace
        # Index 0 is unused so face ids can index directly
        self.state = numpy.zeros(nFace + 1, "int8")
        self.boundary = numpy.zeros(nFace + 1, bool)
        self.rightCell = numpy.zeros(nFace + 1, "intp")
        self.leftCell = numpy.zeros(nFace + 1, "intp")
        self.nodes = numpy.zeros((nFace + 1, 4), "intp")

    def record(self, faceIds, cellIds, nodes=None, boundary=False, block=None, surface=None):
        """Record a visit of cells 'cellIds' to faces 'faceIds'. On a first
        visit the face takes 'nodes' and the visiting cell becomes its right
        cell. A second visit sets whichever of left/right is still empty."""
        faceIds = numpy.asarray(faceIds).ravel()
        cellIds = numpy.asarray(cellIds).ravel()
        boundary = numpy.broadcast_to(numpy.asarray(boundary, bool).ravel(), faceIds.shape)
        if len(faceIds) == 0:
            return

        if faceIds.min() < 1 or faceIds.max() > self.nFace:
            raise TopologyError("Invalid face id encountered", block=block, surface=surface)
        if len(numpy.unique(faceIds)) != len(faceIds):
            raise TopologyError("Face visited twice by the same pass", block=block, surface=surface)

        state = self.state[faceIds]
        if numpy.any(state == self.RESOLVED):
            raise TopologyError("Double-sided face visited more than twice", block=block, surface=surface)
        if numpy.any((state == self.PARTIAL) & (boundary | self.boundary[faceIds])):
            raise TopologyError("Boundary face visited twice", block=block, surface=surface)

        first = state == self.UNSEEN
        if numpy.any(first):
            if nodes is None:
                raise TopologyError("Node list missing for first visit of a face", block=block, surface=surface)
            nodes = numpy.asarray(nodes).reshape(-1, 4)
            ids = faceIds[first]
            self.rightCell[ids] = cellIds[first]
            self.nodes[ids] = nodes[first]
            self.boundary[ids] = boundary[first]
            self.state[ids] = self.PARTIAL

        second = ~first
        if numpy.any(second):
            ids = faceIds[second]
            cells = cellIds[second]
            if numpy.any(self.rightCell[ids] == cells):
                raise TopologyError("Face has the same cell on both sides", block=block, surface=surface)
            emptyRight = self.rightCell[ids] == 0
            self.rightCell[ids[emptyRight]] = cells[emptyRight]
            self.leftCell[ids[~emptyRight]] = cells[~emptyRight]
            self.state[ids] = self.RESOLVED

    def check(self):
        """Every face must have been visited, and every non-boundary face
        twice"""
        unseen = numpy.nonzero(self.state[1:] == self.UNSEEN)[0]
        if len(unseen):
            raise TopologyError("Face %d was never visited" % (unseen[0] + 1))
        partial = numpy.nonzero((self.state[1:] == self.PARTIAL) & ~self.boundary[1:])[0]
        if len(partial):
            raise TopologyError("Double-sided face %d visited only once" % (partial[0] + 1))


class Mesh(object):
    """Flat hexahedral mesh with 1-based node, face and cell ids. Arrays are
    0-based: entity n is stored at row n-1."""

    def __init__(self, nNode, nFace, nCell):
        self.nNode = nNode
        self.nFace = nFace
        self.nCell = nCell

        self.nodes = numpy.full((nNode, 3), numpy.nan)
        self.faceNodes = numpy.zeros((nFace, 4), "intp")
        self.leftCell = numpy.zeros(nFace, "intp")
        self.rightCell = numpy.zeros(nFace, "intp")
        self.boundary = numpy.zeros(nFace, bool)
        self.faceBC = numpy.zeros(nFace, "intp")
        self.cellNodes = numpy.zeros((nCell, 8), "intp")
        self.cellFaces = numpy.zeros((nCell, 6), "intp")

    def _check(self, n, total, name):
        if not 1 <= n <= total:
            raise RangeError('"%d" is not a valid 1-based %s index.' % (n, name))

    def node(self, n):
        self._check(n, self.nNode, "node")
        return Node(n, self.nodes[n - 1].copy())

    def face(self, n):
        self._check(n, self.nFace, "face")
        return Face(
            n,
            tuple(int(i) for i in self.faceNodes[n - 1]),
            int(self.leftCell[n - 1]),
            int(self.rightCell[n - 1]),
            bool(self.boundary[n - 1]),
            int(self.faceBC[n - 1]),
        )

    def cell(self, n):
        self._check(n, self.nCell, "cell")
        return Cell(n, tuple(int(i) for i in self.cellNodes[n - 1]), tuple(int(i) for i in self.cellFaces[n - 1]))

    def getNumBoundaryFaces(self):
        return int(self.boundary.sum())

    def getNumInteriorFaces(self):
        return self.nFace - self.getNumBoundaryFaces()

    def computeFaceGeometry(self):
        """Return face centers and area vectors. The area vector of a quad
        is half the cross product of its diagonals and points towards the
        left cell."""
        X = self.nodes[self.faceNodes - 1]
        centers = X.mean(axis=1)
        areas = 0.5 * numpy.cross(X[:, 2] - X[:, 0], X[:, 3] - X[:, 1])
        return centers, areas

    def computeCellCenters(self):
        return self.nodes[self.cellNodes - 1].mean(axis=1)

    def printInfo(self):
        """Print entity counts"""
        print("Total Nodes:", self.nNode)
        print("Total Cells:", self.nCell)
        print("Total Faces:", self.nFace)
        print("Interior Faces:", self.getNumInteriorFaces())
        print("Boundary Faces:", self.getNumBoundaryFaces())
        missing = int((self.boundary & (self.faceBC == 0)).sum())
        if missing:
            print("Warning: %d boundary faces have no boundary condition" % missing)

    def writeFluent(self, fileName, title=None):
        from .fluent import writeFluent

        return writeFluent(self, fileName, title)


def assemble(mapping, tol=1e-12):
    """Build the flat mesh of a numbered mapping"""
    if any(blk.cellIds is None for blk in mapping.blocks):
        mapping.numbering()

    mesh = Mesh(mapping.nNode(), mapping.nFace(), mapping.nCell())
    ledger = FaceLedger(mesh.nFace)

    for blk in mapping.blocks:
        C = blk.cellIds
        H = blk.cellNodeIds()
        F = blk.cellFaceIds()

        cells = C.ravel(order="F") - 1
        mesh.cellNodes[cells] = H.reshape((-1, 8), order="F")
        mesh.cellFaces[cells] = F.reshape((-1, 6), order="F")

        # Interior faces: the upper cell sees the face as its min face
        for iDim in range(3):
            cur = [slice(None)] * 3
            adj = [slice(None)] * 3
            cur[iDim] = slice(1, None)
            adj[iDim] = slice(None, -1)
            cur, adj = tuple(cur), tuple(adj)
            faces = F[cur][..., 2 * iDim]
            nodes = H[cur][..., _faceNodeIndex(2 * iDim + 1)]
            ledger.record(
                faces.ravel(order="F"), C[cur].ravel(order="F"), nodes.reshape((-1, 4), order="F"), block=blk.index
            )
            ledger.record(faces.ravel(order="F"), C[adj].ravel(order="F"), block=blk.index)

        for iSurf in range(1, 7):
            faces = blk.surfaceFaces(iSurf)
            cells = blk.surfaceCells(iSurf)
            nodes = surfaceView(H, iSurf)[..., _faceNodeIndex(iSurf)]
            boundary = ~mapping.interfaceMask(blk.index, iSurf)
            ledger.record(
                faces.ravel(order="F"),
                cells.ravel(order="F"),
                nodes.reshape((-1, 4), order="F"),
                boundary.ravel(order="F"),
                block=blk.index,
                surface=iSurf,
            )

    ledger.check()
    mesh.faceNodes[:] = ledger.nodes[1:]
    mesh.leftCell[:] = ledger.leftCell[1:]
    mesh.rightCell[:] = ledger.rightCell[1:]
    mesh.boundary[:] = ledger.boundary[1:]

    _assignBoundaryConditions(mapping, mesh)
    _assignCoordinates(mapping, mesh, tol)
    return mesh


def _assignBoundaryConditions(mapping, mesh):
    for iEntry, entry in enumerate(mapping.entries):
        if not isinstance(entry, SingleSideEntry):
            continue
        rg = entry.range1
        ids = mapping.block(rg.B).surfaceFaces(rg.F)[rg.cellWindow()].ravel() - 1
        if numpy.any(mesh.faceBC[ids] != 0):
            raise TopologyError("Boundary condition ranges overlap", block=rg.B, surface=rg.F, entry=iEntry + 1)
        mesh.faceBC[ids] = entry.type


def _assignCoordinates(mapping, mesh, tol):
    """Copy block coordinates to the mesh nodes. The first block to reach
    a node sets its coordinates; later blocks must agree with it within
    the tolerance."""
    written = numpy.zeros(mesh.nNode, bool)
    for blk in mapping.blocks:
        if blk.coords is None:
            continue
        ids = blk.nodeIds.ravel(order="F") - 1
        X = blk.coords.reshape((-1, 3), order="F")
        ids, first = numpy.unique(ids, return_index=True)
        X = X[first]

        old = written[ids]
        diff = numpy.abs(mesh.nodes[ids[old]] - X[old])
        scaledTol = scaleTolerance(tol, X)
        if len(diff) and diff.max() > scaledTol:
            raise TopologyError(
                "%d shared nodes differ by up to %g from earlier blocks"
                % (int((diff.max(axis=1) > scaledTol).sum()), diff.max()),
                block=blk.index,
            )

        new = ids[~old]
        mesh.nodes[new] = X[~old]
        written[new] = True


def convert(nmfFile, plot3dFile, tol=1e-12):
    """Read a neutral map file and its plot3d grid and return the glued
    mesh"""
    mapping = Mapping(nmfFile)
    coords = readPlot3d(plot3dFile)
    mapping.setCoordinates(coords, tol)
    mapping.numbering()
    return assemble(mapping, tol)
