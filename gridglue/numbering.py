"""
Global numbering of a multiblock grid.

Surfaces and frame edges get a color shared by every block entity that
coincides across one-to-one interfaces. Cells, faces and nodes get 1-based
global ids stored on each Block as Fortran-ordered arrays. Faces and nodes
lying on a one-to-one interface receive one id shared by both sides.
"""
from collections import deque
import numpy

from .errors import TopologyError
from .nmf import SURFACE_EDGES, DoubleSideEntry, edgeSide, sideEdge


def numberGrid(mapping):
    """Number every entity of a mapping. Previous ids are discarded, so
    calling this twice gives identical results."""
    numberSurfaces(mapping)
    linkEdges(mapping)
    numberEdges(mapping)
    numberCells(mapping)
    numberFaces(mapping)
    numberNodes(mapping)


def numberSurfaces(mapping):
    """Give linked surfaces the same global id"""
    for blk in mapping.blocks:
        for surf in blk.surfs:
            surf.globalId = 0

    cnt = 0
    for blk in mapping.blocks:
        for surf in blk.surfs:
            if surf.globalId:
                continue
            cnt += 1
            surf.globalId = cnt
            if surf.neighbour is not None:
                blk2, iSurf2 = surf.neighbour
                mapping.block(blk2).surf(iSurf2).globalId = cnt

    mapping.totalSurfaces = cnt
    return cnt


def _coversSide(blk, rg, axis, end):
    """Check if a range lies along the whole of one side of its surface"""
    nPri, nSec = blk.surfaceDims(rg.F)
    if axis == 0:
        onSide = rg.priLow == 1 if end == 0 else rg.priHigh == nPri
        full = rg.secLow == 1 and rg.secHigh == nSec
    else:
        onSide = rg.secLow == 1 if end == 0 else rg.secHigh == nSec
        full = rg.priLow == 1 and rg.priHigh == nPri
    return onSide and full


def linkEdges(mapping):
    """Find the counterpart of every frame edge across the one-to-one
    interfaces. An edge is only linked when the interface spans the whole
    edge on both sides."""
    for blk in mapping.blocks:
        for surf in blk.surfs:
            surf.counterpartEdges = {}

    for iEntry, entry in enumerate(mapping.entries):
        if not isinstance(entry, DoubleSideEntry):
            continue

        orient = mapping.orientations[iEntry]
        rg1, rg2 = entry.range1, entry.range2
        blk1, blk2 = mapping.block(rg1.B), mapping.block(rg2.B)
        for iEdge in SURFACE_EDGES[rg1.F]:
            axis, end = edgeSide(rg1.F, iEdge)
            if not _coversSide(blk1, rg1, axis, end):
                continue

            axis2, end2 = orient.mapSide(axis, end)
            if not _coversSide(blk2, rg2, axis2, end2):
                continue

            iEdge2 = sideEdge(rg2.F, axis2, end2)
            blk1.surf(rg1.F).counterpartEdges[iEdge] = (rg2.B, iEdge2)
            blk2.surf(rg2.F).counterpartEdges[iEdge2] = (rg1.B, iEdge)


def numberEdges(mapping):
    """Color frame edges by breadth-first traversal across linked surfaces"""
    for blk in mapping.blocks:
        for edge in blk.edges:
            edge.globalId = 0

    cnt = 0
    for blk in mapping.blocks:
        for edge in blk.edges:
            if edge.globalId:
                continue

            cnt += 1
            edge.globalId = cnt
            q = deque([(blk.index, edge.index)])
            while q:
                iBlk, iEdge = q.popleft()
                cur = mapping.block(iBlk).edge(iEdge)
                if len(cur.surfaces) != 2:
                    raise TopologyError("Edge %d must have exactly 2 dependent surfaces" % iEdge, block=iBlk)

                for iSurf in cur.surfaces:
                    surf = mapping.block(iBlk).surf(iSurf)
                    if surf.neighbour is None or iEdge not in surf.counterpartEdges:
                        continue
                    iBlk2, iEdge2 = surf.counterpartEdges[iEdge]
                    other = mapping.block(iBlk2).edge(iEdge2)
                    if other.globalId == 0:
                        other.globalId = cnt
                        q.append((iBlk2, iEdge2))
                    elif other.globalId != cnt:
                        raise TopologyError(
                            "Edge %d already has color %d, not %d" % (iEdge2, other.globalId, cnt), block=iBlk2
                        )

    mapping.totalEdges = cnt
    return cnt


def numberCells(mapping):
    """Cells are numbered block by block, I fastest"""
    cnt = 0
    for blk in mapping.blocks:
        n = blk.getNumCells()
        shape = [d - 1 for d in blk.dims]
        blk.cellIds = numpy.arange(cnt + 1, cnt + n + 1).reshape(shape, order="F")
        cnt += n

    if cnt != mapping.nCell():
        raise TopologyError("Inconsistent num of cells detected: %d numbered, %d expected" % (cnt, mapping.nCell()))
    return cnt


def _interfaceWindows(mapping, entry, orient, kind):
    """Return the windows of both sides of a one-to-one interface and the
    offsets (A, B) on side 2 matching every offset of side 1. 'kind' is
    'faces' or 'nodes'."""
    rg1, rg2 = entry.range1, entry.range2
    blk1, blk2 = mapping.block(rg1.B), mapping.block(rg2.B)
    if kind == "faces":
        W1 = blk1.surfaceFaces(rg1.F)[rg1.cellWindow()]
        W2 = blk2.surfaceFaces(rg2.F)[rg2.cellWindow()]
    else:
        W1 = blk1.surfaceNodes(rg1.F)[rg1.nodeWindow()]
        W2 = blk2.surfaceNodes(rg2.F)[rg2.nodeWindow()]

    U, V = numpy.meshgrid(numpy.arange(W1.shape[0]), numpy.arange(W1.shape[1]), indexing="ij")
    A, B = orient.map(U, V, W2.shape[0], W2.shape[1])
    return W1, W2, U, V, A, B


def _numberInterface(mapping, iEntry, side, cnt):
    """Number the faces of a one-to-one interface seen from 'side'. The
    first visitor allocates new ids and writes them to both sides; the
    second visitor must find them already in place."""
    entry = mapping.entries[iEntry]
    W1, W2, U, V, A, B = _interfaceWindows(mapping, entry, mapping.orientations[iEntry], "faces")
    if side == 1:
        cur, other = W1, W2[A, B]
    else:
        invU = numpy.empty(W2.shape, "intp")
        invV = numpy.empty(W2.shape, "intp")
        invU[A, B] = U
        invV[A, B] = V
        cur, other = W2, W1[invU, invV]

    missing = cur == 0
    if numpy.any(other[missing] != 0) or numpy.any(cur[~missing] != other[~missing]):
        raise TopologyError("Face ids differ across the one-to-one interface", entry=iEntry + 1)

    n = int(missing.sum())
    cur.T[missing.T] = numpy.arange(cnt + 1, cnt + n + 1)
    if side == 1:
        W2[A, B] = W1
    else:
        W1[invU, invV] = W2
    return cnt + n


def numberFaces(mapping):
    """Number interior faces of each block (I, then J, then K faces),
    followed by the faces on its 6 surfaces. Faces of a one-to-one
    interface are numbered by whichever side is reached first."""
    for blk in mapping.blocks:
        il, jl, kl = blk.dims
        blk.faceIds = [
            numpy.zeros((il, jl - 1, kl - 1), "intp"),
            numpy.zeros((il - 1, jl, kl - 1), "intp"),
            numpy.zeros((il - 1, jl - 1, kl), "intp"),
        ]

    cnt = 0
    claimed = []
    shared = []
    for blk in mapping.blocks:
        for iDim in range(3):
            sl = [slice(None)] * 3
            sl[iDim] = slice(1, -1)
            interior = blk.faceIds[iDim][tuple(sl)]
            n = interior.size
            interior[...] = numpy.arange(cnt + 1, cnt + n + 1).reshape(interior.shape, order="F")
            cnt += n
            claimed.append(interior.ravel())

        for iSurf in range(1, 7):
            faces = blk.surfaceFaces(iSurf)
            boundary = numpy.ones(faces.shape, bool)
            link = mapping.interfaceOf(blk.index, iSurf)
            if link is not None:
                iEntry, entry, side, _ = link
                window = entry.ranges()[side - 1].cellWindow()
                boundary[window] = False
                cnt = _numberInterface(mapping, iEntry, side, cnt)
                claimed.append(faces[window].ravel())
                shared.append(faces[window].ravel())

            if numpy.any(faces[boundary] != 0):
                raise TopologyError("Boundary face visited twice", block=blk.index, surface=iSurf)
            n = int(boundary.sum())
            faces.T[boundary.T] = numpy.arange(cnt + 1, cnt + n + 1)
            cnt += n
            claimed.append(faces[boundary].ravel())

    # Every id must be claimed once, or twice for interface faces
    claimed = numpy.concatenate(claimed)
    counts = numpy.bincount(claimed, minlength=cnt + 1)
    if counts[0]:
        raise TopologyError("%d faces were left without an id" % counts[0])
    isShared = numpy.zeros(cnt + 1, bool)
    if shared:
        isShared[numpy.concatenate(shared)] = True
    expected = numpy.where(isShared, 2, 1)
    expected[0] = 0
    bad = numpy.nonzero(counts != expected)[0]
    if len(bad):
        iFace = bad[0]
        if isShared[iFace]:
            raise TopologyError("Double-sided face %d visited %d times" % (iFace, counts[iFace]))
        raise TopologyError("Face %d visited %d times" % (iFace, counts[iFace]))

    if cnt != mapping.nFace():
        raise TopologyError("Inconsistent num of faces detected: %d numbered, %d expected" % (cnt, mapping.nFace()))
    return cnt


def numberNodes(mapping):
    """Merge coincident interface nodes with a connected-components pass
    over the node correspondences, then number the merged nodes in order
    of first appearance."""
    from scipy.sparse import coo_matrix
    from scipy.sparse.csgraph import connected_components

    offsets = []
    total = 0
    for blk in mapping.blocks:
        offsets.append(total)
        total += blk.getNumNodes()
        # Raw ids are used as stand-ins while building the correspondences
        blk.nodeIds = numpy.arange(total - blk.getNumNodes(), total).reshape(blk.dims, order="F")

    rows = [numpy.zeros(0, "intp")]
    cols = [numpy.zeros(0, "intp")]
    overcount = 0
    for iEntry, entry in enumerate(mapping.entries):
        if not isinstance(entry, DoubleSideEntry):
            continue
        W1, W2, _, _, A, B = _interfaceWindows(mapping, entry, mapping.orientations[iEntry], "nodes")
        rows.append(W1.ravel())
        cols.append(W2[A, B].ravel())
        overcount += entry.range1.nodeNum()

    rows = numpy.concatenate(rows)
    cols = numpy.concatenate(cols)
    graph = coo_matrix((numpy.ones(len(rows)), (rows, cols)), shape=(total, total))
    nComp, labels = connected_components(graph, directed=False)
    if nComp < total - overcount:
        raise TopologyError("Inconsistent num of nodes detected: %d merged, at least %d expected" % (nComp, total - overcount))

    # Relabel components in order of their first raw node
    _, first, inverse = numpy.unique(labels, return_index=True, return_inverse=True)
    rank = numpy.empty(len(first), "intp")
    rank[numpy.argsort(first)] = numpy.arange(len(first))
    globalIds = rank[inverse.ravel()] + 1

    for blk, offset in zip(mapping.blocks, offsets):
        blk.nodeIds = globalIds[offset : offset + blk.getNumNodes()].reshape(blk.dims, order="F")

    mapping.totalNodes = nComp
    return nComp

