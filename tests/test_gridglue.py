import os
import re
import subprocess
import tempfile
import unittest
from parameterized import parameterized
import numpy as np
from baseclasses import BaseRegTest
from gridglue.errors import InconsistentGridError, ParseError, TopologyError
from gridglue.fluent import faceZones, writeFluent
from gridglue.mesh import FaceLedger, assemble, convert
from gridglue.nmf import BC, DoubleSideEntry, HexCell, Mapping, Orientation, Range
from gridglue.plot3d import cartesianCoords, readPlot3d, writePlot3d

baseDir = os.path.dirname(os.path.abspath(__file__))
exampleDir = os.path.abspath(os.path.join(baseDir, "../examples"))


def sideBySide(dims=(3, 3, 3), rg2=None):
    """Two unit boxes glued I-max to I-min"""
    il, jl, kl = dims
    if rg2 is None:
        rg2 = Range(2, 1, 1, jl, 1, kl)
    mapping = Mapping()
    mapping.addBlock(dims)
    mapping.addBlock(dims)
    mapping.addEntry(DoubleSideEntry(Range(1, 2, 1, jl, 1, kl), rg2, False))
    mapping.computeTopology()
    coords = [cartesianCoords(dims), cartesianCoords(dims, origin=(1.0, 0.0, 0.0))]
    return mapping, coords


def fourAroundAnEdge():
    """Four unit cubes of 2x2x2 nodes sharing the K edge through (1, 1)"""
    mapping = Mapping()
    coords = []
    for origin in [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 1.0, 0.0)]:
        mapping.addBlock([2, 2, 2])
        coords.append(cartesianCoords([2, 2, 2], origin=origin))
    for b1, s1, b2, s2 in [(1, 2, 2, 1), (3, 2, 4, 1), (1, 4, 3, 3), (2, 4, 4, 3)]:
        mapping.addEntry(DoubleSideEntry(Range(b1, s1, 1, 2, 1, 2), Range(b2, s2, 1, 2, 1, 2), False))
    mapping.computeTopology()
    return mapping, coords


class TestNumbering(unittest.TestCase):
    def test_singleBlock(self):
        mapping = Mapping()
        mapping.addBlock([2, 2, 2])
        mapping.computeTopology()
        mapping.numbering()

        self.assertEqual(mapping.nNode(), 8)
        self.assertEqual(mapping.nFace(), 6)
        self.assertEqual(mapping.nEdge(), 12)
        self.assertEqual(mapping.totalSurfaces, 6)
        cell = mapping.block(1).cell(1, 1, 1)
        self.assertEqual(cell, HexCell(1, (1, 2, 4, 3, 5, 6, 8, 7), (1, 2, 3, 4, 5, 6)))
        self.assertEqual(mapping.block(1).nodeIndex(2, 2, 2), 8)

        mesh = assemble(mapping)
        self.assertEqual(mesh.nFace, 6)
        self.assertTrue(mesh.boundary.all())
        self.assertTrue((mesh.leftCell == 0).all())
        self.assertTrue((mesh.rightCell == 1).all())

    @parameterized.expand([((2, 2, 2),), ((3, 3, 3),), ((4, 3, 5),)])
    def test_sideBySide(self, dims):
        mapping, _ = sideBySide(dims)
        mapping.numbering()
        il, jl, kl = dims
        blk1, blk2 = mapping.blocks

        self.assertEqual(mapping.nNode(), 2 * il * jl * kl - jl * kl)
        self.assertEqual(mapping.nFace(), 2 * blk1.getNumFaces() - (jl - 1) * (kl - 1))
        self.assertEqual(mapping.nEdge(), 20)
        self.assertEqual(mapping.totalSurfaces, 11)
        np.testing.assert_array_equal(blk1.surfaceFaces(2), blk2.surfaceFaces(1))
        np.testing.assert_array_equal(blk1.surfaceNodes(2), blk2.surfaceNodes(1))

        # Cells and faces are numbered without gaps
        allCells = np.concatenate([blk.cellIds.ravel() for blk in mapping.blocks])
        np.testing.assert_array_equal(np.sort(allCells), np.arange(1, mapping.nCell() + 1))
        allFaces = np.concatenate([f.ravel() for blk in mapping.blocks for f in blk.faceIds])
        np.testing.assert_array_equal(np.unique(allFaces), np.arange(1, mapping.nFace() + 1))

    def test_fourAroundAnEdge(self):
        mapping, _ = fourAroundAnEdge()
        mapping.numbering()

        self.assertEqual(mapping.nCell(), 4)
        self.assertEqual(mapping.nFace(), 20)
        self.assertEqual(mapping.nNode(), 18)
        self.assertEqual(mapping.nEdge(), 33)
        self.assertEqual(mapping.totalSurfaces, 20)

        # The shared K edge has one color in all four blocks
        colors = {mapping.block(1).edge(11).globalId}
        colors.add(mapping.block(2).edge(12).globalId)
        colors.add(mapping.block(3).edge(10).globalId)
        colors.add(mapping.block(4).edge(9).globalId)
        self.assertEqual(len(colors), 1)

        # As does the node at its lower end
        nodes = {
            mapping.block(1).nodeIndex(2, 2, 1),
            mapping.block(2).nodeIndex(1, 2, 1),
            mapping.block(3).nodeIndex(2, 1, 1),
            mapping.block(4).nodeIndex(1, 1, 1),
        }
        self.assertEqual(len(nodes), 1)

    def test_partialInterface(self):
        mapping = Mapping()
        mapping.addBlock([3, 3, 3])
        mapping.addBlock([3, 2, 3])
        mapping.addEntry(DoubleSideEntry(Range(1, 2, 1, 2, 1, 3), Range(2, 1, 1, 2, 1, 3), False))
        mapping.computeTopology()
        coords = [cartesianCoords([3, 3, 3]), cartesianCoords([3, 2, 3], (1.0, 0.0, 0.0), (1.0, 0.5, 1.0))]
        mapping.setCoordinates(coords)
        mapping.numbering()

        self.assertEqual(mapping.nFace(), 54)
        self.assertEqual(mapping.nNode(), 39)
        self.assertEqual(mapping.nEdge(), 23)
        self.assertFalse(mapping.interfaceMask(1, 2)[1].any())

    def test_periodic(self):
        mapping = Mapping()
        mapping.addBlock([3, 2, 2])
        mapping.addEntry(DoubleSideEntry(Range(1, 1, 1, 2, 1, 2), Range(1, 2, 1, 2, 1, 2), False))
        mapping.computeTopology()
        mapping.numbering()

        self.assertEqual(mapping.nFace(), 10)
        self.assertEqual(mapping.nNode(), 8)
        self.assertEqual(mapping.nEdge(), 8)
        self.assertEqual(mapping.totalSurfaces, 5)
        mesh = assemble(mapping)
        shared = mesh.face(int(mapping.block(1).surfaceFaces(1)[0, 0]))
        self.assertEqual((shared.rightCell, shared.leftCell), (1, 2))

    def test_twoCubes(self):
        mapping, coords = sideBySide((2, 2, 2))
        mapping.setCoordinates(coords)
        mesh = assemble(mapping)

        self.assertEqual((mesh.nCell, mesh.nNode, mesh.nFace), (2, 12, 11))
        self.assertEqual(mesh.getNumInteriorFaces(), 1)
        shared = mesh.face(int(np.nonzero(~mesh.boundary)[0][0]) + 1)
        self.assertEqual(sorted([shared.leftCell, shared.rightCell]), [1, 2])

    def test_idempotent(self):
        mapping, coords = fourAroundAnEdge()
        mapping.setCoordinates(coords)
        mapping.numbering()
        first = [(blk.cellIds.copy(), blk.nodeIds.copy(), [f.copy() for f in blk.faceIds]) for blk in mapping.blocks]
        edges = [edge.globalId for blk in mapping.blocks for edge in blk.edges]

        mapping.numbering()
        for blk, (cellIds, nodeIds, faceIds) in zip(mapping.blocks, first):
            np.testing.assert_array_equal(blk.cellIds, cellIds)
            np.testing.assert_array_equal(blk.nodeIds, nodeIds)
            for new, old in zip(blk.faceIds, faceIds):
                np.testing.assert_array_equal(new, old)
        self.assertEqual([edge.globalId for blk in mapping.blocks for edge in blk.edges], edges)

        mesh1 = assemble(mapping)
        mapping.numbering()
        mesh2 = assemble(mapping)
        for name in ["faceNodes", "leftCell", "rightCell", "cellNodes", "cellFaces", "nodes"]:
            np.testing.assert_array_equal(getattr(mesh1, name), getattr(mesh2, name))


class TestOrientation(unittest.TestCase):
    def test_correctedFromCoordinates(self):
        # Declared reversed along J while the nodes line up straight
        mapping, coords = sideBySide((3, 3, 3), rg2=Range(2, 1, 3, 1, 1, 3))
        self.assertEqual(mapping.orientations[0], Orientation(False, True, False))
        mapping.setCoordinates(coords)
        self.assertEqual(mapping.orientations[0], Orientation(False, False, False))

        mapping.numbering()
        mesh = assemble(mapping)
        self.assertEqual(mesh.nNode, 45)
        self.assertFalse(np.isnan(mesh.nodes).any())

    def test_correctedAfterNumbering(self):
        mapping, coords = sideBySide((3, 3, 3), rg2=Range(2, 1, 3, 1, 1, 3))
        mapping.numbering()
        mapping.setCoordinates(coords)
        self.assertIsNone(mapping.block(1).faceIds)

        mesh = assemble(mapping)
        self.assertEqual(mesh.nNode, 45)
        centers, areas = mesh.computeFaceGeometry()
        cellCenters = mesh.computeCellCenters()
        interior = ~mesh.boundary
        toLeft = cellCenters[mesh.leftCell[interior] - 1] - cellCenters[mesh.rightCell[interior] - 1]
        self.assertTrue((np.sum(areas[interior] * toLeft, axis=1) > 0).all())

    def test_largeCoordinates(self):
        mapping, coords = sideBySide((3, 3, 3))
        coords = [X * 1e4 for X in coords]
        coords[1] += 5e-11
        mapping.setCoordinates(coords)
        self.assertEqual(mapping.orientations[0], Orientation(False, False, False))
        mesh = assemble(mapping)
        self.assertEqual(mesh.nNode, 45)

    def test_declaredKept(self):
        mapping = Mapping(os.path.join(exampleDir, "swapped_blocks.nmf"))
        mapping.setCoordinates(readPlot3d(os.path.join(exampleDir, "swapped_blocks.xyz")))
        self.assertEqual(mapping.orientations[0], Orientation(True, False, True))

    def test_noMatch(self):
        mapping, coords = sideBySide((3, 3, 3))
        coords[1][:, :, :, 0] += 0.5
        with self.assertRaises(TopologyError):
            mapping.setCoordinates(coords)

    def test_ambiguous(self):
        # Flat interface along y: only the K direction can be told apart
        mapping, _ = sideBySide((3, 3, 3), rg2=Range(2, 1, 1, 3, 3, 1))
        coords = [
            cartesianCoords([3, 3, 3], lengths=(1.0, 0.0, 1.0)),
            cartesianCoords([3, 3, 3], (1.0, 0.0, 0.0), (1.0, 0.0, 1.0)),
        ]
        with self.assertRaises(TopologyError):
            mapping.setCoordinates(coords)

    def test_inconsistentGrid(self):
        mapping, coords = sideBySide((3, 3, 3))
        with self.assertRaises(InconsistentGridError):
            mapping.setCoordinates(coords[:1])
        with self.assertRaises(InconsistentGridError):
            mapping.setCoordinates([coords[0], cartesianCoords([3, 4, 3])])


class TestFaceLedger(unittest.TestCase):
    def setUp(self):
        self.ledger = FaceLedger(3)

    def test_twoVisits(self):
        self.ledger.record([1], [5], [[1, 2, 3, 4]])
        self.assertEqual(self.ledger.state[1], FaceLedger.PARTIAL)
        self.assertEqual(self.ledger.rightCell[1], 5)
        self.ledger.record([1], [6])
        self.assertEqual(self.ledger.state[1], FaceLedger.RESOLVED)
        self.assertEqual(self.ledger.leftCell[1], 6)
        np.testing.assert_array_equal(self.ledger.nodes[1], [1, 2, 3, 4])

    def test_thirdVisit(self):
        self.ledger.record([1], [5], [[1, 2, 3, 4]])
        self.ledger.record([1], [6])
        with self.assertRaisesRegex(TopologyError, "more than twice"):
            self.ledger.record([1], [7])

    def test_boundaryTwice(self):
        self.ledger.record([2], [5], [[1, 2, 3, 4]], True)
        with self.assertRaisesRegex(TopologyError, "Boundary face visited twice"):
            self.ledger.record([2], [6])

    def test_sameCell(self):
        self.ledger.record([3], [5], [[1, 2, 3, 4]])
        with self.assertRaises(TopologyError):
            self.ledger.record([3], [5])

    def test_check(self):
        self.ledger.record([1, 2], [5, 5], [[1, 2, 3, 4], [5, 6, 7, 8]], [True, True])
        with self.assertRaisesRegex(TopologyError, "never visited"):
            self.ledger.check()
        self.ledger.record([3], [5], [[1, 2, 3, 4]])
        with self.assertRaisesRegex(TopologyError, "only once"):
            self.ledger.check()
        self.ledger.record([3], [6])
        self.ledger.check()


class TestAssembly(unittest.TestCase):
    def setUp(self):
        self.mesh = convert(os.path.join(exampleDir, "two_blocks.nmf"), os.path.join(exampleDir, "two_blocks.xyz"))

    def test_totals(self, train=False):
        refFile = os.path.join(baseDir, "ref", "two_blocks_totals.ref")
        with BaseRegTest(refFile, train=train) as handler:
            handler.root_add_val("Total nodes", self.mesh.nNode, tol=0)
            handler.root_add_val("Total cells", self.mesh.nCell, tol=0)
            handler.root_add_val("Total faces", self.mesh.nFace, tol=0)
            handler.root_add_val("Interior faces", self.mesh.getNumInteriorFaces(), tol=0)
            handler.root_add_val("Boundary faces", self.mesh.getNumBoundaryFaces(), tol=0)

    def train_totals(self):
        self.test_totals(train=True)

    def test_cells(self):
        mesh = self.mesh
        self.assertTrue((mesh.rightCell > 0).all())
        self.assertTrue((mesh.leftCell[mesh.boundary] == 0).all())
        interior = ~mesh.boundary
        self.assertTrue((mesh.leftCell[interior] > 0).all())
        self.assertTrue((mesh.leftCell[interior] != mesh.rightCell[interior]).all())

        # Every cell has 6 distinct faces that point back at it
        for n in range(1, mesh.nCell + 1):
            cell = mesh.cell(n)
            self.assertEqual(len(set(cell.faces)), 6)
            self.assertEqual(len(set(cell.nodes)), 8)
            for iFace in cell.faces:
                face = mesh.face(iFace)
                self.assertIn(n, (face.leftCell, face.rightCell))

    def test_normals(self):
        mesh = self.mesh
        centers, areas = mesh.computeFaceGeometry()
        cellCenters = mesh.computeCellCenters()

        interior = ~mesh.boundary
        toLeft = cellCenters[mesh.leftCell[interior] - 1] - cellCenters[mesh.rightCell[interior] - 1]
        self.assertTrue((np.sum(areas[interior] * toLeft, axis=1) > 0).all())

        outward = centers[mesh.boundary] - cellCenters[mesh.rightCell[mesh.boundary] - 1]
        self.assertTrue((np.sum(areas[mesh.boundary] * outward, axis=1) > 0).all())

        # Every cell is closed
        total = np.zeros((mesh.nCell, 3))
        np.add.at(total, mesh.rightCell - 1, areas)
        np.add.at(total, mesh.leftCell[interior] - 1, -areas[interior])
        np.testing.assert_allclose(total, 0.0, atol=1e-12)
        np.testing.assert_allclose(np.linalg.norm(areas, axis=1), 0.25)

    def test_boundaryConditions(self):
        faceBC = self.mesh.faceBC[self.mesh.boundary]
        self.assertEqual((faceBC == BC["INFLOW"]).sum(), 4)
        self.assertEqual((faceBC == BC["OUTFLOW"]).sum(), 4)
        self.assertEqual((faceBC == BC["SYM"]).sum(), 16)
        self.assertEqual((faceBC == BC["WALL"]).sum(), 16)
        self.assertTrue((self.mesh.faceBC[~self.mesh.boundary] == 0).all())

    def test_coordinates(self):
        nodes = self.mesh.nodes
        self.assertFalse(np.isnan(nodes).any())
        np.testing.assert_allclose(nodes.min(axis=0), [0.0, 0.0, 0.0])
        np.testing.assert_allclose(nodes.max(axis=0), [2.0, 1.0, 1.0])
        self.assertEqual(len(np.unique(nodes, axis=0)), self.mesh.nNode)

    def test_accessors(self):
        node = self.mesh.node(1)
        np.testing.assert_allclose(node.coords, [0.0, 0.0, 0.0])
        with self.assertRaises(IndexError):
            self.mesh.node(0)
        with self.assertRaises(IndexError):
            self.mesh.face(self.mesh.nFace + 1)

    def test_swappedBlocks(self):
        mesh = convert(
            os.path.join(exampleDir, "swapped_blocks.nmf"), os.path.join(exampleDir, "swapped_blocks.xyz")
        )
        self.assertEqual(mesh.nNode, 100)
        self.assertEqual(mesh.nCell, 48)
        self.assertEqual(mesh.nFace, 184)
        self.assertEqual(mesh.getNumInteriorFaces(), 2 * 46 + 12)
        self.assertEqual(len(np.unique(mesh.nodes, axis=0)), 100)

        centers, areas = mesh.computeFaceGeometry()
        cellCenters = mesh.computeCellCenters()
        interior = ~mesh.boundary
        toLeft = cellCenters[mesh.leftCell[interior] - 1] - cellCenters[mesh.rightCell[interior] - 1]
        self.assertTrue((np.sum(areas[interior] * toLeft, axis=1) > 0).all())


class TestTopologyErrors(unittest.TestCase):
    def setUp(self):
        self.mapping, coords = sideBySide((3, 3, 3))
        self.mapping.setCoordinates(coords)
        self.mapping.numbering()

    def test_thirdVisit(self):
        blk2 = self.mapping.block(2)
        blk2.surfaceFaces(2)[0, 0] = blk2.surfaceFaces(1)[0, 0]
        with self.assertRaisesRegex(TopologyError, "more than twice"):
            assemble(self.mapping)

    def test_boundaryTwice(self):
        blk1 = self.mapping.block(1)
        blk1.surfaceFaces(1)[0, 0] = blk1.surfaceFaces(3)[0, 0]
        with self.assertRaisesRegex(TopologyError, "Boundary face visited twice"):
            assemble(self.mapping)

    def test_coordinatesDiffer(self):
        blk2 = self.mapping.block(2)
        blk2.coords = blk2.coords.copy()
        blk2.coords[:, :, :, 1] += 0.1
        with self.assertRaisesRegex(TopologyError, "shared nodes differ"):
            assemble(self.mapping)


class TestPlot3d(unittest.TestCase):
    def test_writeRead(self):
        coords = [cartesianCoords([2, 3, 4]), cartesianCoords([3, 2, 2], (1.0, -1.0, 0.5), (0.3, 2.0, 1.0))]
        with tempfile.TemporaryDirectory() as dirName:
            fileName = os.path.join(dirName, "grid.xyz")
            writePlot3d(fileName, coords)
            newCoords = readPlot3d(fileName)

        self.assertEqual(len(newCoords), 2)
        for X, newX in zip(coords, newCoords):
            self.assertEqual(X.shape, newX.shape)
            np.testing.assert_allclose(X, newX, atol=1e-14)

    @parameterized.expand(
        [
            ("empty", ""),
            ("header", "x\n"),
            ("dims", "1\n2 2\n"),
            ("tooFew", "1\n2 2 2\n0.0 1.0\n"),
            ("notNumber", "1\n1 1 1\n0.0 a 1.0\n"),
        ]
    )
    def test_parseError(self, _, text):
        with tempfile.TemporaryDirectory() as dirName:
            fileName = os.path.join(dirName, "grid.xyz")
            with open(fileName, "w") as f:
                f.write(text)
            with self.assertRaises(ParseError):
                readPlot3d(fileName)

    def test_notTextFile(self):
        with tempfile.TemporaryDirectory() as dirName:
            fileName = os.path.join(dirName, "grid.xyz")
            with open(fileName, "wb") as f:
                f.write(b"1\n2 2 2\n\xff\xfe\x00\x01")
            with self.assertRaises(ParseError):
                readPlot3d(fileName)


class TestFluent(unittest.TestCase):
    def setUp(self):
        self.mesh = convert(os.path.join(exampleDir, "two_blocks.nmf"), os.path.join(exampleDir, "two_blocks.xyz"))

    def test_faceZones(self):
        zones = faceZones(self.mesh)
        self.assertEqual([zone[0] for zone in zones], [3, 4, 5, 6, 7])
        self.assertEqual(zones[0][1:3], (2, "interior"))
        self.assertEqual(len(zones[0][3]), 28)
        self.assertEqual([zone[2] for zone in zones[1:]], ["wall", "sym", "inflow", "outflow"])
        self.assertEqual(sum(len(zone[3]) for zone in zones), self.mesh.nFace)

    def test_writeFluent(self):
        with tempfile.TemporaryDirectory() as dirName:
            fileName = os.path.join(dirName, "two_blocks.msh")
            writeFluent(self.mesh, fileName)
            with open(fileName, "r") as f:
                lines = f.read().splitlines()

        self.assertTrue(lines[0].startswith('(0 "Grid-Glue'))
        self.assertIn("(10 (0 1 %x 0 3))" % self.mesh.nNode, lines)
        self.assertIn("(12 (0 1 %x 0 0))" % self.mesh.nCell, lines)
        self.assertIn("(13 (0 1 %x 0 0))" % self.mesh.nFace, lines)
        self.assertIn("(12 (2 1 %x 1 4))" % self.mesh.nCell, lines)

        # Face sections cover 1..nFace without gaps
        headers = [re.match(r"^\(13 \((\w+) (\w+) (\w+) (\w+) 4\)\($", line) for line in lines]
        headers = [[int(g, 16) for g in m.groups()] for m in headers if m]
        self.assertEqual(headers[0][3], 2)
        self.assertEqual(headers[0][1], 1)
        self.assertEqual(headers[-1][2], self.mesh.nFace)
        for prev, cur in zip(headers[:-1], headers[1:]):
            self.assertEqual(cur[1], prev[2] + 1)

        # 4 nodes and 2 cells on every face line
        start = lines.index("(13 (3 1 %x 2 4)(" % 28)
        for line in lines[start + 1 : start + 29]:
            self.assertEqual(len(line.split()), 6)
        self.assertEqual(sum(line.startswith("(45 ") for line in lines), 6)


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.nmfFile = os.path.join(exampleDir, "two_blocks.nmf")
        self.plot3dFile = os.path.join(exampleDir, "two_blocks.xyz")

    def test_convert(self):
        with tempfile.TemporaryDirectory() as dirName:
            outFile = os.path.join(dirName, "two_blocks.msh")
            cmd = "grid_glue convert %s %s %s" % (self.nmfFile, self.plot3dFile, outFile)
            out = subprocess.run(cmd, shell=True)
            self.assertFalse(out.returncode)
            self.assertTrue(os.path.isfile(outFile))

    def test_info(self):
        cmd = "grid_glue info %s %s" % (self.nmfFile, self.plot3dFile)
        out = subprocess.run(cmd, shell=True, capture_output=True, text=True)
        self.assertFalse(out.returncode)
        self.assertIn("Total Nodes: 45", out.stdout)

    def test_nmf(self):
        with tempfile.TemporaryDirectory() as dirName:
            outFile = os.path.join(dirName, "copy.nmf")
            out = subprocess.run("grid_glue nmf %s %s" % (self.nmfFile, outFile), shell=True)
            self.assertFalse(out.returncode)
            self.assertEqual(Mapping(outFile).nFace(), Mapping(self.nmfFile).nFace())

    def test_testBlock(self):
        with tempfile.TemporaryDirectory() as dirName:
            nmfFile = os.path.join(dirName, "block.nmf")
            plot3dFile = os.path.join(dirName, "block.xyz")
            out = subprocess.run("grid_glue testBlock 3 4 5 %s %s" % (nmfFile, plot3dFile), shell=True)
            self.assertFalse(out.returncode)
            mesh = convert(nmfFile, plot3dFile)

        self.assertEqual(mesh.nCell, 24)
        self.assertEqual(mesh.nNode, 60)
        self.assertFalse((mesh.faceBC[mesh.boundary] == 0).any())

    def test_error(self):
        with tempfile.TemporaryDirectory() as dirName:
            badFile = os.path.join(dirName, "bad.nmf")
            with open(badFile, "w") as f:
                f.write("1\n1 2 2 2\nFARFIELD 1 1 1 2 1 2\n")
            cmd = "grid_glue convert %s %s %s" % (badFile, self.plot3dFile, os.path.join(dirName, "bad.msh"))
            out = subprocess.run(cmd, shell=True, capture_output=True, text=True)
            self.assertEqual(out.returncode, 1)
            self.assertIn("Error", out.stdout)


class TestExamples(unittest.TestCase):

    # Get all example scripts in the example folder and its subfolders
    examples = []
    for root, _, files in os.walk(exampleDir):
        for file in files:
            if file.endswith(".sh"):
                # Note: we cd into dir as each script assumes to be run in current folder
                cmd = f"cd {root} && bash {file}"
                examples.append([file, cmd])

    # Generate a custom test function name for each script that will be run
    def generateFuncName(testcase_func, _, param):
        return "{}_{}".format(
            testcase_func.__name__,
            parameterized.to_safe_name(param.args[0]),
        )

    @parameterized.expand(examples, name_func=generateFuncName)
    def test_example(self, _, cmd):
        """
        Run all example scripts from the examples folder. This only
        checks that they run.
        """
        out = subprocess.run(cmd, shell=True)
        self.assertFalse(out.returncode)


if __name__ == "__main__":
    unittest.main()
