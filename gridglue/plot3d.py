"""
Reading and writing of multiblock ASCII plot3d grid files.

The file holds the number of blocks, the node dimensions of every block and
then, block after block, all x, all y and all z coordinates with the I index
varying fastest. Coordinates are handed around as one (nI, nJ, nK, 3) array
per block.
"""
import numpy

from .errors import ParseError


def readPlot3d(fileName):
    """Read an ASCII plot3d file and return the list of block coordinate
    arrays"""
    try:
        with open(fileName, "r") as f:
            tokens = f.read().split()
    except UnicodeDecodeError:
        raise ParseError("Plot3d file %s is not a text file" % fileName) from None

    if not tokens:
        raise ParseError("Plot3d file %s is empty" % fileName)

    try:
        nBlock = int(tokens[0])
    except ValueError:
        raise ParseError('Plot3d file %s: "%s" is not a num of blocks' % (fileName, tokens[0])) from None
    if nBlock <= 0 or len(tokens) < 1 + 3 * nBlock:
        raise ParseError("Plot3d file %s has an invalid header" % fileName)

    try:
        dims = numpy.array([int(t) for t in tokens[1 : 1 + 3 * nBlock]]).reshape((nBlock, 3))
        values = numpy.array(tokens[1 + 3 * nBlock :], dtype="d")
    except ValueError as e:
        raise ParseError("Failed to read plot3d file %s: %s" % (fileName, e)) from None

    if numpy.any(dims < 1):
        raise ParseError("Plot3d file %s has non-positive block dimensions" % fileName)

    nExpected = 3 * int(numpy.prod(dims, axis=1).sum())
    if len(values) != nExpected:
        raise ParseError("Plot3d file %s holds %d coordinates, expected %d" % (fileName, len(values), nExpected))

    coords = []
    offset = 0
    for il, jl, kl in dims:
        n = il * jl * kl
        X = numpy.zeros((il, jl, kl, 3))
        for iDim in range(3):
            X[:, :, :, iDim] = values[offset : offset + n].reshape((il, jl, kl), order="F")
            offset += n
        coords.append(X)

    return coords


def writePlot3d(fileName, coords):
    """Write a list of (nI, nJ, nK, 3) coordinate arrays to an ASCII plot3d
    file"""
    with open(fileName, "w") as f:
        f.write("%d\n" % len(coords))
        for X in coords:
            f.write("%d %d %d\n" % X.shape[:3])
        for X in coords:
            for iDim in range(3):
                X[:, :, :, iDim].flatten("F").tofile(f, sep="\n", format="%20.15g")
                f.write("\n")


def cartesianCoords(dims, origin=(0.0, 0.0, 0.0), lengths=(1.0, 1.0, 1.0)):
    """Coordinates of a uniform box-shaped block with 'dims' nodes"""
    X = numpy.zeros((dims[0], dims[1], dims[2], 3))
    Xcart = []
    for iDim in range(3):
        Xcart.append(numpy.linspace(origin[iDim], origin[iDim] + lengths[iDim], dims[iDim]))
    Xx, Xy, Xz = numpy.meshgrid(Xcart[0], Xcart[1], Xcart[2], indexing="ij")
    X[:, :, :, 0] = Xx
    X[:, :, :, 1] = Xy
    X[:, :, :, 2] = Xz
    return X
