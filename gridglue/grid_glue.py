"""
Command line gateway to the grid-glue tools.

Run grid_glue -h to get a list of all available options. The basic idea
is as follows:

read NMF + plot3d -> number and glue blocks -> | write Fluent mesh
                                               |     .or.
                                               | print grid summary
"""
import sys
import os
import shutil
import tempfile
import argparse

from .errors import GridGlueError
from .mesh import assemble, convert
from .nmf import BC, Mapping, Range, SingleSideEntry
from .plot3d import cartesianCoords, readPlot3d, writePlot3d


def get_parser():
    # List out all of the possible options here.
    parser = argparse.ArgumentParser(prog="grid_glue")

    subparsers = parser.add_subparsers(help="Choose one of the listed operations to perform", dest="mode")

    # ------------- Options for 'convert' mode --------------------
    p_convert = subparsers.add_parser("convert", help="Glue a multiblock grid into a Fluent mesh")
    p_convert.add_argument("nmfFile", help="Name of input neutral map file")
    p_convert.add_argument("plot3dFile", help="Name of input ASCII plot3d file")
    p_convert.add_argument("outFile", help="Name of output Fluent mesh file")
    p_convert.add_argument(
        "--tol", type=float, default=1e-12, help="Tolerance for coincident interface nodes. Default: %(default)s"
    )

    # ------------- Options for 'info' mode --------------------
    p_info = subparsers.add_parser("info", help="Print the block, face and node counts of a multiblock grid")
    p_info.add_argument("nmfFile", help="Name of input neutral map file")
    p_info.add_argument("plot3dFile", nargs="?", default=None, help="Optional ASCII plot3d file")
    p_info.add_argument(
        "--tol", type=float, default=1e-12, help="Tolerance for coincident interface nodes. Default: %(default)s"
    )

    # ------------- Options for 'nmf' mode --------------------
    p_nmf = subparsers.add_parser("nmf", help="Check a neutral map file and write it back in standard layout")
    p_nmf.add_argument("nmfFile", help="Name of input neutral map file")
    p_nmf.add_argument("outFile", nargs="?", default=None, help="Optional output file")

    # ------------ Options for 'testBlock' mode
    p_test = subparsers.add_parser(
        "testBlock", help="Creates a single block grid with specified dimensions. Used to quickly generate a test grid."
    )
    p_test.add_argument("nx", help="Number of nodes in x", type=int)
    p_test.add_argument("ny", help="Number of nodes in y", type=int)
    p_test.add_argument("nz", help="Number of nodes in z", type=int)
    p_test.add_argument("nmfFile", help="Name of output neutral map file")
    p_test.add_argument("plot3dFile", help="Name of output ASCII plot3d file")

    return parser


def testBlock(nx, ny, nz, nmfFile, plot3dFile):
    """Write a unit cube block with inflow, outflow, symmetry and wall
    boundaries"""
    mapping = Mapping()
    mapping.addBlock([nx, ny, nz])
    mapping.addEntry(SingleSideEntry(BC["INFLOW"], Range(1, 1, 1, ny, 1, nz)))
    mapping.addEntry(SingleSideEntry(BC["OUTFLOW"], Range(1, 2, 1, ny, 1, nz)))
    mapping.addEntry(SingleSideEntry(BC["SYM"], Range(1, 3, 1, nz, 1, nx)))
    mapping.addEntry(SingleSideEntry(BC["SYM"], Range(1, 4, 1, nz, 1, nx)))
    mapping.addEntry(SingleSideEntry(BC["WALL"], Range(1, 5, 1, nx, 1, ny)))
    mapping.addEntry(SingleSideEntry(BC["WALL"], Range(1, 6, 1, nx, 1, ny)))
    mapping.writeToFile(nmfFile)
    writePlot3d(plot3dFile, [cartesianCoords([nx, ny, nz])])


def main():
    parser = get_parser()
    # Get the arguments we need!
    args = parser.parse_args()

    if args.mode is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.mode == "testBlock":
            testBlock(args.nx, args.ny, args.nz, args.nmfFile, args.plot3dFile)

        elif args.mode == "convert":
            mesh = convert(args.nmfFile, args.plot3dFile, args.tol)
            mesh.printInfo()
            mesh.writeFluent(args.outFile)
            print("Wrote Fluent mesh to:")
            print(args.outFile)

        elif args.mode == "info":
            mapping = Mapping(args.nmfFile)
            if args.plot3dFile is not None:
                mapping.setCoordinates(readPlot3d(args.plot3dFile), args.tol)
            mapping.numbering()
            mapping.printInfo()
            if args.plot3dFile is not None:
                assemble(mapping, args.tol).printInfo()

        elif args.mode == "nmf":
            mapping = Mapping(args.nmfFile)
            mapping.numbering()
            if args.outFile is None:
                # Write to a temporary file first so the input survives a failure
                dirpath = tempfile.mkdtemp()
                outFileName = os.path.join(dirpath, "tmp.nmf")
                mapping.writeToFile(outFileName)
                shutil.copyfile(outFileName, args.nmfFile)
                shutil.rmtree(dirpath)
            else:
                mapping.writeToFile(args.outFile)

    except GridGlueError as e:
        print("Error: %s" % e)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
