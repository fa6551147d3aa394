"""
Exceptions raised while gluing a multiblock grid.

Every error is fatal for the current conversion. The optional ``block``,
``surface`` and ``entry`` attributes identify the offending item (1-based
block and surface indices, 1-based entry position in the map file).
"""


class GridGlueError(Exception):
    """Base class of all grid-glue errors"""

    def __init__(self, message, block=None, surface=None, entry=None):
        self.block = block
        self.surface = surface
        self.entry = entry

        where = []
        if entry is not None:
            where.append("entry %d" % entry)
        if block is not None:
            where.append("block %d" % block)
        if surface is not None:
            where.append("surface %d" % surface)
        if where:
            message = "%s (%s)" % (message, ", ".join(where))

        super().__init__(message)


class ParseError(GridGlueError, ValueError):
    """Malformed line or wrong number of tokens in an input file"""


class UnknownBoundaryConditionError(ParseError):
    """Boundary condition keyword outside of the supported vocabulary"""


class RangeError(GridGlueError, IndexError):
    """Out of range 1-based index into a block, or a reference to a
    block/surface that does not exist"""


class InconsistentGridError(GridGlueError, ValueError):
    """Block count or block dimensions differ between the map file and
    the coordinate file"""


class DuplicateLinkError(GridGlueError):
    """A surface is claimed by more than one one-to-one interface"""


class TopologyError(GridGlueError, RuntimeError):
    """A face, edge or node is visited more often than its topology
    permits, or an interface cannot be oriented consistently"""
