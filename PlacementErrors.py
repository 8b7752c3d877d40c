class PlacementError(Exception):
    """Base class for every error raised by the school placement pipeline"""


class InvalidGeometry(PlacementError):
    """Polygon cannot support the requested computation (too few vertices, zero area)"""


class InvalidOptimizationInput(PlacementError, ValueError):
    """Structurally invalid optimize() arguments, rejected before any computation"""


class RegionNotFound(PlacementError, LookupError):
    def __init__(self, name, source=None):
        self.name = name
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Area '{name}' not found{where}")


class DataFormatError(PlacementError):
    """Input file does not have the expected structure"""
