class InvalidParameter(ValueError):
    """Simulation parameter, cell value or configuration failed validation."""
    def __init__(self, message="Invalid simulation parameter."):
        super().__init__(message)

class OutOfBounds(IndexError):
    """Cell coordinate outside the lattice."""
    def __init__(self, message="Cell coordinate outside lattice bounds."):
        super().__init__(message)

class DimensionMismatch(ValueError):
    """Grids, layers or metric vectors with differing dimensions."""
    def __init__(self, message="Dimensions do not match."):
        super().__init__(message)
