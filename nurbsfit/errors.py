import enum


class ErrorCode(enum.Enum):
    """Failure categories reported by the fitting and evaluation engine"""

    DEGENERATE_INPUT = "DegenerateInput"
    INVALID_DEGREE = "InvalidDegree"
    DIMENSION_MISMATCH = "DimensionMismatch"
    SINGULAR_SYSTEM = "SingularSystem"
    UNKNOWN_STRATEGY = "UnknownStrategy"


class NurbsError(ValueError):
    """Base class of all the errors raised by nurbsfit

    Every subclass carries an `ErrorCode` in its `code` attribute so that callers can
    dispatch on the category without matching on the exception type

    """

    code = None

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        if self.code is None:
            return self.message
        return f"[{self.code.value}] {self.message}"


class DegenerateInput(NurbsError):
    """Too few points, coincident points, empty knot vectors or non-positive weights"""

    code = ErrorCode.DEGENERATE_INPUT


class InvalidDegree(NurbsError):
    """Negative degree or degree not supported by the number of points"""

    code = ErrorCode.INVALID_DEGREE


class DimensionMismatch(NurbsError):
    """Incompatible array shapes in a multiply, transpose or solve"""

    code = ErrorCode.DIMENSION_MISMATCH


class SingularSystem(NurbsError):
    """The interpolation matrix could not be inverted"""

    code = ErrorCode.SINGULAR_SYSTEM


class UnknownStrategy(NurbsError):
    """Unrecognized parameterization or knot placement strategy"""

    code = ErrorCode.UNKNOWN_STRATEGY
