"""
Error taxonomy for the tampering analysis core
"""


class TamperAnalysisError(Exception):
    """Base class. `stage` is filled in by the orchestrator when known."""

    def __init__(self, message):
        super().__init__(message)
        self.stage = None

    @property
    def kind(self):
        return type(self).__name__


class UnsupportedFormat(TamperAnalysisError, ValueError):
    """Unrecognized channel layout or sample range"""


class InvalidDimensions(TamperAnalysisError, ValueError):
    """Malformed matrix or grid input"""


class DimensionMismatch(TamperAnalysisError, ValueError):
    """Original and tampered inputs differ in size"""


class SingularSystem(TamperAnalysisError, ArithmeticError):
    """Gauss-Jordan pivot fell below tolerance"""

    def __init__(self, pivot_index, pivot_value=0.0):
        super().__init__(
            f"Singular or near-singular system at pivot {pivot_index} (|pivot| = {abs(pivot_value):.3e})"
        )
        self.pivot_index = pivot_index
        self.pivot_value = pivot_value


class ConvergenceFailure(TamperAnalysisError, ArithmeticError):
    """Jacobi eigenvalue iteration exceeded its sweep cap"""

    def __init__(self, sweeps, off_diagonal):
        super().__init__(
            f"Eigenvalue iteration did not converge after {sweeps} sweeps (off-diagonal norm {off_diagonal:.3e})"
        )
        self.sweeps = sweeps
        self.off_diagonal = off_diagonal
