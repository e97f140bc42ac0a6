from .base import AnalysisState
from .bivariate.dialog import BivariateDialog
from .two_independent_samples.dialog import TwoIndependentSamplesDialog
from .variable_selection import Bucket, VariablePartition

__all__ = [
    "AnalysisState",
    "BivariateDialog",
    "TwoIndependentSamplesDialog",
    "Bucket",
    "VariablePartition",
]
