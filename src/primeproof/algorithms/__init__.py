from .aks import AKSTest
from .base import PrimalityTest, TestInfo, Verdict
from .fermat import FermatTest
from .miller_rabin import MillerRabinTest
from .trial_division import TrialDivisionTest

__all__ = [
    "AKSTest",
    "FermatTest",
    "MillerRabinTest",
    "PrimalityTest",
    "TestInfo",
    "TrialDivisionTest",
    "Verdict",
]
