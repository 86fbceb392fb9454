from .core import SetupBase
from .general import CaseSetup

__all__ = ["SetupBase", "CaseSetup"]
