from ..core import SetupBase
from ...estimation.settings import LightTimeFailureHandling


class RelativisticCorrectionSetup(SetupBase):

    model: str
    bodies: list[str]
    present: bool = True


class LightTimeCorrectionsSetup(SetupBase):

    relativistic: RelativisticCorrectionSetup
    present: bool = True


class LightTimeConvergenceSetup(SetupBase):

    iterate_corrections: bool = False
    max_iterations: int = 50
    tolerance: float = 1.0e-12
    on_failure: LightTimeFailureHandling = (
        LightTimeFailureHandling.accept_without_warning
    )
    present: bool = True


class LightTimeSetup(SetupBase):

    corrections: LightTimeCorrectionsSetup
    convergence: LightTimeConvergenceSetup
    present: bool = True
