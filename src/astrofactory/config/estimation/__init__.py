from ..core import SetupBase

from .light_propagation import LightTimeSetup
from .links import LinkDefinitionSetup, LinkEndSetup
from .observation_models import BiasSetup, ObservableSetup, ViabilitySetup


class EstimationSetup(SetupBase):

    light_propagation: LightTimeSetup
    links: dict[str, LinkDefinitionSetup]
    observables: list[ObservableSetup]
    viability: list[ViabilitySetup] = ()


__all__ = [
    "EstimationSetup",
    "LightTimeSetup",
    "LinkDefinitionSetup",
    "LinkEndSetup",
    "BiasSetup",
    "ObservableSetup",
    "ViabilitySetup",
]
