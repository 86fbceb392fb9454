from ..core import SetupBase
from ...estimation.links import LinkEndType, ObservableType
from ...estimation.settings import ObservationBiasTypes, ObservationViabilityType
from .links import LinkEndSetup
import numpy as np


class BiasSetup(SetupBase):

    type: ObservationBiasTypes
    # Constant biases
    value: np.ndarray
    # Arc-wise biases
    arc_start_times: list[float] = ()
    arc_values: list[np.ndarray] = ()
    time_link_end: LinkEndType = LinkEndType.receiver


class ObservableSetup(SetupBase):

    observable: ObservableType
    link: str
    biases: list[BiasSetup] = ()
    # Doppler observables
    proper_time_central_body: str = ""
    # Differenced range
    integration_time: float = 60.0
    # n-way range
    retransmission_delays: list[float] = ()


class ViabilitySetup(SetupBase):

    type: ObservationViabilityType
    link_end: LinkEndSetup
    body: str = ""
    # Degrees
    angle: float = 0.0
