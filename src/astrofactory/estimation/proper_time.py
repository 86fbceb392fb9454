import typing
import numpy as np
from ..environment import SystemOfBodies
from ..errors import (
    InvalidLinkEndTopologyError,
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
    UnsupportedError,
)
from ..logging import log
from .light_time import SPEED_OF_LIGHT, StateFunction, get_link_end_state_function
from .links import LinkEnds, LinkEndType, body_origin_link_end_id
from .settings import (
    DopplerProperTimeRateSettings,
    DopplerProperTimeRateType,
    DirectFirstOrderDopplerProperTimeRateSettings,
)


class DopplerProperTimeRateInterface:

    def __init__(self, link_end_type: LinkEndType) -> None:

        self.link_end_type = link_end_type

        return None

    def proper_time_rate_difference(
        self, time: float, link_end_state: np.ndarray
    ) -> float:
        """Deviation of d(tau)/dt from one at the link end."""
        raise NotImplementedError


class DirectFirstOrderDopplerProperTimeRateInterface(DopplerProperTimeRateInterface):

    def __init__(
        self,
        link_end_type: LinkEndType,
        gravitational_parameter_function: typing.Callable[[], float],
        central_body_name: str,
        central_body_state_function: StateFunction,
    ) -> None:

        super().__init__(link_end_type)
        self.gravitational_parameter_function = gravitational_parameter_function
        self.central_body_name = central_body_name
        self.central_body_state_function = central_body_state_function

        return None

    def proper_time_rate_difference(
        self, time: float, link_end_state: np.ndarray
    ) -> float:

        relative_state = np.asarray(
            link_end_state, dtype=float
        ) - self.central_body_state_function(time)
        distance = np.linalg.norm(relative_state[:3])
        speed_squared = np.dot(relative_state[3:], relative_state[3:])

        return float(
            -(0.5 * speed_squared + self.gravitational_parameter_function() / distance)
            / SPEED_OF_LIGHT**2
        )


def create_one_way_doppler_proper_time_calculator(
    settings: DopplerProperTimeRateSettings | None,
    link_ends: LinkEnds,
    bodies: SystemOfBodies,
    link_end_for_calculator: LinkEndType,
) -> DopplerProperTimeRateInterface | None:

    # No settings, no proper time contribution
    if settings is None:
        return None

    match settings.proper_time_rate_type:

        case DopplerProperTimeRateType.direct_first_order_doppler_proper_time_rate:

            if not isinstance(settings, DirectFirstOrderDopplerProperTimeRateSettings):
                raise InvalidSettingsError(
                    "Error when making proper time rate calculator, input type "
                    "(direct_first_order_doppler_proper_time_rate) is inconsistent"
                )

            if link_end_for_calculator not in link_ends:
                raise InvalidLinkEndTopologyError(
                    "Error when creating one-way Doppler proper time calculator, "
                    f"did not find link end {link_end_for_calculator.name}"
                )

            central_body_name = settings.central_body_name
            log.debug(
                f"Direct first order proper time rate :: "
                f"{link_end_for_calculator.name} w.r.t. {central_body_name}"
            )

            if (
                not bodies.does_body_exist(central_body_name)
                or bodies.get(central_body_name).gravity_field_model is None
            ):
                raise MissingEnvironmentModelError(
                    "Error when making direct first order proper time rate "
                    f"calculator, no gravity field found for {central_body_name}"
                )

            central_body_id = body_origin_link_end_id(central_body_name)
            if central_body_id in (
                link_ends.get(LinkEndType.transmitter),
                link_ends.get(LinkEndType.receiver),
            ):
                raise UnsupportedError(
                    "Error, proper time reference point as link end not yet "
                    "implemented for proper time rate calculator creation"
                )

            # Read from the environment on every call
            central_body = bodies.get(central_body_name)

            def gravitational_parameter() -> float:
                return central_body.gravity_field_model.gravitational_parameter

            return DirectFirstOrderDopplerProperTimeRateInterface(
                link_end_for_calculator,
                gravitational_parameter,
                central_body_name,
                get_link_end_state_function(central_body_id, bodies),
            )

        case _:
            raise UnrecognizedTypeError(
                "Error when creating one-way Doppler proper time calculator, "
                f"did not recognize type {settings.proper_time_rate_type}"
            )
