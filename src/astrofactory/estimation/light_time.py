import typing
import numpy as np
from ..environment import SystemOfBodies
from ..errors import (
    InvalidSettingsError,
    LightTimeConvergenceError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
)
from ..logging import log
from .links import LinkEndId
from .settings import (
    LightTimeCorrectionSettings,
    LightTimeCorrectionType,
    FirstOrderRelativisticLightTimeCorrectionSettings,
    CustomLightTimeCorrectionSettings,
    LightTimeConvergenceCriteria,
    LightTimeFailureHandling,
)

SPEED_OF_LIGHT = 299792458.0

type StateFunction = typing.Callable[[float], np.ndarray]


def get_link_end_state_function(
    link_end: LinkEndId, bodies: SystemOfBodies
) -> StateFunction:

    if not bodies.does_body_exist(link_end.body_name):
        raise MissingEnvironmentModelError(
            f"Body {link_end.body_name} of link end {link_end} not found"
        )
    body = bodies.get(link_end.body_name)
    if body.ephemeris is None:
        raise MissingEnvironmentModelError(
            f"No ephemeris found for link end {link_end}"
        )

    def body_state(time: float) -> np.ndarray:
        return bodies.state_in_base_frame_from_ephemeris(link_end.body_name, time)

    if link_end.is_body_origin:
        return body_state

    # Reference points are ground stations fixed to the rotating body
    station = body.get_ground_station(link_end.reference_point)
    rotation = body.rotational_ephemeris
    if rotation is None:
        raise MissingEnvironmentModelError(
            f"No rotation model found for {link_end.body_name}, required by "
            f"ground station {link_end.reference_point}"
        )

    def station_state(time: float) -> np.ndarray:

        position = rotation.rotation_to_base_frame(time) @ np.asarray(
            station.nominal_position, dtype=float
        )
        velocity = np.cross(rotation.angular_velocity_in_base_frame(time), position)

        return body_state(time) + np.concatenate((position, velocity))

    return station_state


class LightTimeCorrection:

    def __call__(
        self,
        transmitter_state: np.ndarray,
        receiver_state: np.ndarray,
        transmission_time: float,
        reception_time: float,
    ) -> float:
        raise NotImplementedError


class FirstOrderRelativisticLightTimeCorrection(LightTimeCorrection):

    def __init__(
        self,
        gravitational_parameter_functions: list[typing.Callable[[], float]],
        perturbing_body_state_functions: list[StateFunction],
        ppn_gamma: float = 1.0,
    ) -> None:

        self.gravitational_parameter_functions = gravitational_parameter_functions
        self.perturbing_body_state_functions = perturbing_body_state_functions
        self.ppn_gamma = ppn_gamma

        return None

    def __call__(
        self,
        transmitter_state: np.ndarray,
        receiver_state: np.ndarray,
        transmission_time: float,
        reception_time: float,
    ) -> float:

        correction = 0.0
        evaluation_time = 0.5 * (transmission_time + reception_time)
        distance = np.linalg.norm(receiver_state[:3] - transmitter_state[:3])

        for mu_function, state_function in zip(
            self.gravitational_parameter_functions,
            self.perturbing_body_state_functions,
        ):

            perturber_position = state_function(evaluation_time)[:3]
            r_transmitter = np.linalg.norm(transmitter_state[:3] - perturber_position)
            r_receiver = np.linalg.norm(receiver_state[:3] - perturber_position)

            correction += (
                (1.0 + self.ppn_gamma)
                * mu_function()
                / SPEED_OF_LIGHT**3
                * np.log(
                    (r_transmitter + r_receiver + distance)
                    / (r_transmitter + r_receiver - distance)
                )
            )

        return float(correction)


class CustomLightTimeCorrection(LightTimeCorrection):

    def __init__(self, correction_function: typing.Callable[..., float]) -> None:

        self.correction_function = correction_function

        return None

    def __call__(
        self,
        transmitter_state: np.ndarray,
        receiver_state: np.ndarray,
        transmission_time: float,
        reception_time: float,
    ) -> float:
        return float(
            self.correction_function(
                transmitter_state, receiver_state, transmission_time, reception_time
            )
        )


def create_light_time_correction(
    settings: LightTimeCorrectionSettings, bodies: SystemOfBodies
) -> LightTimeCorrection:

    match settings.correction_type:

        case LightTimeCorrectionType.first_order_relativistic:

            if not isinstance(
                settings, FirstOrderRelativisticLightTimeCorrectionSettings
            ):
                raise InvalidSettingsError(
                    "Inconsistent settings for relativistic light-time correction"
                )
            log.debug(
                "First order relativistic correction :: "
                f"{', '.join(settings.perturbing_bodies)}"
            )

            mu_functions: list[typing.Callable[[], float]] = []
            state_functions: list[StateFunction] = []
            for name in settings.perturbing_bodies:

                body = bodies.get(name)
                if body.gravity_field_model is None:
                    raise MissingEnvironmentModelError(
                        f"No gravity field found for {name}, required by "
                        "relativistic light-time correction"
                    )

                # Bind body in default arguments to read the current model
                mu_functions.append(
                    lambda body=body: body.gravity_field_model.gravitational_parameter
                )
                state_functions.append(
                    lambda time, name=name: bodies.state_in_base_frame_from_ephemeris(
                        name, time
                    )
                )

            return FirstOrderRelativisticLightTimeCorrection(
                mu_functions, state_functions
            )

        case LightTimeCorrectionType.custom:

            if not isinstance(settings, CustomLightTimeCorrectionSettings):
                raise InvalidSettingsError(
                    "Inconsistent settings for custom light-time correction"
                )
            log.debug("Custom light-time correction")

            return CustomLightTimeCorrection(settings.correction_function)

        case _:
            raise UnrecognizedTypeError(
                f"Invalid light-time correction: {settings.correction_type}"
            )


class LightTimeCalculator:

    def __init__(
        self,
        transmitter_state_function: StateFunction,
        receiver_state_function: StateFunction,
        corrections: list[LightTimeCorrection] | None = None,
        convergence: LightTimeConvergenceCriteria | None = None,
    ) -> None:

        self.transmitter_state_function = transmitter_state_function
        self.receiver_state_function = receiver_state_function
        self.corrections = corrections or []
        self.convergence = convergence or LightTimeConvergenceCriteria()

        return None

    def _total_correction(
        self,
        transmitter_state: np.ndarray,
        receiver_state: np.ndarray,
        transmission_time: float,
        reception_time: float,
    ) -> float:
        return sum(
            correction(
                transmitter_state, receiver_state, transmission_time, reception_time
            )
            for correction in self.corrections
        )

    def calculate_light_time_with_link_ends_states(
        self, observation_time: float, is_time_at_reception: bool = True
    ) -> tuple[float, tuple[float, float], np.ndarray, np.ndarray]:
        """Light time and link end times/states for an observation time.

        Returns ``(light_time, (transmission_time, reception_time),
        transmitter_state, receiver_state)``.
        """

        # Fixed link end, and first guess for the other one
        if is_time_at_reception:
            reception_time = observation_time
            receiver_state = self.receiver_state_function(reception_time)
            transmission_time = observation_time
            transmitter_state = self.transmitter_state_function(transmission_time)
        else:
            transmission_time = observation_time
            transmitter_state = self.transmitter_state_function(transmission_time)
            reception_time = observation_time
            receiver_state = self.receiver_state_function(reception_time)

        light_time = 0.0
        converged = False
        for _ in range(self.convergence.maximum_number_of_iterations):

            new_light_time = (
                np.linalg.norm(receiver_state[:3] - transmitter_state[:3])
                / SPEED_OF_LIGHT
            )
            if self.convergence.iterate_corrections:
                new_light_time += self._total_correction(
                    transmitter_state, receiver_state, transmission_time, reception_time
                )

            # Update moving link end
            if is_time_at_reception:
                transmission_time = reception_time - new_light_time
                transmitter_state = self.transmitter_state_function(transmission_time)
            else:
                reception_time = transmission_time + new_light_time
                receiver_state = self.receiver_state_function(reception_time)

            if abs(new_light_time - light_time) < self.convergence.tolerance:
                light_time = new_light_time
                converged = True
                break
            light_time = new_light_time

        if not converged:

            message = (
                "Light-time calculation did not converge after "
                f"{self.convergence.maximum_number_of_iterations} iterations"
            )
            match self.convergence.failure_handling:
                case LightTimeFailureHandling.throw_exception:
                    raise LightTimeConvergenceError(message)
                case LightTimeFailureHandling.print_warning_and_accept:
                    log.warning(message)
                case _:
                    pass

        if not self.convergence.iterate_corrections:
            light_time += self._total_correction(
                transmitter_state, receiver_state, transmission_time, reception_time
            )

        return (
            float(light_time),
            (transmission_time, reception_time),
            transmitter_state,
            receiver_state,
        )

    def calculate_light_time(
        self, observation_time: float, is_time_at_reception: bool = True
    ) -> float:
        return self.calculate_light_time_with_link_ends_states(
            observation_time, is_time_at_reception
        )[0]


def create_light_time_calculator(
    transmitter: LinkEndId,
    receiver: LinkEndId,
    bodies: SystemOfBodies,
    light_time_corrections: typing.Sequence[LightTimeCorrectionSettings] = (),
    convergence: LightTimeConvergenceCriteria | None = None,
) -> LightTimeCalculator:

    log.debug(f"Light-time calculator :: {transmitter} -> {receiver}")

    return LightTimeCalculator(
        get_link_end_state_function(transmitter, bodies),
        get_link_end_state_function(receiver, bodies),
        [
            create_light_time_correction(correction, bodies)
            for correction in light_time_corrections
        ],
        convergence,
    )
