import typing
import numpy as np
from ..errors import InvalidLinkEndTopologyError, UnsupportedError
from .biases import ObservationBias
from .light_time import SPEED_OF_LIGHT, LightTimeCalculator, StateFunction
from .links import LinkEndType, ObservableType
from .proper_time import DopplerProperTimeRateInterface

type LinkEndData = tuple[np.ndarray, list[float], list[np.ndarray]]


def _is_time_at_reception(
    reference_link_end: LinkEndType, observable_type: ObservableType
) -> bool:

    match reference_link_end:
        case LinkEndType.receiver:
            return True
        case LinkEndType.transmitter:
            return False
        case _:
            raise InvalidLinkEndTopologyError(
                f"Reference link end {reference_link_end.name} not supported "
                f"for {observable_type.name}"
            )


class ObservationModel:

    def __init__(
        self,
        observable_type: ObservableType,
        observable_size: int,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        self.observable_type = observable_type
        self.observable_size = observable_size
        self.observation_bias = observation_bias

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time: float, reference_link_end: LinkEndType
    ) -> LinkEndData:
        raise NotImplementedError

    def compute_observations_with_link_end_data(
        self, time: float, reference_link_end: LinkEndType = LinkEndType.receiver
    ) -> LinkEndData:

        observation, link_end_times, link_end_states = (
            self.compute_ideal_observations_with_link_end_data(
                time, reference_link_end
            )
        )

        if self.observation_bias is not None:
            observation = observation + self.observation_bias.observation_bias(
                link_end_times, link_end_states, observation
            )

        return observation, link_end_times, link_end_states

    def compute_observations(
        self, time: float, reference_link_end: LinkEndType = LinkEndType.receiver
    ) -> np.ndarray:
        return self.compute_observations_with_link_end_data(time, reference_link_end)[
            0
        ]


class OneWayRangeObservationModel(ObservationModel):

    def __init__(
        self,
        light_time_calculator: LightTimeCalculator,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.one_way_range, 1, observation_bias)
        self.light_time_calculator = light_time_calculator

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        light_time, times, transmitter_state, receiver_state = (
            self.light_time_calculator.calculate_light_time_with_link_ends_states(
                time, _is_time_at_reception(reference_link_end, self.observable_type)
            )
        )

        return (
            np.array([light_time * SPEED_OF_LIGHT]),
            list(times),
            [transmitter_state, receiver_state],
        )


class OneWayDopplerObservationModel(ObservationModel):

    def __init__(
        self,
        light_time_calculator: LightTimeCalculator,
        transmitter_proper_time_rate: DopplerProperTimeRateInterface | None = None,
        receiver_proper_time_rate: DopplerProperTimeRateInterface | None = None,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.one_way_doppler, 1, observation_bias)
        self.light_time_calculator = light_time_calculator
        self.transmitter_proper_time_rate = transmitter_proper_time_rate
        self.receiver_proper_time_rate = receiver_proper_time_rate

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        _, times, transmitter_state, receiver_state = (
            self.light_time_calculator.calculate_light_time_with_link_ends_states(
                time, _is_time_at_reception(reference_link_end, self.observable_type)
            )
        )

        # First order Doppler from the line of sight velocities
        line_of_sight = receiver_state[:3] - transmitter_state[:3]
        line_of_sight = line_of_sight / np.linalg.norm(line_of_sight)
        frequency_ratio = (
            1.0 - np.dot(line_of_sight, receiver_state[3:]) / SPEED_OF_LIGHT
        ) / (1.0 - np.dot(line_of_sight, transmitter_state[3:]) / SPEED_OF_LIGHT)

        # Omitted proper time rates do not contribute
        transmitter_rate = 0.0
        if self.transmitter_proper_time_rate is not None:
            transmitter_rate = (
                self.transmitter_proper_time_rate.proper_time_rate_difference(
                    times[0], transmitter_state
                )
            )
        receiver_rate = 0.0
        if self.receiver_proper_time_rate is not None:
            receiver_rate = self.receiver_proper_time_rate.proper_time_rate_difference(
                times[1], receiver_state
            )

        observation = (
            frequency_ratio * (1.0 + transmitter_rate) / (1.0 + receiver_rate) - 1.0
        )

        return (
            np.array([observation]),
            list(times),
            [transmitter_state, receiver_state],
        )


class TwoWayDopplerObservationModel(ObservationModel):

    def __init__(
        self,
        uplink_model: OneWayDopplerObservationModel,
        downlink_model: OneWayDopplerObservationModel,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.two_way_doppler, 1, observation_bias)
        self.uplink_model = uplink_model
        self.downlink_model = downlink_model

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        match reference_link_end:

            case LinkEndType.receiver:
                downlink, down_times, down_states = (
                    self.downlink_model.compute_ideal_observations_with_link_end_data(
                        time, LinkEndType.receiver
                    )
                )
                uplink, up_times, up_states = (
                    self.uplink_model.compute_ideal_observations_with_link_end_data(
                        down_times[0], LinkEndType.receiver
                    )
                )

            case LinkEndType.transmitter:
                uplink, up_times, up_states = (
                    self.uplink_model.compute_ideal_observations_with_link_end_data(
                        time, LinkEndType.transmitter
                    )
                )
                downlink, down_times, down_states = (
                    self.downlink_model.compute_ideal_observations_with_link_end_data(
                        up_times[1], LinkEndType.transmitter
                    )
                )

            case LinkEndType.reflector1:
                uplink, up_times, up_states = (
                    self.uplink_model.compute_ideal_observations_with_link_end_data(
                        time, LinkEndType.receiver
                    )
                )
                downlink, down_times, down_states = (
                    self.downlink_model.compute_ideal_observations_with_link_end_data(
                        time, LinkEndType.transmitter
                    )
                )

            case _:
                raise InvalidLinkEndTopologyError(
                    f"Reference link end {reference_link_end.name} not supported "
                    "for two_way_doppler"
                )

        observation = (1.0 + uplink) * (1.0 + downlink) - 1.0

        return observation, up_times + down_times, up_states + down_states


class OneWayDifferencedRangeObservationModel(ObservationModel):

    def __init__(
        self,
        arc_start_light_time_calculator: LightTimeCalculator,
        arc_end_light_time_calculator: LightTimeCalculator,
        integration_time_function: typing.Callable[[float], float],
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.one_way_differenced_range, 1, observation_bias)
        self.arc_start_light_time_calculator = arc_start_light_time_calculator
        self.arc_end_light_time_calculator = arc_end_light_time_calculator
        self.integration_time_function = integration_time_function

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        at_reception = _is_time_at_reception(reference_link_end, self.observable_type)
        integration_time = self.integration_time_function(time)

        start_light_time, start_times, start_transmitter, start_receiver = (
            self.arc_start_light_time_calculator.calculate_light_time_with_link_ends_states(
                time - integration_time, at_reception
            )
        )
        end_light_time, end_times, end_transmitter, end_receiver = (
            self.arc_end_light_time_calculator.calculate_light_time_with_link_ends_states(
                time, at_reception
            )
        )

        observation = (
            (end_light_time - start_light_time) * SPEED_OF_LIGHT / integration_time
        )

        return (
            np.array([observation]),
            list(start_times) + list(end_times),
            [start_transmitter, start_receiver, end_transmitter, end_receiver],
        )


class NWayRangeObservationModel(ObservationModel):

    def __init__(
        self,
        light_time_calculators: list[LightTimeCalculator],
        retransmission_delays: typing.Callable[[float], list[float]] | None = None,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.n_way_range, 1, observation_bias)
        self.light_time_calculators = light_time_calculators
        self.retransmission_delays = retransmission_delays

        return None

    def _delays(self, time: float) -> list[float]:

        number_of_retransmitters = len(self.light_time_calculators) - 1
        if self.retransmission_delays is None:
            return [0.0] * number_of_retransmitters

        delays = list(self.retransmission_delays(time))
        if len(delays) != number_of_retransmitters:
            raise InvalidLinkEndTopologyError(
                f"Expected {number_of_retransmitters} retransmission delays, "
                f"found {len(delays)}"
            )
        return delays

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        delays = self._delays(time)
        hop_data: list[tuple[tuple[float, float], np.ndarray, np.ndarray]] = []

        match reference_link_end:

            case LinkEndType.receiver:

                # Walk back from the receiver
                current_time = time
                for hop in reversed(range(len(self.light_time_calculators))):
                    _, times, transmitter_state, receiver_state = (
                        self.light_time_calculators[
                            hop
                        ].calculate_light_time_with_link_ends_states(current_time, True)
                    )
                    hop_data.insert(0, (times, transmitter_state, receiver_state))
                    if hop > 0:
                        current_time = times[0] - delays[hop - 1]

            case LinkEndType.transmitter:

                # Walk forward from the transmitter
                current_time = time
                for hop in range(len(self.light_time_calculators)):
                    _, times, transmitter_state, receiver_state = (
                        self.light_time_calculators[
                            hop
                        ].calculate_light_time_with_link_ends_states(
                            current_time, False
                        )
                    )
                    hop_data.append((times, transmitter_state, receiver_state))
                    if hop < len(delays):
                        current_time = times[1] + delays[hop]

            case _:
                raise UnsupportedError(
                    f"Reference link end {reference_link_end.name} not supported "
                    "for n_way_range"
                )

        link_end_times: list[float] = []
        link_end_states: list[np.ndarray] = []
        for times, transmitter_state, receiver_state in hop_data:
            link_end_times += list(times)
            link_end_states += [transmitter_state, receiver_state]

        observation = (link_end_times[-1] - link_end_times[0]) * SPEED_OF_LIGHT

        return np.array([observation]), link_end_times, link_end_states


class AngularPositionObservationModel(ObservationModel):

    def __init__(
        self,
        light_time_calculator: LightTimeCalculator,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.angular_position, 2, observation_bias)
        self.light_time_calculator = light_time_calculator

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        _, times, transmitter_state, receiver_state = (
            self.light_time_calculator.calculate_light_time_with_link_ends_states(
                time, _is_time_at_reception(reference_link_end, self.observable_type)
            )
        )

        # Direction from observer (receiver) to target (transmitter)
        relative_position = transmitter_state[:3] - receiver_state[:3]
        right_ascension = np.arctan2(relative_position[1], relative_position[0])
        declination = np.arcsin(relative_position[2] / np.linalg.norm(relative_position))

        return (
            np.array([right_ascension, declination]),
            list(times),
            [transmitter_state, receiver_state],
        )


class PositionObservationModel(ObservationModel):

    def __init__(
        self,
        state_function: StateFunction,
        observation_bias: ObservationBias | None = None,
    ) -> None:

        super().__init__(ObservableType.position_observable, 3, observation_bias)
        self.state_function = state_function

        return None

    def compute_ideal_observations_with_link_end_data(
        self, time, reference_link_end
    ) -> LinkEndData:

        if reference_link_end not in (LinkEndType.observed_body, LinkEndType.receiver):
            raise InvalidLinkEndTopologyError(
                f"Reference link end {reference_link_end.name} not supported "
                "for position_observable"
            )

        state = np.asarray(self.state_function(time), dtype=float)

        return state[:3].copy(), [time], [state]
