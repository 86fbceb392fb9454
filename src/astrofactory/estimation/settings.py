import enum
import math
import typing
from dataclasses import field
import numpy as np
from ..core import FrozenDataclass
from ..errors import InvalidSettingsError
from .links import LinkEndType, LinkEndId, ObservableType


# Observation biases


class ObservationBiasTypes(enum.Enum):

    constant_absolute_bias = enum.auto()
    constant_relative_bias = enum.auto()
    arc_wise_constant_absolute_bias = enum.auto()
    arc_wise_constant_relative_bias = enum.auto()
    multiple_observation_biases = enum.auto()


class ObservationBiasSettings(metaclass=FrozenDataclass):

    bias_type: ObservationBiasTypes


class ConstantObservationBiasSettings(ObservationBiasSettings):

    bias_type: ObservationBiasTypes = field(init=False)
    observation_bias: np.ndarray
    use_absolute_bias: bool = True

    def __post_init__(self) -> None:

        object.__setattr__(
            self,
            "observation_bias",
            np.atleast_1d(np.asarray(self.observation_bias, dtype=float)),
        )
        object.__setattr__(
            self,
            "bias_type",
            (
                ObservationBiasTypes.constant_absolute_bias
                if self.use_absolute_bias
                else ObservationBiasTypes.constant_relative_bias
            ),
        )


class ArcWiseConstantObservationBiasSettings(ObservationBiasSettings):

    bias_type: ObservationBiasTypes = field(init=False)
    arc_start_times: tuple[float, ...]
    observation_biases: tuple[np.ndarray, ...]
    link_end_for_time: LinkEndType
    use_absolute_bias: bool = True

    def __post_init__(self) -> None:

        object.__setattr__(
            self, "arc_start_times", tuple(float(t) for t in self.arc_start_times)
        )
        object.__setattr__(
            self,
            "observation_biases",
            tuple(
                np.atleast_1d(np.asarray(bias, dtype=float))
                for bias in self.observation_biases
            ),
        )
        object.__setattr__(
            self,
            "bias_type",
            (
                ObservationBiasTypes.arc_wise_constant_absolute_bias
                if self.use_absolute_bias
                else ObservationBiasTypes.arc_wise_constant_relative_bias
            ),
        )

    @classmethod
    def from_bias_map(
        cls,
        observation_biases: typing.Mapping[float, typing.Sequence[float]],
        link_end_for_time: LinkEndType,
        use_absolute_bias: bool = True,
    ) -> "ArcWiseConstantObservationBiasSettings":

        arc_start_times = sorted(observation_biases)
        return cls(
            arc_start_times=tuple(arc_start_times),
            observation_biases=tuple(
                observation_biases[time] for time in arc_start_times
            ),
            link_end_for_time=link_end_for_time,
            use_absolute_bias=use_absolute_bias,
        )


class MultipleObservationBiasSettings(ObservationBiasSettings):

    bias_type: ObservationBiasTypes = field(
        init=False, default=ObservationBiasTypes.multiple_observation_biases
    )
    bias_settings_list: tuple[ObservationBiasSettings, ...]

    def __post_init__(self) -> None:

        object.__setattr__(
            self, "bias_settings_list", tuple(self.bias_settings_list)
        )


def absolute_bias(bias: typing.Sequence[float]) -> ConstantObservationBiasSettings:
    return ConstantObservationBiasSettings(
        observation_bias=np.asarray(bias), use_absolute_bias=True
    )


def relative_bias(bias: typing.Sequence[float]) -> ConstantObservationBiasSettings:
    return ConstantObservationBiasSettings(
        observation_bias=np.asarray(bias), use_absolute_bias=False
    )


def combined_bias(
    bias_list: typing.Sequence[ObservationBiasSettings],
) -> MultipleObservationBiasSettings:
    return MultipleObservationBiasSettings(bias_settings_list=tuple(bias_list))


# Light propagation


class LightTimeCorrectionType(enum.Enum):

    first_order_relativistic = enum.auto()
    custom = enum.auto()


class LightTimeCorrectionSettings(metaclass=FrozenDataclass):

    correction_type: LightTimeCorrectionType


class FirstOrderRelativisticLightTimeCorrectionSettings(
    LightTimeCorrectionSettings
):

    correction_type: LightTimeCorrectionType = field(
        init=False, default=LightTimeCorrectionType.first_order_relativistic
    )
    perturbing_bodies: tuple[str, ...]

    def __post_init__(self) -> None:

        object.__setattr__(
            self, "perturbing_bodies", tuple(self.perturbing_bodies)
        )


class CustomLightTimeCorrectionSettings(LightTimeCorrectionSettings):

    correction_type: LightTimeCorrectionType = field(
        init=False, default=LightTimeCorrectionType.custom
    )
    # Arguments: transmitter state, receiver state, transmission and
    # reception times. Returns correction in seconds.
    correction_function: typing.Callable[
        [np.ndarray, np.ndarray, float, float], float
    ]


class LightTimeFailureHandling(enum.Enum):

    accept_without_warning = enum.auto()
    print_warning_and_accept = enum.auto()
    throw_exception = enum.auto()


class LightTimeConvergenceCriteria(metaclass=FrozenDataclass):

    iterate_corrections: bool = False
    maximum_number_of_iterations: int = 50
    tolerance: float = 1.0e-12
    failure_handling: LightTimeFailureHandling = (
        LightTimeFailureHandling.accept_without_warning
    )


# Proper time rates


class DopplerProperTimeRateType(enum.Enum):

    custom_doppler_proper_time_rate = enum.auto()
    direct_first_order_doppler_proper_time_rate = enum.auto()


class DopplerProperTimeRateSettings(metaclass=FrozenDataclass):

    proper_time_rate_type: DopplerProperTimeRateType


class DirectFirstOrderDopplerProperTimeRateSettings(DopplerProperTimeRateSettings):

    proper_time_rate_type: DopplerProperTimeRateType = field(
        init=False,
        default=DopplerProperTimeRateType.direct_first_order_doppler_proper_time_rate,
    )
    central_body_name: str


# Observation models


class ObservationSettings(metaclass=FrozenDataclass):

    observable_type: ObservableType
    light_time_corrections: tuple[LightTimeCorrectionSettings, ...] = ()
    bias_settings: ObservationBiasSettings | None = None
    light_time_convergence: LightTimeConvergenceCriteria | None = None

    def __post_init__(self) -> None:

        object.__setattr__(
            self, "light_time_corrections", tuple(self.light_time_corrections)
        )


class OneWayDopplerObservationSettings(ObservationSettings):

    observable_type: ObservableType = ObservableType.one_way_doppler
    transmitter_proper_time_rate_settings: DopplerProperTimeRateSettings | None = (
        None
    )
    receiver_proper_time_rate_settings: DopplerProperTimeRateSettings | None = (
        None
    )


class TwoWayDopplerObservationSettings(ObservationSettings):

    observable_type: ObservableType = ObservableType.two_way_doppler
    uplink_settings: OneWayDopplerObservationSettings | None = None
    downlink_settings: OneWayDopplerObservationSettings | None = None


class OneWayDifferencedRangeRateObservationSettings(ObservationSettings):

    observable_type: ObservableType = ObservableType.one_way_differenced_range
    integration_time_function: typing.Callable[[float], float]


class NWayRangeObservationSettings(ObservationSettings):

    observable_type: ObservableType = ObservableType.n_way_range
    one_way_range_settings: tuple[ObservationSettings, ...] = ()
    retransmission_delays: typing.Callable[[float], list[float]] | None = None

    def __post_init__(self) -> None:

        super().__post_init__()
        object.__setattr__(
            self, "one_way_range_settings", tuple(self.one_way_range_settings)
        )

    @classmethod
    def from_number_of_link_ends(
        cls,
        number_of_link_ends: int,
        light_time_corrections: typing.Sequence[LightTimeCorrectionSettings] = (),
        retransmission_delays: typing.Callable[[float], list[float]] | None = None,
        bias_settings: ObservationBiasSettings | None = None,
    ) -> "NWayRangeObservationSettings":

        if number_of_link_ends < 2:
            raise InvalidSettingsError(
                f"Invalid number of link ends for n-way range: {number_of_link_ends}"
            )

        # Same light-time corrections for every link
        one_way_range_settings = tuple(
            ObservationSettings(
                observable_type=ObservableType.one_way_range,
                light_time_corrections=tuple(light_time_corrections),
            )
            for _ in range(number_of_link_ends - 1)
        )

        return cls(
            one_way_range_settings=one_way_range_settings,
            retransmission_delays=retransmission_delays,
            bias_settings=bias_settings,
        )


# Observation viability


class ObservationViabilityType(enum.Enum):

    minimum_elevation_angle = enum.auto()
    body_avoidance_angle = enum.auto()
    body_occultation = enum.auto()


class ObservationViabilitySettings(metaclass=FrozenDataclass):

    viability_type: ObservationViabilityType
    associated_link_end: LinkEndId
    string_parameter: str = ""
    double_parameter: float = math.nan


def elevation_angle_viability(
    link_end: LinkEndId, elevation_angle: float
) -> ObservationViabilitySettings:
    return ObservationViabilitySettings(
        viability_type=ObservationViabilityType.minimum_elevation_angle,
        associated_link_end=link_end,
        double_parameter=elevation_angle,
    )


def body_avoidance_viability(
    link_end: LinkEndId, body_to_avoid: str, avoidance_angle: float
) -> ObservationViabilitySettings:
    return ObservationViabilitySettings(
        viability_type=ObservationViabilityType.body_avoidance_angle,
        associated_link_end=link_end,
        string_parameter=body_to_avoid,
        double_parameter=avoidance_angle,
    )


def body_occultation_viability(
    link_end: LinkEndId, occulting_body: str
) -> ObservationViabilitySettings:
    return ObservationViabilitySettings(
        viability_type=ObservationViabilityType.body_occultation,
        associated_link_end=link_end,
        string_parameter=occulting_body,
    )
