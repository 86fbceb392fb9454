import typing
import numpy as np
from ..environment import SystemOfBodies
from ..errors import (
    DimensionMismatchError,
    InvalidSettingsError,
    UnrecognizedTypeError,
)
from ..logging import log
from .links import (
    LinkEnds,
    ObservableType,
    observable_size,
    link_end_indices_for_link_end_type,
)
from .settings import (
    ObservationBiasSettings,
    ObservationBiasTypes,
    ConstantObservationBiasSettings,
    ArcWiseConstantObservationBiasSettings,
    MultipleObservationBiasSettings,
)


class ObservationBias:

    def __init__(self, observable_size: int) -> None:

        self.observable_size = observable_size

        return None

    def observation_bias(
        self,
        link_end_times: typing.Sequence[float],
        link_end_states: typing.Sequence[np.ndarray],
        current_observation: np.ndarray,
    ) -> np.ndarray:
        raise NotImplementedError


class ConstantObservationBias(ObservationBias):

    def __init__(self, bias: np.ndarray) -> None:

        super().__init__(len(bias))
        self.bias = np.array(bias, dtype=float)

        return None

    def observation_bias(self, link_end_times, link_end_states, current_observation):
        return self.bias.copy()


class ConstantRelativeObservationBias(ObservationBias):

    def __init__(self, relative_bias: np.ndarray) -> None:

        super().__init__(len(relative_bias))
        self.relative_bias = np.array(relative_bias, dtype=float)

        return None

    def observation_bias(self, link_end_times, link_end_states, current_observation):
        return self.relative_bias * np.asarray(current_observation, dtype=float)


class ConstantArcWiseObservationBias(ObservationBias):

    def __init__(
        self,
        arc_start_times: typing.Sequence[float],
        biases: typing.Sequence[np.ndarray],
        link_end_index_for_time: int,
    ) -> None:

        super().__init__(len(biases[0]))
        self.arc_start_times = np.array(arc_start_times, dtype=float)
        self.biases = [np.array(bias, dtype=float) for bias in biases]
        self.link_end_index_for_time = link_end_index_for_time

        return None

    def current_arc_index(self, time: float) -> int:

        # Latest arc start before time, first arc for earlier times
        index = int(np.searchsorted(self.arc_start_times, time, side="right")) - 1
        return max(index, 0)

    def current_bias(self, link_end_times: typing.Sequence[float]) -> np.ndarray:
        return self.biases[
            self.current_arc_index(link_end_times[self.link_end_index_for_time])
        ]

    def observation_bias(self, link_end_times, link_end_states, current_observation):
        return self.current_bias(link_end_times).copy()


class ConstantRelativeArcWiseObservationBias(ConstantArcWiseObservationBias):

    def observation_bias(self, link_end_times, link_end_states, current_observation):
        return self.current_bias(link_end_times) * np.asarray(
            current_observation, dtype=float
        )


class MultiTypeObservationBias(ObservationBias):

    def __init__(self, bias_list: list[ObservationBias]) -> None:

        if len(bias_list) == 0:
            raise InvalidSettingsError("Empty list of biases to combine")

        super().__init__(bias_list[0].observable_size)
        self.bias_list = bias_list

        return None

    def observation_bias(self, link_end_times, link_end_states, current_observation):

        total_bias = np.zeros(self.observable_size)
        for bias in self.bias_list:
            total_bias += bias.observation_bias(
                link_end_times, link_end_states, current_observation
            )

        return total_bias


def _check_bias_size(bias: np.ndarray, size: int, description: str) -> None:

    if len(bias) != size:
        raise DimensionMismatchError(
            f"Error when making {description}, bias size is inconsistent"
            f" :: Expected {size}, found {len(bias)}"
        )

    return None


def _arc_wise_settings(
    bias_settings: ObservationBiasSettings,
    use_absolute_bias: bool,
    observable_size: int,
) -> ArcWiseConstantObservationBiasSettings:

    description = (
        "arc-wise observation bias"
        if use_absolute_bias
        else "arc-wise relative observation bias"
    )

    if not isinstance(bias_settings, ArcWiseConstantObservationBiasSettings):
        raise InvalidSettingsError(
            f"Error when making {description}, settings are inconsistent"
        )
    if bias_settings.use_absolute_bias != use_absolute_bias:
        raise InvalidSettingsError(
            f"Error when making {description}, class contents are inconsistent"
        )
    if len(bias_settings.arc_start_times) != len(bias_settings.observation_biases):
        raise InvalidSettingsError(
            f"Error when making {description}, found "
            f"{len(bias_settings.arc_start_times)} arc start times and "
            f"{len(bias_settings.observation_biases)} biases"
        )
    if len(bias_settings.arc_start_times) == 0:
        raise InvalidSettingsError(f"Error when making {description}, no arcs found")
    if any(
        later <= earlier
        for earlier, later in zip(
            bias_settings.arc_start_times, bias_settings.arc_start_times[1:]
        )
    ):
        raise InvalidSettingsError(
            f"Error when making {description}, arc start times are not ascending"
        )

    for bias in bias_settings.observation_biases:
        _check_bias_size(bias, observable_size, description)

    return bias_settings


def create_observation_bias_calculator(
    link_ends: LinkEnds,
    observable_type: ObservableType,
    bias_settings: ObservationBiasSettings,
    bodies: SystemOfBodies,
    size: int | None = None,
) -> ObservationBias:

    # Size of the observable the bias is applied to
    size = observable_size(observable_type) if size is None else size

    match bias_settings.bias_type:

        case ObservationBiasTypes.constant_absolute_bias:

            log.debug(f"Constant absolute bias :: {observable_type.name}")

            if not isinstance(bias_settings, ConstantObservationBiasSettings):
                raise InvalidSettingsError(
                    "Error when making constant observation bias, "
                    "settings are inconsistent"
                )
            if not bias_settings.use_absolute_bias:
                raise InvalidSettingsError(
                    "Error when making constant observation bias, "
                    "class settings are inconsistent"
                )
            _check_bias_size(
                bias_settings.observation_bias, size, "constant observation bias"
            )

            return ConstantObservationBias(bias_settings.observation_bias)

        case ObservationBiasTypes.constant_relative_bias:

            log.debug(f"Constant relative bias :: {observable_type.name}")

            if not isinstance(bias_settings, ConstantObservationBiasSettings):
                raise InvalidSettingsError(
                    "Error when making constant relative observation bias, "
                    "settings are inconsistent"
                )
            if bias_settings.use_absolute_bias:
                raise InvalidSettingsError(
                    "Error when making constant relative observation bias, "
                    "class settings are inconsistent"
                )
            _check_bias_size(
                bias_settings.observation_bias,
                size,
                "constant relative observation bias",
            )

            return ConstantRelativeObservationBias(bias_settings.observation_bias)

        case ObservationBiasTypes.arc_wise_constant_absolute_bias:

            log.debug(f"Arc-wise absolute bias :: {observable_type.name}")

            arc_settings = _arc_wise_settings(bias_settings, True, size)
            return ConstantArcWiseObservationBias(
                arc_settings.arc_start_times,
                arc_settings.observation_biases,
                link_end_indices_for_link_end_type(
                    observable_type, arc_settings.link_end_for_time, len(link_ends)
                )[0],
            )

        case ObservationBiasTypes.arc_wise_constant_relative_bias:

            log.debug(f"Arc-wise relative bias :: {observable_type.name}")

            arc_settings = _arc_wise_settings(bias_settings, False, size)
            return ConstantRelativeArcWiseObservationBias(
                arc_settings.arc_start_times,
                arc_settings.observation_biases,
                link_end_indices_for_link_end_type(
                    observable_type, arc_settings.link_end_for_time, len(link_ends)
                )[0],
            )

        case ObservationBiasTypes.multiple_observation_biases:

            log.debug(f"Multiple biases :: {observable_type.name}")

            if not isinstance(bias_settings, MultipleObservationBiasSettings):
                raise InvalidSettingsError(
                    "Error when making multiple observation biases, "
                    "settings are inconsistent"
                )

            # First failure of a nested bias is propagated
            return MultiTypeObservationBias(
                [
                    create_observation_bias_calculator(
                        link_ends, observable_type, nested_settings, bodies, size
                    )
                    for nested_settings in bias_settings.bias_settings_list
                ]
            )

        case _:
            raise UnrecognizedTypeError(
                "Error when making observation bias, bias type "
                f"{bias_settings.bias_type} not recognized"
            )
