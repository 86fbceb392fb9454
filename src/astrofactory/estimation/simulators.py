import typing
import numpy as np
from ..environment import SystemOfBodies
from ..errors import (
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnsupportedDimensionError,
)
from ..logging import log
from .factory import create_observation_model
from .links import LinkEnds, LinkEndType, ObservableType, observable_size
from .models import ObservationModel
from .settings import ObservationSettings
from .viability import ObservationViabilityCalculator

type SortedObservationSettings = dict[
    ObservableType, dict[LinkEnds, ObservationSettings]
]
type UnsortedObservationSettings = typing.Sequence[
    tuple[LinkEnds, ObservationSettings]
]


class ObservationSimulator:

    def __init__(
        self,
        observable_type: ObservableType,
        observation_models: dict[LinkEnds, ObservationModel],
        viability_calculators: (
            dict[LinkEnds, list[ObservationViabilityCalculator]] | None
        ) = None,
    ) -> None:

        self.observable_type = observable_type
        self.observable_size = observable_size(observable_type)
        self.observation_models = observation_models
        self.viability_calculators = viability_calculators or {}

        return None

    def get_observation_model(self, link_ends: LinkEnds) -> ObservationModel:

        if link_ends not in self.observation_models:
            raise MissingEnvironmentModelError(
                f"No {self.observable_type.name} model found for {link_ends}"
            )
        return self.observation_models[link_ends]

    def is_observation_viable(
        self,
        link_ends: LinkEnds,
        link_end_states: typing.Sequence[np.ndarray],
        link_end_times: typing.Sequence[float],
    ) -> bool:

        return all(
            calculator.is_observation_viable(link_end_states, link_end_times)
            for calculator in self.viability_calculators.get(link_ends, [])
        )

    def simulate_observations(
        self,
        times: typing.Iterable[float],
        link_ends: LinkEnds,
        reference_link_end: LinkEndType = LinkEndType.receiver,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Simulate observations at the given times.

        :param times: Observation times, at the reference link end
        :param link_ends: Link ends of the model to use
        :param reference_link_end: Link end at which times are defined
        :return: Times of viable observations and the observations, one row
            per time
        """

        model = self.get_observation_model(link_ends)

        viable_times: list[float] = []
        observations: list[np.ndarray] = []
        for time in times:

            observation, link_end_times, link_end_states = (
                model.compute_observations_with_link_end_data(
                    time, reference_link_end
                )
            )
            if not self.is_observation_viable(
                link_ends, link_end_states, link_end_times
            ):
                continue

            viable_times.append(time)
            observations.append(observation)

        log.debug(
            f"Simulated {len(observations)} {self.observable_type.name} "
            f"observations :: {link_ends}"
        )

        return (
            np.array(viable_times),
            np.array(observations).reshape(-1, self.observable_size),
        )


def convert_unsorted_to_sorted_observation_settings_map(
    unsorted_settings: UnsortedObservationSettings,
) -> SortedObservationSettings:
    """Group (link ends, settings) pairs by the observable type of the settings."""

    sorted_settings: SortedObservationSettings = {}
    for link_ends, settings in unsorted_settings:

        if not isinstance(link_ends, LinkEnds):
            link_ends = LinkEnds(link_ends)

        settings_per_link_ends = sorted_settings.setdefault(
            settings.observable_type, {}
        )
        if link_ends in settings_per_link_ends:
            raise InvalidSettingsError(
                f"Duplicate {settings.observable_type.name} settings for "
                f"{link_ends}"
            )
        settings_per_link_ends[link_ends] = settings

    return sorted_settings


def create_observation_simulator(
    observable_type: ObservableType,
    settings_per_link_ends: typing.Mapping[LinkEnds, ObservationSettings],
    bodies: SystemOfBodies,
    viability_calculators: (
        dict[LinkEnds, list[ObservationViabilityCalculator]] | None
    ) = None,
) -> ObservationSimulator:

    observation_models: dict[LinkEnds, ObservationModel] = {}
    for link_ends, settings in settings_per_link_ends.items():

        if settings.observable_type != observable_type:
            raise InvalidSettingsError(
                f"Error when making {observable_type.name} simulator, found "
                f"settings of type {settings.observable_type.name} for {link_ends}"
            )
        observation_models[link_ends] = create_observation_model(
            link_ends, settings, bodies
        )

    return ObservationSimulator(
        observable_type, observation_models, viability_calculators
    )


def create_observation_simulators(
    observation_settings: SortedObservationSettings | UnsortedObservationSettings,
    bodies: SystemOfBodies,
    viability_calculators: (
        dict[ObservableType, dict[LinkEnds, list[ObservationViabilityCalculator]]]
        | None
    ) = None,
) -> dict[ObservableType, ObservationSimulator]:

    if not isinstance(observation_settings, typing.Mapping):
        observation_settings = convert_unsorted_to_sorted_observation_settings_map(
            observation_settings
        )

    log.info("Creating observation simulators")

    simulators: dict[ObservableType, ObservationSimulator] = {}
    for observable_type, settings_per_link_ends in observation_settings.items():

        size = observable_size(observable_type)
        if size not in (1, 2, 3):
            raise UnsupportedDimensionError(
                f"Error, cannot create observation simulator of size {size}"
            )

        simulators[observable_type] = create_observation_simulator(
            observable_type,
            settings_per_link_ends,
            bodies,
            (viability_calculators or {}).get(observable_type),
        )
        log.info(
            f"{observable_type.name} :: {len(settings_per_link_ends)} link ends"
        )

    return simulators
