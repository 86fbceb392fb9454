import typing
import numpy as np
from ..environment import SystemOfBodies
from ..errors import (
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
    UnsupportedError,
)
from ..logging import log
from .light_time import StateFunction
from .links import (
    LinkEndId,
    LinkEnds,
    ObservableType,
    link_end_indices_for_link_end_type,
)
from .settings import ObservationViabilitySettings, ObservationViabilityType

type LinkEndIndexPairs = list[tuple[int, int]]


def _angle_between(first: np.ndarray, second: np.ndarray) -> float:

    cosine = np.dot(first, second) / (np.linalg.norm(first) * np.linalg.norm(second))
    return float(np.arccos(np.clip(cosine, -1.0, 1.0)))


class ObservationViabilityCalculator:

    def __init__(self, link_end_indices: LinkEndIndexPairs) -> None:

        self.link_end_indices = link_end_indices

        return None

    def is_observation_viable(
        self,
        link_end_states: typing.Sequence[np.ndarray],
        link_end_times: typing.Sequence[float],
    ) -> bool:
        raise NotImplementedError


class MinimumElevationAngleCalculator(ObservationViabilityCalculator):

    def __init__(
        self,
        link_end_indices: LinkEndIndexPairs,
        minimum_elevation_angle: float,
        zenith_function: typing.Callable[[float], np.ndarray],
        station_name: str,
    ) -> None:

        super().__init__(link_end_indices)
        self.minimum_elevation_angle = minimum_elevation_angle
        self.zenith_function = zenith_function
        self.station_name = station_name

        return None

    def is_observation_viable(self, link_end_states, link_end_times) -> bool:

        for station_index, other_index in self.link_end_indices:

            line_of_sight = (
                link_end_states[other_index][:3] - link_end_states[station_index][:3]
            )
            zenith = self.zenith_function(link_end_times[station_index])
            elevation = 0.5 * np.pi - _angle_between(zenith, line_of_sight)

            if elevation < self.minimum_elevation_angle:
                return False

        return True


class BodyAvoidanceAngleCalculator(ObservationViabilityCalculator):

    def __init__(
        self,
        link_end_indices: LinkEndIndexPairs,
        body_avoidance_angle: float,
        body_state_function: StateFunction,
        body_to_avoid: str,
    ) -> None:

        super().__init__(link_end_indices)
        self.body_avoidance_angle = body_avoidance_angle
        self.body_state_function = body_state_function
        self.body_to_avoid = body_to_avoid

        return None

    def is_observation_viable(self, link_end_states, link_end_times) -> bool:

        for checked_index, other_index in self.link_end_indices:

            checked_position = link_end_states[checked_index][:3]
            line_of_sight = link_end_states[other_index][:3] - checked_position
            to_body = (
                self.body_state_function(link_end_times[checked_index])[:3]
                - checked_position
            )

            if _angle_between(line_of_sight, to_body) < self.body_avoidance_angle:
                return False

        return True


class OccultationCalculator(ObservationViabilityCalculator):

    def __init__(
        self,
        link_end_indices: LinkEndIndexPairs,
        occulting_body_state_function: StateFunction,
        occulting_body_radius: float,
        occulting_body: str,
    ) -> None:

        super().__init__(link_end_indices)
        self.occulting_body_state_function = occulting_body_state_function
        self.occulting_body_radius = occulting_body_radius
        self.occulting_body = occulting_body

        return None

    def is_observation_viable(self, link_end_states, link_end_times) -> bool:

        for first_index, second_index in self.link_end_indices:

            first = link_end_states[first_index][:3]
            second = link_end_states[second_index][:3]
            center = self.occulting_body_state_function(
                0.5 * (link_end_times[first_index] + link_end_times[second_index])
            )[:3]

            # Closest point of the link segment to the body center
            segment = second - first
            fraction = np.clip(
                np.dot(center - first, segment) / np.dot(segment, segment), 0.0, 1.0
            )
            closest = first + fraction * segment

            if np.linalg.norm(center - closest) < self.occulting_body_radius:
                return False

        return True


def _is_link_end_match(link_end: LinkEndId, reference: LinkEndId) -> bool:

    # Empty reference point matches every link end of the body
    if link_end.body_name != reference.body_name:
        return False
    return reference.is_body_origin or link_end.reference_point == (
        reference.reference_point
    )


def link_end_indices_for_observation_viability(
    link_ends: LinkEnds,
    observable_type: ObservableType,
    link_end_to_check: LinkEndId,
) -> LinkEndIndexPairs:
    """Pairs of (checked, opposite) link end indices for a viability check.

    Even indices are paired with the next index, odd indices with the
    previous one.
    """

    if observable_type == ObservableType.position_observable:
        raise UnsupportedError(
            "Observation viability not available for position observables"
        )

    pairs: LinkEndIndexPairs = []
    for role, link_end in link_ends.items():

        if not _is_link_end_match(link_end, link_end_to_check):
            continue

        for index in link_end_indices_for_link_end_type(
            observable_type, role, len(link_ends)
        ):
            pairs.append((index, index + 1 if index % 2 == 0 else index - 1))

    return pairs


def filter_observation_viability_settings(
    viability_settings: typing.Sequence[ObservationViabilitySettings],
    link_ends: LinkEnds,
) -> list[ObservationViabilitySettings]:
    """Viability settings that apply to at least one of the link ends."""

    return [
        settings
        for settings in viability_settings
        if any(
            _is_link_end_match(link_end, settings.associated_link_end)
            for link_end in link_ends.values()
        )
    ]


def _state_function(bodies: SystemOfBodies, body_name: str) -> StateFunction:

    if not bodies.does_body_exist(body_name) or bodies.get(body_name).ephemeris is None:
        raise MissingEnvironmentModelError(
            f"Error when making viability calculator, no ephemeris found for "
            f"{body_name}"
        )

    def state(time: float) -> np.ndarray:
        return bodies.state_in_base_frame_from_ephemeris(body_name, time)

    return state


def create_minimum_elevation_angle_calculator(
    bodies: SystemOfBodies,
    link_ends: LinkEnds,
    observable_type: ObservableType,
    viability_settings: ObservationViabilitySettings,
    station_name: str,
) -> MinimumElevationAngleCalculator:

    if (
        viability_settings.viability_type
        != ObservationViabilityType.minimum_elevation_angle
    ):
        raise InvalidSettingsError(
            "Error when making minimum elevation angle calculator, inconsistent "
            f"input :: {viability_settings.viability_type}"
        )

    body_name = viability_settings.associated_link_end.body_name
    body = bodies.get(body_name)
    station = body.get_ground_station(station_name)
    rotation = body.rotational_ephemeris
    if rotation is None:
        raise MissingEnvironmentModelError(
            "Error when making minimum elevation angle calculator, no rotation "
            f"model found for {body_name}"
        )

    log.debug(f"Minimum elevation angle :: {station_name} in {body_name}")

    return MinimumElevationAngleCalculator(
        link_end_indices_for_observation_viability(
            link_ends, observable_type, LinkEndId(body_name, station_name)
        ),
        viability_settings.double_parameter,
        lambda time: station.zenith_in_base_frame(rotation, time),
        station_name,
    )


def create_body_avoidance_angle_calculator(
    bodies: SystemOfBodies,
    link_ends: LinkEnds,
    observable_type: ObservableType,
    viability_settings: ObservationViabilitySettings,
) -> BodyAvoidanceAngleCalculator:

    if viability_settings.viability_type != ObservationViabilityType.body_avoidance_angle:
        raise InvalidSettingsError(
            "Error when making body avoidance angle calculator, inconsistent "
            f"input :: {viability_settings.viability_type}"
        )

    body_to_avoid = viability_settings.string_parameter
    log.debug(
        f"Body avoidance angle :: {body_to_avoid} from "
        f"{viability_settings.associated_link_end}"
    )

    return BodyAvoidanceAngleCalculator(
        link_end_indices_for_observation_viability(
            link_ends, observable_type, viability_settings.associated_link_end
        ),
        viability_settings.double_parameter,
        _state_function(bodies, body_to_avoid),
        body_to_avoid,
    )


def create_occultation_calculator(
    bodies: SystemOfBodies,
    link_ends: LinkEnds,
    observable_type: ObservableType,
    viability_settings: ObservationViabilitySettings,
) -> OccultationCalculator:

    if viability_settings.viability_type != ObservationViabilityType.body_occultation:
        raise InvalidSettingsError(
            "Error when making occultation calculator, inconsistent input :: "
            f"{viability_settings.viability_type}"
        )

    occulting_body = viability_settings.string_parameter
    state_function = _state_function(bodies, occulting_body)
    shape_model = bodies.get(occulting_body).shape_model
    if shape_model is None:
        raise MissingEnvironmentModelError(
            "Error when making occultation calculator, no shape model found for "
            f"{occulting_body}"
        )

    log.debug(
        f"Occultation :: {occulting_body} for "
        f"{viability_settings.associated_link_end}"
    )

    return OccultationCalculator(
        link_end_indices_for_observation_viability(
            link_ends, observable_type, viability_settings.associated_link_end
        ),
        state_function,
        shape_model.average_radius,
        occulting_body,
    )


def _create_calculators_for_link_ends(
    bodies: SystemOfBodies,
    link_ends: LinkEnds,
    observable_type: ObservableType,
    viability_settings: typing.Sequence[ObservationViabilitySettings],
) -> list[ObservationViabilityCalculator]:

    calculators: list[ObservationViabilityCalculator] = []
    for settings in filter_observation_viability_settings(
        viability_settings, link_ends
    ):

        match settings.viability_type:

            case ObservationViabilityType.minimum_elevation_angle:

                # One calculator per ground station of the body in the link
                reference = settings.associated_link_end
                station_names = (
                    sorted(
                        {
                            link_end.reference_point
                            for link_end in link_ends.values()
                            if link_end.body_name == reference.body_name
                            and not link_end.is_body_origin
                        }
                    )
                    if reference.is_body_origin
                    else [reference.reference_point]
                )
                calculators += [
                    create_minimum_elevation_angle_calculator(
                        bodies, link_ends, observable_type, settings, station_name
                    )
                    for station_name in station_names
                ]

            case ObservationViabilityType.body_avoidance_angle:
                calculators.append(
                    create_body_avoidance_angle_calculator(
                        bodies, link_ends, observable_type, settings
                    )
                )

            case ObservationViabilityType.body_occultation:
                calculators.append(
                    create_occultation_calculator(
                        bodies, link_ends, observable_type, settings
                    )
                )

            case _:
                raise UnrecognizedTypeError(
                    "Error when making observation viability calculator, type "
                    f"{settings.viability_type} not recognized"
                )

    return calculators


@typing.overload
def create_observation_viability_calculators(
    bodies: SystemOfBodies,
    link_ends: LinkEnds,
    viability_settings: typing.Sequence[ObservationViabilitySettings],
    observable_type: ObservableType,
) -> list[ObservationViabilityCalculator]: ...


@typing.overload
def create_observation_viability_calculators(
    bodies: SystemOfBodies,
    link_ends: typing.Sequence[LinkEnds],
    viability_settings: typing.Sequence[ObservationViabilitySettings],
    observable_type: ObservableType,
) -> dict[LinkEnds, list[ObservationViabilityCalculator]]: ...


@typing.overload
def create_observation_viability_calculators(
    bodies: SystemOfBodies,
    link_ends: typing.Mapping[ObservableType, typing.Sequence[LinkEnds]],
    viability_settings: typing.Sequence[ObservationViabilitySettings],
    observable_type: None = None,
) -> dict[ObservableType, dict[LinkEnds, list[ObservationViabilityCalculator]]]: ...


def create_observation_viability_calculators(
    bodies, link_ends, viability_settings, observable_type=None
):
    """Viability calculators for one set, a list, or a per-observable map
    of link ends. Settings not involving any of the link ends are ignored.
    """

    if isinstance(link_ends, LinkEnds):
        if observable_type is None:
            raise InvalidSettingsError(
                "Observable type required for viability calculators of link ends"
            )
        return _create_calculators_for_link_ends(
            bodies, link_ends, observable_type, viability_settings
        )

    if isinstance(link_ends, typing.Mapping):
        return {
            current_type: create_observation_viability_calculators(
                bodies, list(link_ends_list), viability_settings, current_type
            )
            for current_type, link_ends_list in link_ends.items()
        }

    return {
        current_link_ends: create_observation_viability_calculators(
            bodies, current_link_ends, viability_settings, observable_type
        )
        for current_link_ends in link_ends
    }
