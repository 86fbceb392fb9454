import numpy as np
import pytest
from unittest.mock import Mock

from astrofactory.environment import GroundStation
from astrofactory.errors import (
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
    UnsupportedError,
)
from astrofactory.estimation.links import (
    LinkEndId,
    LinkEnds,
    ObservableType,
    body_origin_link_end_id,
)
from astrofactory.estimation.settings import (
    body_avoidance_viability,
    body_occultation_viability,
    elevation_angle_viability,
)
from astrofactory.estimation.viability import (
    BodyAvoidanceAngleCalculator,
    MinimumElevationAngleCalculator,
    OccultationCalculator,
    create_minimum_elevation_angle_calculator,
    create_observation_viability_calculators,
    filter_observation_viability_settings,
    link_end_indices_for_observation_viability,
)

EARTH_RADIUS = 6378137.0
DSS_63 = LinkEndId("Earth", "DSS-63")
DSS_14 = LinkEndId("Earth", "DSS-14")
EARTH = body_origin_link_end_id("Earth")
SPACECRAFT = body_origin_link_end_id("Spacecraft")

SPACECRAFT_STATE = np.array([7.0e6, 0.0, 0.0, 0.0, 7.5e3, 0.0])
DSS_63_STATE = np.array([EARTH_RADIUS, 0.0, 0.0, 0.0, 0.0, 0.0])
DSS_14_STATE = np.array([-EARTH_RADIUS, 0.0, 0.0, 0.0, 0.0, 0.0])


def test_indices_one_way():

    link_ends = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")

    assert link_end_indices_for_observation_viability(
        link_ends, ObservableType.one_way_range, DSS_63
    ) == [(0, 1)]
    assert link_end_indices_for_observation_viability(
        link_ends, ObservableType.one_way_range, SPACECRAFT
    ) == [(1, 0)]

    # Body origin reference matches the station of that body
    assert link_end_indices_for_observation_viability(
        link_ends, ObservableType.one_way_range, EARTH
    ) == [(0, 1)]
    assert (
        link_end_indices_for_observation_viability(
            link_ends, ObservableType.one_way_range, DSS_14
        )
        == []
    )


def test_indices_reflected_links():

    two_way = LinkEnds(transmitter=DSS_63, reflector1="Spacecraft", receiver=DSS_14)

    assert link_end_indices_for_observation_viability(
        two_way, ObservableType.two_way_doppler, SPACECRAFT
    ) == [(1, 0), (2, 3)]
    assert link_end_indices_for_observation_viability(
        two_way, ObservableType.two_way_doppler, EARTH
    ) == [(0, 1), (3, 2)]

    four_way = LinkEnds(
        transmitter="Earth",
        reflector1="Spacecraft",
        reflector2="Moon",
        reflector3="Spacecraft",
        receiver="Earth",
    )

    assert link_end_indices_for_observation_viability(
        four_way, ObservableType.n_way_range, SPACECRAFT
    ) == [(1, 0), (2, 3), (5, 4), (6, 7)]


def test_indices_position_observable():

    with pytest.raises(UnsupportedError):
        link_end_indices_for_observation_viability(
            LinkEnds(observed_body="Moon"),
            ObservableType.position_observable,
            body_origin_link_end_id("Moon"),
        )


def test_filter_settings():

    link_ends = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")
    settings = [
        elevation_angle_viability(EARTH, 0.1),
        elevation_angle_viability(DSS_14, 0.1),
        body_avoidance_viability(SPACECRAFT, "Sun", 0.5),
        body_occultation_viability(body_origin_link_end_id("Moon"), "Earth"),
    ]

    assert filter_observation_viability_settings(settings, link_ends) == [
        settings[0],
        settings[2],
    ]


def test_minimum_elevation_angle(bodies):

    link_ends = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")
    calculators = create_observation_viability_calculators(
        bodies,
        link_ends,
        [elevation_angle_viability(EARTH, np.deg2rad(10.0))],
        ObservableType.one_way_range,
    )

    assert len(calculators) == 1
    calculator = calculators[0]
    assert isinstance(calculator, MinimumElevationAngleCalculator)
    assert calculator.station_name == "DSS-63"

    # Straight overhead, then straight below
    assert calculator.is_observation_viable([DSS_63_STATE, SPACECRAFT_STATE], [0, 0])
    assert not calculator.is_observation_viable(
        [DSS_63_STATE, -SPACECRAFT_STATE], [0, 0]
    )


def test_minimum_elevation_angle_per_station(bodies):

    link_ends = LinkEnds(transmitter=DSS_63, reflector1="Spacecraft", receiver=DSS_14)
    calculators = create_observation_viability_calculators(
        bodies,
        link_ends,
        [elevation_angle_viability(EARTH, 0.0)],
        ObservableType.two_way_doppler,
    )

    assert sorted(calculator.station_name for calculator in calculators) == [
        "DSS-14",
        "DSS-63",
    ]

    states = [DSS_63_STATE, SPACECRAFT_STATE, SPACECRAFT_STATE, DSS_14_STATE]
    viable = {
        calculator.station_name: calculator.is_observation_viable(states, [0] * 4)
        for calculator in calculators
    }
    assert viable == {"DSS-63": True, "DSS-14": False}


def test_minimum_elevation_angle_errors(bodies):

    link_ends = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")

    with pytest.raises(InvalidSettingsError):
        create_minimum_elevation_angle_calculator(
            bodies,
            link_ends,
            ObservableType.one_way_range,
            body_avoidance_viability(EARTH, "Sun", 0.1),
            "DSS-63",
        )

    bodies.get("Moon").add_ground_station(
        GroundStation("Base", np.array([1737.4e3, 0.0, 0.0]))
    )
    base = LinkEndId("Moon", "Base")

    with pytest.raises(MissingEnvironmentModelError):
        create_observation_viability_calculators(
            bodies,
            LinkEnds(transmitter=base, receiver="Spacecraft"),
            [elevation_angle_viability(base, 0.1)],
            ObservableType.one_way_range,
        )


def test_body_avoidance_angle(bodies):

    calculators = create_observation_viability_calculators(
        bodies,
        LinkEnds(transmitter="Earth", receiver="Spacecraft"),
        [body_avoidance_viability(EARTH, "Sun", np.deg2rad(30.0))],
        ObservableType.one_way_range,
    )

    assert len(calculators) == 1
    calculator = calculators[0]
    assert isinstance(calculator, BodyAvoidanceAngleCalculator)

    # Sun lies along -x as seen from Earth
    earth_state = np.zeros(6)
    assert calculator.is_observation_viable([earth_state, SPACECRAFT_STATE], [0, 0])
    assert not calculator.is_observation_viable(
        [earth_state, -SPACECRAFT_STATE], [0, 0]
    )


def test_body_occultation(bodies):

    calculators = create_observation_viability_calculators(
        bodies,
        LinkEnds(transmitter="Spacecraft", receiver="Moon"),
        [body_occultation_viability(SPACECRAFT, "Earth")],
        ObservableType.one_way_range,
    )

    assert len(calculators) == 1
    calculator = calculators[0]
    assert isinstance(calculator, OccultationCalculator)
    assert calculator.occulting_body_radius == EARTH_RADIUS

    behind_earth = np.array([-3.844e8, 0.0, 0.0, 0.0, 0.0, 0.0])
    beside_earth = np.array([7.0e6, 7.0e6, 0.0, 0.0, 0.0, 0.0])
    assert not calculator.is_observation_viable(
        [SPACECRAFT_STATE, behind_earth], [0, 0]
    )
    assert calculator.is_observation_viable([SPACECRAFT_STATE, beside_earth], [0, 0])


def test_body_occultation_requires_shape(bodies):

    with pytest.raises(MissingEnvironmentModelError):
        create_observation_viability_calculators(
            bodies,
            LinkEnds(transmitter="Spacecraft", receiver="Moon"),
            [body_occultation_viability(SPACECRAFT, "Sun")],
            ObservableType.one_way_range,
        )


def test_calculators_for_collections_of_link_ends(bodies):

    station_link = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")
    moon_link = LinkEnds(transmitter="Moon", receiver="Spacecraft")
    settings = [elevation_angle_viability(EARTH, 0.1)]

    per_link_ends = create_observation_viability_calculators(
        bodies, [station_link, moon_link], settings, ObservableType.one_way_range
    )
    assert len(per_link_ends[station_link]) == 1
    assert per_link_ends[moon_link] == []

    per_observable = create_observation_viability_calculators(
        bodies,
        {
            ObservableType.one_way_range: [station_link],
            ObservableType.angular_position: [moon_link],
        },
        settings,
    )
    assert set(per_observable) == {
        ObservableType.one_way_range,
        ObservableType.angular_position,
    }
    assert len(per_observable[ObservableType.one_way_range][station_link]) == 1
    assert per_observable[ObservableType.angular_position][moon_link] == []


def test_invalid_calculator_requests(bodies):

    link_ends = LinkEnds(transmitter=DSS_63, receiver="Spacecraft")

    with pytest.raises(InvalidSettingsError):
        create_observation_viability_calculators(
            bodies, link_ends, [elevation_angle_viability(EARTH, 0.1)]
        )

    with pytest.raises(UnrecognizedTypeError):
        create_observation_viability_calculators(
            bodies,
            link_ends,
            [Mock(viability_type="bogus", associated_link_end=SPACECRAFT)],
            ObservableType.one_way_range,
        )
