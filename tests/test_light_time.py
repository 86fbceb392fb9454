import logging
import numpy as np
import pytest
from unittest.mock import Mock

from astrofactory.errors import (
    LightTimeConvergenceError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
)
from astrofactory.estimation.light_time import (
    SPEED_OF_LIGHT,
    FirstOrderRelativisticLightTimeCorrection,
    create_light_time_calculator,
    create_light_time_correction,
    get_link_end_state_function,
)
from astrofactory.estimation.links import LinkEndId, body_origin_link_end_id
from astrofactory.estimation.settings import (
    CustomLightTimeCorrectionSettings,
    FirstOrderRelativisticLightTimeCorrectionSettings,
    LightTimeConvergenceCriteria,
    LightTimeFailureHandling,
)

EARTH = body_origin_link_end_id("Earth")
SPACECRAFT = body_origin_link_end_id("Spacecraft")
EARTH_RADIUS = 6378137.0
ROTATION_RATE = 7.292115e-5


def test_body_origin_state(bodies):

    state_function = get_link_end_state_function(SPACECRAFT, bodies)

    np.testing.assert_allclose(
        state_function(100.0), [7.0e6, 0.0, 0.0, 0.0, 7.5e3, 0.0]
    )


def test_ground_station_state(bodies):

    state_function = get_link_end_state_function(
        LinkEndId("Earth", "DSS-63"), bodies
    )

    np.testing.assert_allclose(
        state_function(0.0),
        [EARTH_RADIUS, 0.0, 0.0, 0.0, ROTATION_RATE * EARTH_RADIUS, 0.0],
    )

    # Quarter of a revolution later the station is on the y-axis
    quarter = 0.5 * np.pi / ROTATION_RATE
    np.testing.assert_allclose(
        state_function(quarter)[:3], [0.0, EARTH_RADIUS, 0.0], atol=1e-6
    )


def test_state_function_missing_models(bodies):

    with pytest.raises(MissingEnvironmentModelError):
        get_link_end_state_function(body_origin_link_end_id("Mars"), bodies)

    with pytest.raises(MissingEnvironmentModelError):
        get_link_end_state_function(LinkEndId("Earth", "DSS-43"), bodies)

    with pytest.raises(MissingEnvironmentModelError):
        get_link_end_state_function(LinkEndId("Moon", "Apollo-11"), bodies)

    bodies.create_empty_body("Probe")
    with pytest.raises(MissingEnvironmentModelError):
        get_link_end_state_function(body_origin_link_end_id("Probe"), bodies)


def test_light_time_between_fixed_bodies(bodies):

    calculator = create_light_time_calculator(EARTH, SPACECRAFT, bodies)

    light_time, times, transmitter_state, receiver_state = (
        calculator.calculate_light_time_with_link_ends_states(10.0)
    )

    assert light_time == pytest.approx(7.0e6 / SPEED_OF_LIGHT)
    assert times[1] == 10.0
    assert times[0] == pytest.approx(10.0 - light_time)
    np.testing.assert_allclose(transmitter_state, np.zeros(6))
    np.testing.assert_allclose(receiver_state[:3], [7.0e6, 0.0, 0.0])


def test_light_time_with_fixed_transmission(bodies):

    calculator = create_light_time_calculator(EARTH, SPACECRAFT, bodies)

    light_time, times, _, _ = calculator.calculate_light_time_with_link_ends_states(
        10.0, is_time_at_reception=False
    )

    assert times[0] == 10.0
    assert times[1] == pytest.approx(10.0 + light_time)
    assert calculator.calculate_light_time(10.0, False) == pytest.approx(light_time)


def test_light_time_from_ground_station(bodies):

    calculator = create_light_time_calculator(
        LinkEndId("Earth", "DSS-63"), SPACECRAFT, bodies
    )

    # Station barely moves during the light time
    assert calculator.calculate_light_time(0.0) == pytest.approx(
        (7.0e6 - EARTH_RADIUS) / SPEED_OF_LIGHT, rel=1e-6
    )


def test_custom_correction_is_added(bodies):

    settings = CustomLightTimeCorrectionSettings(
        correction_function=lambda *args: 1.0e-3
    )
    calculator = create_light_time_calculator(EARTH, SPACECRAFT, bodies, [settings])

    assert calculator.calculate_light_time(0.0) == pytest.approx(
        7.0e6 / SPEED_OF_LIGHT + 1.0e-3
    )


def test_relativistic_correction(bodies):

    settings = FirstOrderRelativisticLightTimeCorrectionSettings(
        perturbing_bodies=["Earth"]
    )
    correction = create_light_time_correction(settings, bodies)

    assert isinstance(correction, FirstOrderRelativisticLightTimeCorrection)

    transmitter = np.array([EARTH_RADIUS, 0.0, 0.0, 0.0, 0.0, 0.0])
    receiver = np.array([7.0e6, 0.0, 0.0, 0.0, 0.0, 0.0])
    distance = 7.0e6 - EARTH_RADIUS
    expected = (
        2.0
        * 3.986004418e14
        / SPEED_OF_LIGHT**3
        * np.log(
            (EARTH_RADIUS + 7.0e6 + distance) / (EARTH_RADIUS + 7.0e6 - distance)
        )
    )

    assert correction(transmitter, receiver, 0.0, 0.0) == pytest.approx(expected)
    assert correction(transmitter, receiver, 0.0, 0.0) > 0.0


def test_relativistic_correction_reads_current_gravity_field(bodies):

    correction = create_light_time_correction(
        FirstOrderRelativisticLightTimeCorrectionSettings(perturbing_bodies=["Sun"]),
        bodies,
    )
    transmitter = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
    receiver = np.array([7.0e6, 0.0, 0.0, 0.0, 0.0, 0.0])

    before = correction(transmitter, receiver, 0.0, 0.0)
    bodies.get("Sun").gravity_field_model.gravitational_parameter *= 2.0

    assert correction(transmitter, receiver, 0.0, 0.0) == pytest.approx(2.0 * before)


def test_relativistic_correction_without_gravity_field(bodies):

    with pytest.raises(MissingEnvironmentModelError):
        create_light_time_correction(
            FirstOrderRelativisticLightTimeCorrectionSettings(
                perturbing_bodies=["Spacecraft"]
            ),
            bodies,
        )


def test_unrecognized_correction(bodies):

    with pytest.raises(UnrecognizedTypeError):
        create_light_time_correction(Mock(correction_type="bogus"), bodies)


def test_convergence_failure_raises(bodies):

    convergence = LightTimeConvergenceCriteria(
        maximum_number_of_iterations=1,
        failure_handling=LightTimeFailureHandling.throw_exception,
    )
    calculator = create_light_time_calculator(
        EARTH, SPACECRAFT, bodies, convergence=convergence
    )

    with pytest.raises(LightTimeConvergenceError):
        calculator.calculate_light_time(0.0)


def test_convergence_failure_warns(bodies, caplog):

    convergence = LightTimeConvergenceCriteria(
        maximum_number_of_iterations=1,
        failure_handling=LightTimeFailureHandling.print_warning_and_accept,
    )
    calculator = create_light_time_calculator(
        EARTH, SPACECRAFT, bodies, convergence=convergence
    )

    with caplog.at_level(logging.WARNING, logger="astrofactory"):
        light_time = calculator.calculate_light_time(0.0)

    assert light_time == pytest.approx(7.0e6 / SPEED_OF_LIGHT)
    assert "did not converge" in caplog.text
