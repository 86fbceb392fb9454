import numpy as np
import pytest

from astrofactory.config import CaseSetup
from astrofactory.config.estimation import (
    LightTimeSetup,
    LinkEndSetup,
    ObservableSetup,
)
from astrofactory.errors import InvalidSettingsError
from astrofactory.estimation import (
    ObservationSettingsGenerator,
    create_observation_simulators,
)
from astrofactory.estimation.links import (
    LinkEndId,
    LinkEnds,
    LinkEndType,
    ObservableType,
)
from astrofactory.estimation.settings import (
    ArcWiseConstantObservationBiasSettings,
    ConstantObservationBiasSettings,
    DirectFirstOrderDopplerProperTimeRateSettings,
    FirstOrderRelativisticLightTimeCorrectionSettings,
    LightTimeFailureHandling,
    ObservationViabilityType,
)

CONFIGURATION = """
estimation:
  light_propagation:
    corrections:
      relativistic:
        model: first_order
        bodies: [Sun, Earth]
    convergence:
      max_iterations: 20
      on_failure: throw_exception
  links:
    station_uplink:
      transmitter:
        body: Earth
        reference_point: DSS-63
      receiver:
        body: Spacecraft
    two_way:
      transmitter: {body: Earth, reference_point: DSS-63}
      reflector1: {body: Spacecraft}
      receiver: {body: Earth, reference_point: DSS-63}
    moon_position:
      observed_body: {body: Moon}
  observables:
    - observable: one_way_range
      link: station_uplink
      biases:
        - type: constant_absolute_bias
          value: [2.0]
    - observable: one_way_doppler
      link: station_uplink
      proper_time_central_body: Sun
    - observable: two_way_doppler
      link: two_way
    - observable: one_way_differenced_range
      link: station_uplink
      integration_time: 30.0
    - observable: n_way_range
      link: two_way
      retransmission_delays: [0.001]
    - observable: position_observable
      link: moon_position
      biases:
        - type: arc_wise_constant_absolute_bias
          arc_start_times: [0.0, 100.0]
          arc_values: [[1.0, 1.0, 1.0], [2.0, 2.0, 2.0]]
          time_link_end: observed_body
  viability:
    - type: minimum_elevation_angle
      link_end: {body: Earth}
      angle: 10.0
    - type: body_avoidance_angle
      link_end: {body: Spacecraft}
      body: Sun
      angle: 20.0
"""

STATION_UPLINK = LinkEnds(
    transmitter=LinkEndId("Earth", "DSS-63"), receiver="Spacecraft"
)


@pytest.fixture
def config(tmp_path) -> CaseSetup:

    config_path = tmp_path / "case.yaml"
    config_path.write_text(CONFIGURATION)

    return CaseSetup.from_config_file(config_path)


@pytest.fixture
def generator(config) -> ObservationSettingsGenerator:
    return ObservationSettingsGenerator("observations", config.estimation, config)


def test_load_configuration(config):

    assert config.frame_origin == "SSB"
    assert config.frame_orientation == "J2000"

    light_time = config.estimation.light_propagation
    assert light_time.present
    assert light_time.convergence.max_iterations == 20
    assert light_time.convergence.on_failure == (
        LightTimeFailureHandling.throw_exception
    )
    assert light_time.convergence.tolerance == 1.0e-12

    observables = config.estimation.observables
    assert [observable.observable for observable in observables] == [
        ObservableType.one_way_range,
        ObservableType.one_way_doppler,
        ObservableType.two_way_doppler,
        ObservableType.one_way_differenced_range,
        ObservableType.n_way_range,
        ObservableType.position_observable,
    ]
    assert isinstance(observables[0].biases[0].value, np.ndarray)
    assert observables[5].biases[0].time_link_end == LinkEndType.observed_body

    # Roles absent from a link are marked as not present
    link = config.estimation.links["station_uplink"]
    assert link.transmitter.present
    assert not link.reflector1.present


def test_link_definitions(generator):

    links = generator.link_definitions()

    assert links["station_uplink"] == STATION_UPLINK
    assert links["two_way"][LinkEndType.reflector1] == LinkEndId("Spacecraft")
    assert links["moon_position"] == LinkEnds(observed_body="Moon")


def test_light_time_settings(generator):

    assert generator.light_time_correction_settings() == [
        FirstOrderRelativisticLightTimeCorrectionSettings(
            perturbing_bodies=("Sun", "Earth")
        )
    ]

    convergence = generator.light_time_convergence_settings()
    assert convergence.maximum_number_of_iterations == 20
    assert convergence.failure_handling == LightTimeFailureHandling.throw_exception
    assert not convergence.iterate_corrections


def test_observation_settings(generator):

    settings = generator.observation_settings()
    assert len(settings) == 6

    link_ends, range_settings = settings[0]
    assert link_ends == STATION_UPLINK
    assert len(range_settings.light_time_corrections) == 1
    assert isinstance(range_settings.bias_settings, ConstantObservationBiasSettings)
    np.testing.assert_allclose(range_settings.bias_settings.observation_bias, [2.0])

    _, doppler_settings = settings[1]
    assert doppler_settings.receiver_proper_time_rate_settings == (
        DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Sun")
    )

    _, two_way_settings = settings[2]
    assert two_way_settings.uplink_settings.light_time_corrections == (
        range_settings.light_time_corrections
    )
    assert two_way_settings.downlink_settings.receiver_proper_time_rate_settings is None

    _, differenced_settings = settings[3]
    assert differenced_settings.integration_time_function(0.0) == 30.0

    _, n_way_settings = settings[4]
    assert n_way_settings.retransmission_delays(0.0) == [0.001]

    link_ends, position_settings = settings[5]
    assert link_ends == LinkEnds(observed_body="Moon")
    assert position_settings.light_time_corrections == ()
    assert isinstance(
        position_settings.bias_settings, ArcWiseConstantObservationBiasSettings
    )


def test_viability_settings(generator):

    elevation, avoidance = generator.viability_settings()

    assert elevation.viability_type == ObservationViabilityType.minimum_elevation_angle
    assert elevation.associated_link_end == LinkEndId("Earth")
    assert elevation.double_parameter == pytest.approx(np.deg2rad(10.0))

    assert avoidance.viability_type == ObservationViabilityType.body_avoidance_angle
    assert avoidance.string_parameter == "Sun"
    assert avoidance.double_parameter == pytest.approx(np.deg2rad(20.0))


def test_simulators_from_configuration(generator, bodies):

    simulators = create_observation_simulators(
        generator.observation_settings(), bodies
    )

    assert set(simulators) == {
        ObservableType.one_way_range,
        ObservableType.one_way_doppler,
        ObservableType.two_way_doppler,
        ObservableType.one_way_differenced_range,
        ObservableType.n_way_range,
        ObservableType.position_observable,
    }

    _, observations = simulators[ObservableType.one_way_range].simulate_observations(
        [0.0], STATION_UPLINK
    )
    assert observations[0, 0] == pytest.approx(7.0e6 - 6378137.0 + 2.0, rel=1e-6)

    _, positions = simulators[
        ObservableType.position_observable
    ].simulate_observations(
        [50.0, 150.0], LinkEnds(observed_body="Moon"), LinkEndType.observed_body
    )
    np.testing.assert_allclose(positions[:, 0], [3.844e8 + 1.0, 3.844e8 + 2.0])


def test_missing_sections_are_not_present():

    light_time = LightTimeSetup.from_raw(None)

    assert not light_time.present
    assert not light_time.corrections.present
    assert not light_time.corrections.relativistic.present

    with pytest.raises(InvalidSettingsError):
        ObservableSetup.from_raw(None)


def test_missing_parameters_raise_on_access():

    link_end = LinkEndSetup.from_raw({"reference_point": "DSS-63"})

    assert link_end.reference_point == "DSS-63"
    with pytest.raises(InvalidSettingsError):
        link_end.body


def test_invalid_enumeration_option():

    with pytest.raises(InvalidSettingsError):
        ObservableSetup.from_raw({"observable": "three_way_range", "link": "a"})


def test_invalid_section_type():

    with pytest.raises(InvalidSettingsError):
        LinkEndSetup.from_raw(["Earth"])


def test_undefined_link(config):

    config.estimation.observables.append(
        ObservableSetup.from_raw({"observable": "one_way_range", "link": "missing"})
    )
    generator = ObservationSettingsGenerator("observations", config.estimation, config)

    with pytest.raises(InvalidSettingsError):
        generator.observation_settings()
