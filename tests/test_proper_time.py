import numpy as np
import pytest
from unittest.mock import Mock

from astrofactory.errors import (
    InvalidLinkEndTopologyError,
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
    UnsupportedError,
)
from astrofactory.estimation.light_time import SPEED_OF_LIGHT
from astrofactory.estimation.links import LinkEnds, LinkEndType
from astrofactory.estimation.proper_time import (
    DirectFirstOrderDopplerProperTimeRateInterface,
    create_one_way_doppler_proper_time_calculator,
)
from astrofactory.estimation.settings import (
    DirectFirstOrderDopplerProperTimeRateSettings,
    DopplerProperTimeRateType,
)

EARTH_MU = 3.986004418e14
LINK_ENDS = LinkEnds(transmitter="Moon", receiver="Spacecraft")


def test_no_settings_no_calculator(bodies):

    assert (
        create_one_way_doppler_proper_time_calculator(
            None, LINK_ENDS, bodies, LinkEndType.receiver
        )
        is None
    )


def test_direct_first_order_rate(bodies):

    calculator = create_one_way_doppler_proper_time_calculator(
        DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Earth"),
        LINK_ENDS,
        bodies,
        LinkEndType.receiver,
    )

    assert isinstance(calculator, DirectFirstOrderDopplerProperTimeRateInterface)
    assert calculator.link_end_type == LinkEndType.receiver
    assert calculator.central_body_name == "Earth"

    state = np.array([7.0e6, 0.0, 0.0, 0.0, 7.5e3, 0.0])
    expected = -(0.5 * 7.5e3**2 + EARTH_MU / 7.0e6) / SPEED_OF_LIGHT**2

    assert calculator.proper_time_rate_difference(0.0, state) == pytest.approx(
        expected
    )


def test_rate_follows_gravity_field_updates(bodies):

    calculator = create_one_way_doppler_proper_time_calculator(
        DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Earth"),
        LINK_ENDS,
        bodies,
        LinkEndType.transmitter,
    )
    state = np.array([7.0e6, 0.0, 0.0, 0.0, 0.0, 0.0])

    before = calculator.proper_time_rate_difference(0.0, state)
    bodies.get("Earth").gravity_field_model.gravitational_parameter *= 2.0

    assert calculator.proper_time_rate_difference(0.0, state) == pytest.approx(
        2.0 * before
    )


def test_central_body_as_link_end(bodies):

    with pytest.raises(UnsupportedError):
        create_one_way_doppler_proper_time_calculator(
            DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Moon"),
            LINK_ENDS,
            bodies,
            LinkEndType.receiver,
        )


def test_central_body_without_gravity_field(bodies):

    with pytest.raises(MissingEnvironmentModelError):
        create_one_way_doppler_proper_time_calculator(
            DirectFirstOrderDopplerProperTimeRateSettings(
                central_body_name="Spacecraft"
            ),
            LinkEnds(transmitter="Earth", receiver="Moon"),
            bodies,
            LinkEndType.receiver,
        )

    with pytest.raises(MissingEnvironmentModelError):
        create_one_way_doppler_proper_time_calculator(
            DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Mars"),
            LINK_ENDS,
            bodies,
            LinkEndType.receiver,
        )


def test_missing_link_end(bodies):

    with pytest.raises(InvalidLinkEndTopologyError):
        create_one_way_doppler_proper_time_calculator(
            DirectFirstOrderDopplerProperTimeRateSettings(central_body_name="Earth"),
            LINK_ENDS,
            bodies,
            LinkEndType.reflector1,
        )


def test_inconsistent_and_unknown_settings(bodies):

    inconsistent = Mock(
        proper_time_rate_type=(
            DopplerProperTimeRateType.direct_first_order_doppler_proper_time_rate
        )
    )

    with pytest.raises(InvalidSettingsError):
        create_one_way_doppler_proper_time_calculator(
            inconsistent, LINK_ENDS, bodies, LinkEndType.receiver
        )

    unknown = Mock(
        proper_time_rate_type=DopplerProperTimeRateType.custom_doppler_proper_time_rate
    )

    with pytest.raises(UnrecognizedTypeError):
        create_one_way_doppler_proper_time_calculator(
            unknown, LINK_ENDS, bodies, LinkEndType.receiver
        )
