import numpy as np
import pytest

from astrofactory.environment import (
    SystemOfBodies,
    ConstantEphemeris,
    SimpleRotationalEphemeris,
    GravityFieldModel,
    SphericalBodyShapeModel,
    GroundStation,
)

EARTH_RADIUS = 6378137.0
EARTH_MU = 3.986004418e14
SPACECRAFT_STATE = np.array([7.0e6, 0.0, 0.0, 0.0, 7.5e3, 0.0])
MOON_STATE = np.array([3.844e8, 0.0, 0.0, 0.0, 1.0e3, 0.0])
SUN_STATE = np.array([-1.496e11, 0.0, 0.0, 0.0, 0.0, 0.0])


@pytest.fixture
def bodies() -> SystemOfBodies:
    """Earth at the origin, a spacecraft, the Moon and the Sun."""

    bodies = SystemOfBodies()

    earth = bodies.create_empty_body("Earth")
    earth.ephemeris = ConstantEphemeris(np.zeros(6))
    earth.rotational_ephemeris = SimpleRotationalEphemeris(0.0, 7.292115e-5)
    earth.gravity_field_model = GravityFieldModel(EARTH_MU)
    earth.shape_model = SphericalBodyShapeModel(EARTH_RADIUS)
    earth.add_ground_station(
        GroundStation("DSS-63", np.array([EARTH_RADIUS, 0.0, 0.0]))
    )
    earth.add_ground_station(
        GroundStation("DSS-14", np.array([-EARTH_RADIUS, 0.0, 0.0]))
    )

    spacecraft = bodies.create_empty_body("Spacecraft")
    spacecraft.ephemeris = ConstantEphemeris(SPACECRAFT_STATE)
    spacecraft.set_constant_mass(1000.0)

    moon = bodies.create_empty_body("Moon")
    moon.ephemeris = ConstantEphemeris(MOON_STATE)
    moon.gravity_field_model = GravityFieldModel(4.9028e12)
    moon.shape_model = SphericalBodyShapeModel(1737.4e3)

    sun = bodies.create_empty_body("Sun")
    sun.ephemeris = ConstantEphemeris(SUN_STATE)
    sun.gravity_field_model = GravityFieldModel(1.32712440018e20)

    return bodies
