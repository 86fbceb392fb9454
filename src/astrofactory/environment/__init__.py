from .bodies import Body, SystemOfBodies, create_flight_conditions
from .models import (
    Ephemeris,
    ConstantEphemeris,
    CustomEphemeris,
    RotationalEphemeris,
    SimpleRotationalEphemeris,
    GravityFieldModel,
    SphericalHarmonicsGravityField,
    TimeDependentSphericalHarmonicsGravityField,
    ExponentialAtmosphere,
    ConstantAerodynamicCoefficientInterface,
    FlightConditions,
    AtmosphericFlightConditions,
    RadiationPressureInterface,
    SphericalBodyShapeModel,
    GroundStation,
)

__all__ = [
    "Body",
    "SystemOfBodies",
    "create_flight_conditions",
    "Ephemeris",
    "ConstantEphemeris",
    "CustomEphemeris",
    "RotationalEphemeris",
    "SimpleRotationalEphemeris",
    "GravityFieldModel",
    "SphericalHarmonicsGravityField",
    "TimeDependentSphericalHarmonicsGravityField",
    "ExponentialAtmosphere",
    "ConstantAerodynamicCoefficientInterface",
    "FlightConditions",
    "AtmosphericFlightConditions",
    "RadiationPressureInterface",
    "SphericalBodyShapeModel",
    "GroundStation",
]
