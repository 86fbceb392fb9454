import threading
import typing
import numpy as np
from ..errors import MissingEnvironmentModelError
from ..logging import log
from .models import (
    Ephemeris,
    RotationalEphemeris,
    GravityFieldModel,
    ExponentialAtmosphere,
    ConstantAerodynamicCoefficientInterface,
    FlightConditions,
    AtmosphericFlightConditions,
    RadiationPressureInterface,
    SphericalBodyShapeModel,
    GroundStation,
)


class Body:

    def __init__(self, name: str) -> None:

        self.name = name

        # Sub-models, None when not available
        self.ephemeris: Ephemeris | None = None
        self.rotational_ephemeris: RotationalEphemeris | None = None
        self.dependent_orientation_calculator: typing.Any = None
        self.gravity_field_model: GravityFieldModel | None = None
        self.atmosphere_model: ExponentialAtmosphere | None = None
        self.aerodynamic_coefficient_interface: (
            ConstantAerodynamicCoefficientInterface | None
        ) = None
        self.flight_conditions: FlightConditions | None = None
        self.shape_model: SphericalBodyShapeModel | None = None
        self.mass_function: typing.Callable[[float], float] | None = None

        # Collections of sub-models
        self.radiation_pressure_interfaces: dict[
            str, RadiationPressureInterface
        ] = {}
        self.ground_stations: dict[str, GroundStation] = {}

        return None

    def set_constant_mass(self, mass: float) -> None:

        self.mass_function = lambda time: mass

        return None

    def add_ground_station(self, station: GroundStation) -> None:

        if station.name in self.ground_stations:
            raise ValueError(
                f"Ground station {station.name} already defined in {self.name}"
            )
        self.ground_stations[station.name] = station

        return None

    def get_ground_station(self, station_name: str) -> GroundStation:

        if station_name not in self.ground_stations:
            raise MissingEnvironmentModelError(
                f"Ground station {station_name} not found in body {self.name}"
            )
        return self.ground_stations[station_name]

    def __repr__(self) -> str:
        return f"Body({self.name!r})"


class SystemOfBodies:

    def __init__(
        self, frame_origin: str = "SSB", frame_orientation: str = "J2000"
    ) -> None:

        self.frame_origin = frame_origin
        self.frame_orientation = frame_orientation
        self._bodies: dict[str, Body] = {}
        self._lock = threading.Lock()

        return None

    def create_empty_body(self, name: str) -> Body:

        if name in self._bodies:
            raise ValueError(f"Body {name} already exists")

        log.debug(f"Creating empty body :: {name}")
        body = Body(name)
        self._bodies[name] = body

        return body

    def add_body(self, body: Body) -> None:

        if body.name in self._bodies:
            raise ValueError(f"Body {body.name} already exists")
        self._bodies[body.name] = body

        return None

    def does_body_exist(self, name: str) -> bool:
        return name in self._bodies

    def get(self, name: str) -> Body:

        if name not in self._bodies:
            raise MissingEnvironmentModelError(
                f"Body {name} not found in system of bodies"
            )
        return self._bodies[name]

    def items(self) -> typing.ItemsView[str, Body]:
        return self._bodies.items()

    def body_names(self) -> list[str]:
        return list(self._bodies.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._bodies

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._bodies)

    def __len__(self) -> int:
        return len(self._bodies)

    def state_in_base_frame_from_ephemeris(
        self, name: str, time: float
    ) -> np.ndarray:

        body = self.get(name)
        if body.ephemeris is None:
            raise MissingEnvironmentModelError(f"No ephemeris found for {name}")

        # Translate along the chain of ephemeris origins
        state = body.ephemeris.cartesian_state(time)
        origin = body.ephemeris.frame_origin
        if origin != self.frame_origin and origin != name:
            state = state + self.state_in_base_frame_from_ephemeris(origin, time)

        return state

    def set_flight_conditions_if_missing(
        self, body_name: str, central_body_name: str
    ) -> FlightConditions:
        """Attach flight conditions of a body w.r.t. a central body.

        This is the only operation that modifies the environment while
        building update settings. It holds a lock and leaves existing flight
        conditions untouched, so repeated calls are harmless.
        """

        with self._lock:

            body = self.get(body_name)
            if body.flight_conditions is not None:
                return body.flight_conditions

            central_body = self.get(central_body_name)
            body.flight_conditions = create_flight_conditions(
                body, central_body
            )
            log.info(
                f"Created flight conditions :: {body_name} w.r.t. "
                f"{central_body_name}"
            )

            return body.flight_conditions


def create_flight_conditions(body: Body, central_body: Body) -> FlightConditions:

    # Atmospheric flight conditions only when both models are available
    if (
        central_body.atmosphere_model is not None
        and body.aerodynamic_coefficient_interface is not None
    ):
        log.debug(f"Atmospheric flight conditions :: {body.name}")
        return AtmosphericFlightConditions(
            body.name,
            central_body.name,
            central_body.atmosphere_model,
            body.aerodynamic_coefficient_interface,
        )

    log.debug(f"Basic flight conditions :: {body.name}")
    return FlightConditions(body.name, central_body.name)
