import typing
from dataclasses import dataclass, field
import numpy as np


class Ephemeris:

    def __init__(
        self, frame_origin: str = "SSB", frame_orientation: str = "J2000"
    ) -> None:

        self.frame_origin = frame_origin
        self.frame_orientation = frame_orientation

        return None

    def cartesian_state(self, time: float) -> np.ndarray:
        raise NotImplementedError(
            f"{self.__class__.__name__} does not define a cartesian state"
        )


class ConstantEphemeris(Ephemeris):

    def __init__(self, constant_state: typing.Sequence[float], **kwargs) -> None:

        super().__init__(**kwargs)
        self.constant_state = np.array(constant_state, dtype=float)

        return None

    def cartesian_state(self, time: float) -> np.ndarray:
        return self.constant_state.copy()


class CustomEphemeris(Ephemeris):

    def __init__(
        self, state_function: typing.Callable[[float], np.ndarray], **kwargs
    ) -> None:

        super().__init__(**kwargs)
        self.state_function = state_function

        return None

    def cartesian_state(self, time: float) -> np.ndarray:
        return np.asarray(self.state_function(time), dtype=float)


class RotationalEphemeris:

    def __init__(
        self, base_frame: str = "J2000", target_frame: str = "body_fixed"
    ) -> None:

        self.base_frame = base_frame
        self.target_frame = target_frame

        return None

    def rotation_to_base_frame(self, time: float) -> np.ndarray:
        raise NotImplementedError(
            f"{self.__class__.__name__} does not define a rotation"
        )

    def angular_velocity_in_base_frame(self, time: float) -> np.ndarray:
        raise NotImplementedError(
            f"{self.__class__.__name__} does not define an angular velocity"
        )


class SimpleRotationalEphemeris(RotationalEphemeris):
    """Uniform rotation about the z-axis of the base frame."""

    def __init__(
        self,
        initial_angle: float,
        rotation_rate: float,
        reference_epoch: float = 0.0,
        **kwargs,
    ) -> None:

        super().__init__(**kwargs)
        self.initial_angle = initial_angle
        self.rotation_rate = rotation_rate
        self.reference_epoch = reference_epoch

        return None

    def rotation_to_base_frame(self, time: float) -> np.ndarray:

        angle = self.initial_angle + self.rotation_rate * (
            time - self.reference_epoch
        )
        cos, sin = np.cos(angle), np.sin(angle)

        return np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])

    def angular_velocity_in_base_frame(self, time: float) -> np.ndarray:
        return np.array([0.0, 0.0, self.rotation_rate])


class GravityFieldModel:

    def __init__(self, gravitational_parameter: float) -> None:

        self.gravitational_parameter = gravitational_parameter

        return None


class SphericalHarmonicsGravityField(GravityFieldModel):

    def __init__(
        self,
        gravitational_parameter: float,
        reference_radius: float,
        cosine_coefficients: np.ndarray,
        sine_coefficients: np.ndarray,
        fixed_reference_frame: str = "",
    ) -> None:

        super().__init__(gravitational_parameter)
        self.reference_radius = reference_radius
        self.cosine_coefficients = np.asarray(cosine_coefficients, dtype=float)
        self.sine_coefficients = np.asarray(sine_coefficients, dtype=float)
        self.fixed_reference_frame = fixed_reference_frame

        if self.cosine_coefficients.shape != self.sine_coefficients.shape:
            raise ValueError(
                "Inconsistent shapes of spherical harmonic coefficients"
                f" :: {self.cosine_coefficients.shape}"
                f" :: {self.sine_coefficients.shape}"
            )

        return None


class TimeDependentSphericalHarmonicsGravityField(SphericalHarmonicsGravityField):

    def __init__(
        self,
        gravitational_parameter: float,
        reference_radius: float,
        cosine_coefficients: np.ndarray,
        sine_coefficients: np.ndarray,
        variation_functions: list[
            typing.Callable[[float], tuple[np.ndarray, np.ndarray]]
        ],
        fixed_reference_frame: str = "",
    ) -> None:

        super().__init__(
            gravitational_parameter,
            reference_radius,
            cosine_coefficients,
            sine_coefficients,
            fixed_reference_frame,
        )
        self.nominal_cosine_coefficients = self.cosine_coefficients.copy()
        self.nominal_sine_coefficients = self.sine_coefficients.copy()
        self.variation_functions = variation_functions

        return None

    def update(self, time: float) -> None:

        # Nominal coefficients plus the sum of all variations
        cosine = self.nominal_cosine_coefficients.copy()
        sine = self.nominal_sine_coefficients.copy()
        for variation in self.variation_functions:
            delta_cosine, delta_sine = variation(time)
            cosine += delta_cosine
            sine += delta_sine

        self.cosine_coefficients = cosine
        self.sine_coefficients = sine

        return None


class ExponentialAtmosphere:

    def __init__(
        self, scale_height: float, surface_density: float, radius: float
    ) -> None:

        self.scale_height = scale_height
        self.surface_density = surface_density
        self.radius = radius

        return None

    def density(self, altitude: float) -> float:
        return self.surface_density * np.exp(-altitude / self.scale_height)


@dataclass
class ConstantAerodynamicCoefficientInterface:

    reference_area: float
    force_coefficients: np.ndarray = field(
        default_factory=lambda: np.zeros(3)
    )


class FlightConditions:

    def __init__(self, body_name: str, central_body_name: str) -> None:

        self.body_name = body_name
        self.central_body_name = central_body_name

        return None


class AtmosphericFlightConditions(FlightConditions):

    def __init__(
        self,
        body_name: str,
        central_body_name: str,
        atmosphere_model: ExponentialAtmosphere,
        coefficient_interface: ConstantAerodynamicCoefficientInterface,
    ) -> None:

        super().__init__(body_name, central_body_name)
        self.atmosphere_model = atmosphere_model
        self.coefficient_interface = coefficient_interface

        return None


@dataclass
class RadiationPressureInterface:

    source_body: str
    area: float
    radiation_pressure_coefficient: float


@dataclass
class SphericalBodyShapeModel:

    radius: float

    @property
    def average_radius(self) -> float:
        return self.radius


@dataclass
class GroundStation:

    name: str
    nominal_position: np.ndarray

    def zenith_in_base_frame(
        self, rotational_ephemeris: RotationalEphemeris, time: float
    ) -> np.ndarray:

        # Spherical approximation: zenith along the body-fixed position
        position = rotational_ephemeris.rotation_to_base_frame(time) @ np.asarray(
            self.nominal_position, dtype=float
        )
        return position / np.linalg.norm(position)
