import enum
import typing
from dataclasses import field
from ..core import FrozenDataclass
from ..errors import InvalidSettingsError


class IntegratedStateType(enum.Enum):

    translational_state = enum.auto()
    rotational_state = enum.auto()
    body_mass_state = enum.auto()
    custom_state = enum.auto()


# Propagated bodies per state type, as (body, central body or "") pairs
type PropagatedStateList = typing.Mapping[
    IntegratedStateType, typing.Sequence[tuple[str, str]]
]


# Models acting on propagated bodies


class AvailableAcceleration(enum.Enum):

    central_gravity = enum.auto()
    third_body_central_gravity = enum.auto()
    aerodynamic = enum.auto()
    cannon_ball_radiation_pressure = enum.auto()
    spherical_harmonic_gravity = enum.auto()
    mutual_spherical_harmonic_gravity = enum.auto()
    third_body_spherical_harmonic_gravity = enum.auto()
    third_body_mutual_spherical_harmonic_gravity = enum.auto()
    thrust_acceleration = enum.auto()
    relativistic_correction_acceleration = enum.auto()
    direct_tidal_dissipation_acceleration = enum.auto()
    empirical_acceleration = enum.auto()


class AvailableTorque(enum.Enum):

    second_order_gravitational_torque = enum.auto()
    aerodynamic_torque = enum.auto()


class AvailableMassRateModels(enum.Enum):

    custom_mass_rate_model = enum.auto()
    from_thrust_mass_rate_model = enum.auto()


class ModelWithType(typing.Protocol):

    model_type: enum.Enum


def _get_model_type[T: enum.Enum](model: ModelWithType, kind: type[T]) -> T:

    model_type = getattr(model, "model_type", None)
    if not isinstance(model_type, kind):
        raise InvalidSettingsError(
            f"Model {type(model).__name__} does not define a {kind.__name__} type"
        )
    return model_type


def get_acceleration_model_type(model: ModelWithType) -> AvailableAcceleration:
    return _get_model_type(model, AvailableAcceleration)


def get_torque_model_type(model: ModelWithType) -> AvailableTorque:
    return _get_model_type(model, AvailableTorque)


def get_mass_rate_model_type(model: ModelWithType) -> AvailableMassRateModels:
    return _get_model_type(model, AvailableMassRateModels)


# Accelerated body -> exerting body -> models
type AccelerationMap = typing.Mapping[
    str, typing.Mapping[str, typing.Sequence[ModelWithType]]
]
type TorqueModelMap = AccelerationMap
type MassRateModelMap = typing.Mapping[str, typing.Sequence[ModelWithType]]


# Dependent variables


class PropagationDependentVariables(enum.Enum):

    mach_number = enum.auto()
    altitude = enum.auto()
    airspeed = enum.auto()
    local_density = enum.auto()
    relative_speed = enum.auto()
    relative_position = enum.auto()
    relative_distance = enum.auto()
    relative_velocity = enum.auto()
    total_acceleration_norm = enum.auto()
    single_acceleration_norm = enum.auto()
    total_acceleration = enum.auto()
    single_acceleration = enum.auto()
    aerodynamic_force_coefficients = enum.auto()
    aerodynamic_moment_coefficients = enum.auto()
    rotation_matrix_to_body_fixed_frame = enum.auto()
    intermediate_aerodynamic_rotation_matrix = enum.auto()
    relative_body_aerodynamic_orientation_angle = enum.auto()
    body_fixed_airspeed_based_velocity = enum.auto()
    total_aerodynamic_g_load = enum.auto()
    stagnation_point_heat_flux = enum.auto()
    local_temperature = enum.auto()
    geodetic_latitude = enum.auto()
    body_fixed_groundspeed_based_velocity = enum.auto()
    total_mass_rate = enum.auto()
    total_torque_norm = enum.auto()
    single_torque_norm = enum.auto()
    total_torque = enum.auto()
    single_torque = enum.auto()
    keplerian_state = enum.auto()
    modified_equinoctial_state = enum.auto()
    spherical_harmonic_acceleration_terms = enum.auto()
    body_fixed_relative_cartesian_position = enum.auto()
    body_fixed_relative_spherical_position = enum.auto()
    lvlh_to_inertial_frame_rotation = enum.auto()
    control_surface_deflection = enum.auto()
    radiation_pressure = enum.auto()
    periapsis_altitude = enum.auto()


class SingleDependentVariableSaveSettings(metaclass=FrozenDataclass):

    variable_type: PropagationDependentVariables
    associated_body: str
    secondary_body: str = ""


# Termination conditions


class PropagationTerminationTypes(enum.Enum):

    time_stopping_condition = enum.auto()
    cpu_time_stopping_condition = enum.auto()
    dependent_variable_stopping_condition = enum.auto()
    hybrid_stopping_condition = enum.auto()


class PropagationTerminationSettings(metaclass=FrozenDataclass):

    termination_type: PropagationTerminationTypes


class PropagationTimeTerminationSettings(PropagationTerminationSettings):

    termination_type: PropagationTerminationTypes = field(
        init=False, default=PropagationTerminationTypes.time_stopping_condition
    )
    termination_time: float
    terminate_exactly_on_final_condition: bool = False


class PropagationCPUTimeTerminationSettings(PropagationTerminationSettings):

    termination_type: PropagationTerminationTypes = field(
        init=False, default=PropagationTerminationTypes.cpu_time_stopping_condition
    )
    cpu_termination_time: float


class PropagationDependentVariableTerminationSettings(
    PropagationTerminationSettings
):

    termination_type: PropagationTerminationTypes = field(
        init=False,
        default=PropagationTerminationTypes.dependent_variable_stopping_condition,
    )
    dependent_variable_settings: SingleDependentVariableSaveSettings
    limit_value: float
    use_as_lower_limit: bool = False


class PropagationHybridTerminationSettings(PropagationTerminationSettings):

    termination_type: PropagationTerminationTypes = field(
        init=False, default=PropagationTerminationTypes.hybrid_stopping_condition
    )
    termination_settings: tuple[PropagationTerminationSettings, ...]
    fulfill_single_condition: bool = True

    def __post_init__(self) -> None:

        object.__setattr__(
            self, "termination_settings", tuple(self.termination_settings)
        )
