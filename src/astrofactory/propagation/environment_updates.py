import enum
import typing
from ..environment import SystemOfBodies, SphericalHarmonicsGravityField
from ..environment import TimeDependentSphericalHarmonicsGravityField
from ..errors import (
    InvalidSettingsError,
    MissingEnvironmentModelError,
    UnrecognizedTypeError,
)
from ..logging import log
from .settings import (
    AccelerationMap,
    AvailableAcceleration,
    AvailableMassRateModels,
    AvailableTorque,
    IntegratedStateType,
    MassRateModelMap,
    PropagatedStateList,
    PropagationDependentVariables,
    PropagationTerminationSettings,
    PropagationTerminationTypes,
    SingleDependentVariableSaveSettings,
    TorqueModelMap,
    get_acceleration_model_type,
    get_mass_rate_model_type,
    get_torque_model_type,
)


class EnvironmentModelsToUpdate(enum.Enum):

    translational_state = enum.auto()
    rotational_state = enum.auto()
    spherical_harmonic_gravity_field = enum.auto()
    flight_conditions = enum.auto()
    radiation_pressure_interface = enum.auto()
    body_mass = enum.auto()


type EnvironmentUpdates = dict[EnvironmentModelsToUpdate, list[str]]

# Facet refreshed by propagating each kind of state
_PROPAGATED_STATE_UPDATES: dict[
    IntegratedStateType, EnvironmentModelsToUpdate | None
] = {
    IntegratedStateType.translational_state: EnvironmentModelsToUpdate.translational_state,
    IntegratedStateType.rotational_state: EnvironmentModelsToUpdate.rotational_state,
    IntegratedStateType.body_mass_state: EnvironmentModelsToUpdate.body_mass,
    IntegratedStateType.custom_state: None,
}


def check_validity_of_required_environment_updates(
    requested_updates: typing.Mapping[EnvironmentModelsToUpdate, typing.Sequence[str]],
    bodies: SystemOfBodies,
) -> None:
    """Check that every requested update refers to an existing model.

    Empty body names denote global updates and are not checked.
    """

    for update_type, body_names in requested_updates.items():
        for body_name in body_names:

            # Ignore global required updates
            if body_name == "":
                continue

            if not bodies.does_body_exist(body_name):
                raise MissingEnvironmentModelError(
                    "Error when making environment model update settings, could "
                    f"not find body {body_name}"
                )
            body = bodies.get(body_name)

            match update_type:

                case EnvironmentModelsToUpdate.translational_state:
                    missing = body.ephemeris is None
                    description = "ephemeris"

                case EnvironmentModelsToUpdate.rotational_state:
                    missing = (
                        body.rotational_ephemeris is None
                        and body.dependent_orientation_calculator is None
                    )
                    description = (
                        "rotational ephemeris or dependent orientation calculator"
                    )

                case EnvironmentModelsToUpdate.spherical_harmonic_gravity_field:
                    missing = not isinstance(
                        body.gravity_field_model, SphericalHarmonicsGravityField
                    )
                    description = "spherical harmonic gravity field"

                case EnvironmentModelsToUpdate.flight_conditions:
                    missing = body.flight_conditions is None
                    description = "flight conditions"

                case EnvironmentModelsToUpdate.radiation_pressure_interface:
                    missing = len(body.radiation_pressure_interfaces) == 0
                    description = "radiation pressure interface"

                case EnvironmentModelsToUpdate.body_mass:
                    missing = body.mass_function is None
                    description = "mass function"

                case _:
                    raise UnrecognizedTypeError(
                        f"Environment update {update_type} not recognized"
                    )

            if missing:
                raise MissingEnvironmentModelError(
                    "Error when making environment model update settings, could "
                    f"not find {description} of body {body_name}"
                )

    return None


def add_environment_updates(
    environment_updates: EnvironmentUpdates,
    updates_to_add: typing.Mapping[EnvironmentModelsToUpdate, typing.Sequence[str]],
) -> None:
    """Append the body names of ``updates_to_add`` to ``environment_updates``.

    Nothing is removed, so a body may appear more than once for a facet.
    """

    for update_type, body_names in updates_to_add.items():
        environment_updates.setdefault(update_type, []).extend(body_names)

    return None


def remove_propagated_states_from_environment_updates(
    environment_updates: EnvironmentUpdates,
    propagated_states: PropagatedStateList,
) -> None:
    """Drop updates of states that are set by the propagation itself.

    Only the first entry of each propagated body is removed.
    """

    for state_type, propagated_bodies in propagated_states.items():

        if state_type not in _PROPAGATED_STATE_UPDATES:
            raise UnrecognizedTypeError(
                "Error when removing propagated states from environment updates, "
                f"state type {state_type} not recognized"
            )

        update_type = _PROPAGATED_STATE_UPDATES[state_type]
        if update_type is None or update_type not in environment_updates:
            continue

        bodies_to_update = environment_updates[update_type]
        for body_name, _ in propagated_bodies:
            if body_name in bodies_to_update:
                bodies_to_update.remove(body_name)

    return None


def _central_body_name(model, acceleration_type: AvailableAcceleration) -> str:

    central_body_name = getattr(model, "central_body_name", None)
    if central_body_name is None:
        raise InvalidSettingsError(
            f"Error, incompatible input ({acceleration_type.name}) when creating "
            "environment updates for translational equations of motion"
        )
    return central_body_name


def create_translational_equations_of_motion_environment_updater_settings(
    acceleration_models: AccelerationMap, bodies: SystemOfBodies
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}

    for accelerated_body, accelerations_per_body in acceleration_models.items():
        for exerting_body, models in accelerations_per_body.items():

            single_updates: EnvironmentUpdates = {}

            def require(update_type: EnvironmentModelsToUpdate, body: str) -> None:
                single_updates.setdefault(update_type, []).append(body)

            for model in models:

                acceleration_type = get_acceleration_model_type(model)
                log.debug(
                    f"{acceleration_type.name} :: {exerting_body} on "
                    f"{accelerated_body}"
                )

                # State of the exerting body, unless it is propagated
                if exerting_body not in acceleration_models:
                    require(EnvironmentModelsToUpdate.translational_state, exerting_body)

                match acceleration_type:

                    case AvailableAcceleration.central_gravity:
                        pass

                    case AvailableAcceleration.third_body_central_gravity:

                        central_body = _central_body_name(model, acceleration_type)
                        if central_body not in acceleration_models:
                            require(
                                EnvironmentModelsToUpdate.translational_state,
                                central_body,
                            )

                    case AvailableAcceleration.aerodynamic:

                        require(EnvironmentModelsToUpdate.rotational_state, exerting_body)
                        require(
                            EnvironmentModelsToUpdate.flight_conditions,
                            accelerated_body,
                        )
                        require(EnvironmentModelsToUpdate.body_mass, accelerated_body)

                    case AvailableAcceleration.cannon_ball_radiation_pressure:

                        require(
                            EnvironmentModelsToUpdate.radiation_pressure_interface,
                            accelerated_body,
                        )
                        require(EnvironmentModelsToUpdate.body_mass, accelerated_body)

                    case AvailableAcceleration.spherical_harmonic_gravity:

                        require(EnvironmentModelsToUpdate.rotational_state, exerting_body)
                        require(
                            EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                            exerting_body,
                        )

                    case AvailableAcceleration.mutual_spherical_harmonic_gravity:

                        for body in (exerting_body, accelerated_body):
                            require(EnvironmentModelsToUpdate.rotational_state, body)
                            require(
                                EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                                body,
                            )

                    case AvailableAcceleration.third_body_spherical_harmonic_gravity:

                        require(EnvironmentModelsToUpdate.rotational_state, exerting_body)
                        require(
                            EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                            exerting_body,
                        )
                        central_body = _central_body_name(model, acceleration_type)
                        if central_body not in acceleration_models:
                            require(
                                EnvironmentModelsToUpdate.translational_state,
                                central_body,
                            )

                    case (
                        AvailableAcceleration.third_body_mutual_spherical_harmonic_gravity
                    ):

                        for body in (exerting_body, accelerated_body):
                            require(EnvironmentModelsToUpdate.rotational_state, body)
                            require(
                                EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                                body,
                            )
                        central_body = _central_body_name(model, acceleration_type)
                        if central_body not in acceleration_models:
                            require(
                                EnvironmentModelsToUpdate.translational_state,
                                central_body,
                            )
                            require(
                                EnvironmentModelsToUpdate.rotational_state,
                                central_body,
                            )
                            require(
                                EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                                central_body,
                            )

                    case AvailableAcceleration.thrust_acceleration:

                        add_environment_updates(
                            single_updates, model.required_model_updates()
                        )
                        require(EnvironmentModelsToUpdate.body_mass, accelerated_body)

                    case AvailableAcceleration.relativistic_correction_acceleration:

                        if model.calculate_de_sitter_correction:
                            primary_body = model.primary_body_name
                            if primary_body not in acceleration_models:
                                require(
                                    EnvironmentModelsToUpdate.translational_state,
                                    primary_body,
                                )

                    case AvailableAcceleration.direct_tidal_dissipation_acceleration:

                        require(EnvironmentModelsToUpdate.rotational_state, exerting_body)
                        require(
                            EnvironmentModelsToUpdate.spherical_harmonic_gravity_field,
                            exerting_body,
                        )

                    case AvailableAcceleration.empirical_acceleration:
                        pass

                    case _:
                        raise UnrecognizedTypeError(
                            "Error when setting acceleration model update needs, "
                            f"model type not recognized: {acceleration_type}"
                        )

            check_validity_of_required_environment_updates(single_updates, bodies)
            add_environment_updates(environment_updates, single_updates)

    return environment_updates


def create_rotational_equations_of_motion_environment_updater_settings(
    torque_models: TorqueModelMap, bodies: SystemOfBodies
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}

    for accelerated_body, torques_per_body in torque_models.items():
        for exerting_body, models in torques_per_body.items():

            single_updates: EnvironmentUpdates = {}
            for model in models:

                torque_type = get_torque_model_type(model)
                log.debug(
                    f"{torque_type.name} :: {exerting_body} on {accelerated_body}"
                )

                match torque_type:

                    case AvailableTorque.second_order_gravitational_torque:
                        pass

                    case AvailableTorque.aerodynamic_torque:
                        single_updates.setdefault(
                            EnvironmentModelsToUpdate.rotational_state, []
                        ).append(exerting_body)
                        single_updates.setdefault(
                            EnvironmentModelsToUpdate.flight_conditions, []
                        ).append(accelerated_body)

                    case _:
                        raise UnrecognizedTypeError(
                            "Error when setting torque model update needs, model "
                            f"type not recognized: {torque_type}"
                        )

            check_validity_of_required_environment_updates(single_updates, bodies)
            add_environment_updates(environment_updates, single_updates)

    return environment_updates


def create_mass_propagation_environment_updater_settings(
    mass_rate_models: MassRateModelMap, bodies: SystemOfBodies
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}

    for body_name, models in mass_rate_models.items():
        for model in models:

            single_updates: EnvironmentUpdates = {}
            mass_rate_type = get_mass_rate_model_type(model)
            log.debug(f"{mass_rate_type.name} :: {body_name}")

            match mass_rate_type:

                case (
                    AvailableMassRateModels.custom_mass_rate_model
                    | AvailableMassRateModels.from_thrust_mass_rate_model
                ):
                    pass

                case _:
                    raise UnrecognizedTypeError(
                        "Error when setting mass rate model update needs, model "
                        f"type not recognized: {mass_rate_type}"
                    )

            check_validity_of_required_environment_updates(single_updates, bodies)
            add_environment_updates(environment_updates, single_updates)

    return environment_updates


# Dependent variables computed from the flight conditions of the associated
# body w.r.t. the secondary body
_FLIGHT_CONDITION_VARIABLES = (
    PropagationDependentVariables.mach_number,
    PropagationDependentVariables.altitude,
    PropagationDependentVariables.airspeed,
    PropagationDependentVariables.local_density,
    PropagationDependentVariables.aerodynamic_force_coefficients,
    PropagationDependentVariables.aerodynamic_moment_coefficients,
    PropagationDependentVariables.intermediate_aerodynamic_rotation_matrix,
    PropagationDependentVariables.relative_body_aerodynamic_orientation_angle,
    PropagationDependentVariables.body_fixed_airspeed_based_velocity,
    PropagationDependentVariables.total_aerodynamic_g_load,
    PropagationDependentVariables.stagnation_point_heat_flux,
    PropagationDependentVariables.local_temperature,
    PropagationDependentVariables.geodetic_latitude,
    PropagationDependentVariables.body_fixed_groundspeed_based_velocity,
)

# Dependent variables of the relative translational state of both bodies
_RELATIVE_STATE_VARIABLES = (
    PropagationDependentVariables.relative_speed,
    PropagationDependentVariables.relative_position,
    PropagationDependentVariables.relative_distance,
    PropagationDependentVariables.relative_velocity,
    PropagationDependentVariables.keplerian_state,
    PropagationDependentVariables.modified_equinoctial_state,
    PropagationDependentVariables.lvlh_to_inertial_frame_rotation,
    PropagationDependentVariables.periapsis_altitude,
)

# Dependent variables read from already evaluated models
_MODEL_OUTPUT_VARIABLES = (
    PropagationDependentVariables.total_acceleration_norm,
    PropagationDependentVariables.single_acceleration_norm,
    PropagationDependentVariables.total_acceleration,
    PropagationDependentVariables.single_acceleration,
    PropagationDependentVariables.total_mass_rate,
    PropagationDependentVariables.total_torque_norm,
    PropagationDependentVariables.single_torque_norm,
    PropagationDependentVariables.total_torque,
    PropagationDependentVariables.single_torque,
    PropagationDependentVariables.spherical_harmonic_acceleration_terms,
)


def create_environment_updater_settings_for_dependent_variable(
    dependent_variable: SingleDependentVariableSaveSettings,
    bodies: SystemOfBodies,
) -> EnvironmentUpdates:
    """Environment updates needed to compute a dependent variable.

    Missing flight conditions of the associated body are created in
    ``bodies`` when the variable requires them.
    """

    variable_type = dependent_variable.variable_type
    associated = dependent_variable.associated_body
    secondary = dependent_variable.secondary_body

    updates: EnvironmentUpdates = {}

    def require(update_type: EnvironmentModelsToUpdate, body: str) -> None:
        updates.setdefault(update_type, []).append(body)

    if variable_type in _FLIGHT_CONDITION_VARIABLES:
        require(EnvironmentModelsToUpdate.flight_conditions, associated)
        require(EnvironmentModelsToUpdate.rotational_state, secondary)
        require(EnvironmentModelsToUpdate.translational_state, associated)
        require(EnvironmentModelsToUpdate.translational_state, secondary)

    elif variable_type in _RELATIVE_STATE_VARIABLES:
        require(EnvironmentModelsToUpdate.translational_state, associated)
        require(EnvironmentModelsToUpdate.translational_state, secondary)

    elif variable_type in _MODEL_OUTPUT_VARIABLES:
        pass

    else:

        match variable_type:

            case PropagationDependentVariables.rotation_matrix_to_body_fixed_frame:
                require(EnvironmentModelsToUpdate.rotational_state, associated)

            case (
                PropagationDependentVariables.body_fixed_relative_cartesian_position
                | PropagationDependentVariables.body_fixed_relative_spherical_position
            ):
                require(EnvironmentModelsToUpdate.translational_state, associated)
                require(EnvironmentModelsToUpdate.translational_state, secondary)
                require(EnvironmentModelsToUpdate.rotational_state, secondary)

            case PropagationDependentVariables.control_surface_deflection:
                require(EnvironmentModelsToUpdate.flight_conditions, associated)

            case PropagationDependentVariables.radiation_pressure:
                require(
                    EnvironmentModelsToUpdate.radiation_pressure_interface, associated
                )
                require(EnvironmentModelsToUpdate.translational_state, associated)
                require(EnvironmentModelsToUpdate.translational_state, secondary)

            case _:
                raise UnrecognizedTypeError(
                    "Error when getting environment updates for dependent "
                    f"variables, parameter {variable_type} not found"
                )

    # Only modification of the environment done while resolving updates
    if EnvironmentModelsToUpdate.flight_conditions in updates:
        bodies.set_flight_conditions_if_missing(associated, secondary)

    return updates


def create_environment_updater_settings_for_dependent_variables(
    dependent_variables: typing.Iterable[SingleDependentVariableSaveSettings] | None,
    bodies: SystemOfBodies,
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}
    for dependent_variable in dependent_variables or ():
        add_environment_updates(
            environment_updates,
            create_environment_updater_settings_for_dependent_variable(
                dependent_variable, bodies
            ),
        )

    return environment_updates


def create_environment_updater_settings_for_termination(
    termination_settings: PropagationTerminationSettings,
    bodies: SystemOfBodies,
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}

    match termination_settings.termination_type:

        case (
            PropagationTerminationTypes.time_stopping_condition
            | PropagationTerminationTypes.cpu_time_stopping_condition
        ):
            pass

        case PropagationTerminationTypes.dependent_variable_stopping_condition:
            add_environment_updates(
                environment_updates,
                create_environment_updater_settings_for_dependent_variable(
                    termination_settings.dependent_variable_settings, bodies
                ),
            )

        case PropagationTerminationTypes.hybrid_stopping_condition:
            for nested_settings in termination_settings.termination_settings:
                add_environment_updates(
                    environment_updates,
                    create_environment_updater_settings_for_termination(
                        nested_settings, bodies
                    ),
                )

        case _:
            raise UnrecognizedTypeError(
                "Error when creating environment updater settings for termination "
                f"conditions, type {termination_settings.termination_type} not found"
            )

    return environment_updates


def create_environment_updater_settings_for_terminations(
    termination_settings: typing.Iterable[PropagationTerminationSettings] | None,
    bodies: SystemOfBodies,
) -> EnvironmentUpdates:

    environment_updates: EnvironmentUpdates = {}
    for settings in termination_settings or ():
        add_environment_updates(
            environment_updates,
            create_environment_updater_settings_for_termination(settings, bodies),
        )

    return environment_updates


def create_full_environment_updater_settings(
    bodies: SystemOfBodies,
) -> EnvironmentUpdates:
    """Updates of every environment model present in ``bodies``."""

    environment_updates: EnvironmentUpdates = {}

    for body_name, body in bodies.items():

        single_updates: EnvironmentUpdates = {}

        def require(update_type: EnvironmentModelsToUpdate) -> None:
            single_updates.setdefault(update_type, []).append(body_name)

        if body.flight_conditions is not None:
            require(EnvironmentModelsToUpdate.flight_conditions)

        # One update for each radiation source
        for _ in body.radiation_pressure_interfaces:
            require(EnvironmentModelsToUpdate.radiation_pressure_interface)

        if (
            body.rotational_ephemeris is not None
            or body.dependent_orientation_calculator is not None
        ):
            require(EnvironmentModelsToUpdate.rotational_state)

        if isinstance(
            body.gravity_field_model, TimeDependentSphericalHarmonicsGravityField
        ):
            require(EnvironmentModelsToUpdate.spherical_harmonic_gravity_field)

        require(EnvironmentModelsToUpdate.body_mass)

        check_validity_of_required_environment_updates(single_updates, bodies)
        add_environment_updates(environment_updates, single_updates)

    return environment_updates


def create_environment_updater_settings(
    bodies: SystemOfBodies,
    accelerations: AccelerationMap | None = None,
    torques: TorqueModelMap | None = None,
    mass_rates: MassRateModelMap | None = None,
    dependent_variables: (
        typing.Iterable[SingleDependentVariableSaveSettings] | None
    ) = None,
    termination: (
        PropagationTerminationSettings
        | typing.Iterable[PropagationTerminationSettings]
        | None
    ) = None,
    propagated_states: PropagatedStateList | None = None,
) -> EnvironmentUpdates:
    """Environment updates of a propagation.

    Collects the updates of all models, dependent variables and termination
    conditions, removes repeated bodies, and drops states that are
    propagated.

    :param bodies: System of bodies of the propagation
    :param accelerations: Accelerated body -> exerting body -> models
    :param torques: Body under torque -> exerting body -> models
    :param mass_rates: Body -> mass rate models
    :param dependent_variables: Dependent variables to save
    :param termination: Termination settings, single or several
    :param propagated_states: Propagated bodies per state type
    :return: Body names to update per environment model
    """

    log.info("Creating environment updater settings")

    environment_updates: EnvironmentUpdates = {}
    add_environment_updates(
        environment_updates,
        create_translational_equations_of_motion_environment_updater_settings(
            accelerations or {}, bodies
        ),
    )
    add_environment_updates(
        environment_updates,
        create_rotational_equations_of_motion_environment_updater_settings(
            torques or {}, bodies
        ),
    )
    add_environment_updates(
        environment_updates,
        create_mass_propagation_environment_updater_settings(
            mass_rates or {}, bodies
        ),
    )
    add_environment_updates(
        environment_updates,
        create_environment_updater_settings_for_dependent_variables(
            dependent_variables, bodies
        ),
    )

    if isinstance(termination, PropagationTerminationSettings):
        termination = [termination]
    add_environment_updates(
        environment_updates,
        create_environment_updater_settings_for_terminations(termination, bodies),
    )

    # Keep first occurrence of each body
    environment_updates = {
        update_type: list(dict.fromkeys(body_names))
        for update_type, body_names in environment_updates.items()
    }

    if propagated_states is not None:
        remove_propagated_states_from_environment_updates(
            environment_updates, propagated_states
        )

    for update_type, body_names in environment_updates.items():
        log.debug(f"{update_type.name} :: {', '.join(body_names)}")

    return environment_updates
