from .settings import (
    IntegratedStateType,
    AvailableAcceleration,
    AvailableTorque,
    AvailableMassRateModels,
    PropagationDependentVariables,
    SingleDependentVariableSaveSettings,
    PropagationTerminationTypes,
    PropagationTerminationSettings,
    PropagationTimeTerminationSettings,
    PropagationCPUTimeTerminationSettings,
    PropagationDependentVariableTerminationSettings,
    PropagationHybridTerminationSettings,
)
from .environment_updates import (
    EnvironmentModelsToUpdate,
    check_validity_of_required_environment_updates,
    add_environment_updates,
    remove_propagated_states_from_environment_updates,
    create_translational_equations_of_motion_environment_updater_settings,
    create_rotational_equations_of_motion_environment_updater_settings,
    create_mass_propagation_environment_updater_settings,
    create_environment_updater_settings_for_dependent_variable,
    create_environment_updater_settings_for_dependent_variables,
    create_environment_updater_settings_for_termination,
    create_environment_updater_settings_for_terminations,
    create_full_environment_updater_settings,
    create_environment_updater_settings,
)

__all__ = [
    "IntegratedStateType",
    "AvailableAcceleration",
    "AvailableTorque",
    "AvailableMassRateModels",
    "PropagationDependentVariables",
    "SingleDependentVariableSaveSettings",
    "PropagationTerminationTypes",
    "PropagationTerminationSettings",
    "PropagationTimeTerminationSettings",
    "PropagationCPUTimeTerminationSettings",
    "PropagationDependentVariableTerminationSettings",
    "PropagationHybridTerminationSettings",
    "EnvironmentModelsToUpdate",
    "check_validity_of_required_environment_updates",
    "add_environment_updates",
    "remove_propagated_states_from_environment_updates",
    "create_translational_equations_of_motion_environment_updater_settings",
    "create_rotational_equations_of_motion_environment_updater_settings",
    "create_mass_propagation_environment_updater_settings",
    "create_environment_updater_settings_for_dependent_variable",
    "create_environment_updater_settings_for_dependent_variables",
    "create_environment_updater_settings_for_termination",
    "create_environment_updater_settings_for_terminations",
    "create_full_environment_updater_settings",
    "create_environment_updater_settings",
]
