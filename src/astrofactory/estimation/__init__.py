from .links import (
    LinkEndType,
    LinkEndId,
    LinkEnds,
    ObservableType,
    observable_size,
    body_origin_link_end_id,
    body_reference_point_link_end_id,
    link_end_indices_for_link_end_type,
)
from .biases import create_observation_bias_calculator
from .proper_time import create_one_way_doppler_proper_time_calculator
from .light_time import create_light_time_calculator
from .factory import create_observation_model
from .simulators import (
    ObservationSimulator,
    create_observation_simulator,
    create_observation_simulators,
    convert_unsorted_to_sorted_observation_settings_map,
)
from .viability import (
    create_minimum_elevation_angle_calculator,
    create_body_avoidance_angle_calculator,
    create_occultation_calculator,
    create_observation_viability_calculators,
    filter_observation_viability_settings,
    link_end_indices_for_observation_viability,
)
from .common import ObservationSettingsGenerator

__all__ = [
    "LinkEndType",
    "LinkEndId",
    "LinkEnds",
    "ObservableType",
    "observable_size",
    "body_origin_link_end_id",
    "body_reference_point_link_end_id",
    "link_end_indices_for_link_end_type",
    "create_observation_bias_calculator",
    "create_one_way_doppler_proper_time_calculator",
    "create_light_time_calculator",
    "create_observation_model",
    "ObservationSimulator",
    "create_observation_simulator",
    "create_observation_simulators",
    "convert_unsorted_to_sorted_observation_settings_map",
    "create_minimum_elevation_angle_calculator",
    "create_body_avoidance_angle_calculator",
    "create_occultation_calculator",
    "create_observation_viability_calculators",
    "filter_observation_viability_settings",
    "link_end_indices_for_observation_viability",
    "ObservationSettingsGenerator",
]
