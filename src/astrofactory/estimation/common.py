import typing
import numpy as np
from ..core import SettingsGenerator
from ..errors import InvalidSettingsError, UnrecognizedTypeError
from ..logging import log
from .links import (
    LinkEndId,
    LinkEnds,
    LinkEndType,
    ObservableType,
    body_origin_link_end_id,
    body_reference_point_link_end_id,
)
from .settings import (
    ObservationBiasSettings,
    ObservationBiasTypes,
    ConstantObservationBiasSettings,
    ArcWiseConstantObservationBiasSettings,
    LightTimeCorrectionSettings,
    FirstOrderRelativisticLightTimeCorrectionSettings,
    LightTimeConvergenceCriteria,
    DirectFirstOrderDopplerProperTimeRateSettings,
    ObservationSettings,
    OneWayDopplerObservationSettings,
    TwoWayDopplerObservationSettings,
    OneWayDifferencedRangeRateObservationSettings,
    NWayRangeObservationSettings,
    ObservationViabilitySettings,
    ObservationViabilityType,
    combined_bias,
)

if typing.TYPE_CHECKING:
    from ..config.estimation import (
        EstimationSetup,
        BiasSetup,
        LinkEndSetup,
        ObservableSetup,
    )


class ObservationSettingsGenerator(SettingsGenerator["EstimationSetup"]):

    def link_definitions(self) -> dict[str, LinkEnds]:

        link_definitions: dict[str, LinkEnds] = {}
        for link_id, link_config in self.local.links.items():

            log.debug(f"Link definition :: {link_id}")

            link_definitions[link_id] = LinkEnds(
                {
                    link_end_type: link_end_from_config(
                        getattr(link_config, link_end_type.name)
                    )
                    for link_end_type in LinkEndType
                    if getattr(link_config, link_end_type.name).present
                }
            )

        return link_definitions

    def light_time_correction_settings(
        self,
    ) -> list[LightTimeCorrectionSettings]:

        # Initialize container for light-time corrections
        light_time_corrections: list[LightTimeCorrectionSettings] = []
        light_time_setup = self.local.light_propagation

        if not light_time_setup.present or not light_time_setup.corrections.present:
            return light_time_corrections

        # Data for relativistic correction
        if light_time_setup.corrections.relativistic.present:

            match light_time_setup.corrections.relativistic.model:

                case "first_order":

                    log.debug("First order relativistic correction")

                    light_time_corrections.append(
                        FirstOrderRelativisticLightTimeCorrectionSettings(
                            perturbing_bodies=tuple(
                                light_time_setup.corrections.relativistic.bodies
                            )
                        )
                    )

                case _:
                    raise UnrecognizedTypeError(
                        "Invalid relativistic model: "
                        f"{light_time_setup.corrections.relativistic.model}"
                    )

        return light_time_corrections

    def light_time_convergence_settings(
        self,
    ) -> LightTimeConvergenceCriteria | None:

        light_time_setup = self.local.light_propagation
        if not light_time_setup.present or not light_time_setup.convergence.present:
            return None

        convergence_setup = light_time_setup.convergence
        return LightTimeConvergenceCriteria(
            iterate_corrections=convergence_setup.iterate_corrections,
            maximum_number_of_iterations=convergence_setup.max_iterations,
            tolerance=convergence_setup.tolerance,
            failure_handling=convergence_setup.on_failure,
        )

    def bias_settings(
        self, observable_setup: "ObservableSetup"
    ) -> ObservationBiasSettings | None:

        biases = [bias_from_config(bias_setup) for bias_setup in observable_setup.biases]

        match len(biases):
            case 0:
                return None
            case 1:
                return biases[0]
            case _:
                return combined_bias(biases)

    def observation_settings(self) -> list[tuple[LinkEnds, ObservationSettings]]:
        """Unsorted (link ends, settings) pairs of all configured observables."""

        log.info("Generating observation settings")

        link_definitions = self.link_definitions()
        light_time_corrections = tuple(self.light_time_correction_settings())
        convergence = self.light_time_convergence_settings()

        observation_settings: list[tuple[LinkEnds, ObservationSettings]] = []
        for observable_setup in self.local.observables:

            if observable_setup.link not in link_definitions:
                log.error(f"Undefined link: {observable_setup.link}")
                raise InvalidSettingsError(
                    f"Link {observable_setup.link} not found in link definitions"
                )
            link_ends = link_definitions[observable_setup.link]

            log.debug(
                f"{observable_setup.observable.name} :: {observable_setup.link}"
            )

            common = {
                "light_time_corrections": light_time_corrections,
                "light_time_convergence": convergence,
                "bias_settings": self.bias_settings(observable_setup),
            }

            match observable_setup.observable:

                case ObservableType.one_way_doppler:

                    proper_time = proper_time_rate_from_config(observable_setup)
                    settings = OneWayDopplerObservationSettings(
                        transmitter_proper_time_rate_settings=proper_time,
                        receiver_proper_time_rate_settings=proper_time,
                        **common,
                    )

                case ObservableType.two_way_doppler:

                    # Both legs share the light-time setup of the link
                    proper_time = proper_time_rate_from_config(observable_setup)
                    legs = [
                        OneWayDopplerObservationSettings(
                            transmitter_proper_time_rate_settings=proper_time,
                            receiver_proper_time_rate_settings=proper_time,
                            light_time_corrections=light_time_corrections,
                            light_time_convergence=convergence,
                        )
                        for _ in range(2)
                    ]
                    settings = TwoWayDopplerObservationSettings(
                        uplink_settings=legs[0], downlink_settings=legs[1], **common
                    )

                case ObservableType.one_way_differenced_range:

                    integration_time = float(observable_setup.integration_time)
                    settings = OneWayDifferencedRangeRateObservationSettings(
                        integration_time_function=lambda time, dt=integration_time: dt,
                        **common,
                    )

                case ObservableType.n_way_range:

                    delays = [
                        float(delay) for delay in observable_setup.retransmission_delays
                    ]
                    settings = NWayRangeObservationSettings(
                        retransmission_delays=(
                            (lambda time, delays=delays: list(delays))
                            if len(delays) > 0
                            else None
                        ),
                        **common,
                    )

                case ObservableType.position_observable:

                    # No light propagation for direct position observations
                    settings = ObservationSettings(
                        observable_type=ObservableType.position_observable,
                        bias_settings=common["bias_settings"],
                    )

                case _:

                    settings = ObservationSettings(
                        observable_type=observable_setup.observable, **common
                    )

            observation_settings.append((link_ends, settings))

        log.info(f"Generated {len(observation_settings)} observation settings")

        return observation_settings

    def viability_settings(self) -> list[ObservationViabilitySettings]:

        viability_settings: list[ObservationViabilitySettings] = []
        for viability_setup in self.local.viability:

            link_end = link_end_from_config(viability_setup.link_end)
            log.debug(f"{viability_setup.type.name} viability :: {link_end}")

            match viability_setup.type:

                case ObservationViabilityType.minimum_elevation_angle:
                    viability_settings.append(
                        ObservationViabilitySettings(
                            viability_type=viability_setup.type,
                            associated_link_end=link_end,
                            double_parameter=np.deg2rad(viability_setup.angle),
                        )
                    )

                case ObservationViabilityType.body_avoidance_angle:
                    viability_settings.append(
                        ObservationViabilitySettings(
                            viability_type=viability_setup.type,
                            associated_link_end=link_end,
                            string_parameter=viability_setup.body,
                            double_parameter=np.deg2rad(viability_setup.angle),
                        )
                    )

                case ObservationViabilityType.body_occultation:
                    viability_settings.append(
                        ObservationViabilitySettings(
                            viability_type=viability_setup.type,
                            associated_link_end=link_end,
                            string_parameter=viability_setup.body,
                        )
                    )

                case _:
                    raise UnrecognizedTypeError(
                        f"Invalid viability type: {viability_setup.type}"
                    )

        return viability_settings


def link_end_from_config(link_end_config: "LinkEndSetup") -> LinkEndId:

    log.debug(
        f"Link end: {link_end_config.reference_point} in {link_end_config.body}"
    )

    if link_end_config.reference_point == "origin":
        return body_origin_link_end_id(link_end_config.body)
    else:
        return body_reference_point_link_end_id(
            body_name=link_end_config.body,
            reference_point_id=link_end_config.reference_point,
        )


def bias_from_config(bias_config: "BiasSetup") -> ObservationBiasSettings:

    match bias_config.type:

        case (
            ObservationBiasTypes.constant_absolute_bias
            | ObservationBiasTypes.constant_relative_bias
        ):
            return ConstantObservationBiasSettings(
                observation_bias=bias_config.value,
                use_absolute_bias=(
                    bias_config.type == ObservationBiasTypes.constant_absolute_bias
                ),
            )

        case (
            ObservationBiasTypes.arc_wise_constant_absolute_bias
            | ObservationBiasTypes.arc_wise_constant_relative_bias
        ):
            return ArcWiseConstantObservationBiasSettings(
                arc_start_times=tuple(bias_config.arc_start_times),
                observation_biases=tuple(bias_config.arc_values),
                link_end_for_time=bias_config.time_link_end,
                use_absolute_bias=(
                    bias_config.type
                    == ObservationBiasTypes.arc_wise_constant_absolute_bias
                ),
            )

        case _:
            raise UnrecognizedTypeError(
                f"Invalid bias type in configuration: {bias_config.type}"
            )


def proper_time_rate_from_config(
    observable_config: "ObservableSetup",
) -> DirectFirstOrderDopplerProperTimeRateSettings | None:

    if observable_config.proper_time_central_body == "":
        return None

    return DirectFirstOrderDopplerProperTimeRateSettings(
        central_body_name=observable_config.proper_time_central_body
    )
