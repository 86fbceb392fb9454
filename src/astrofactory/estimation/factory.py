import typing
from ..environment import SystemOfBodies
from ..errors import (
    InvalidLinkEndTopologyError,
    InvalidSettingsError,
    UnrecognizedTypeError,
    UnsupportedDimensionError,
)
from ..logging import log
from .biases import ObservationBias, create_observation_bias_calculator
from .light_time import create_light_time_calculator, get_link_end_state_function
from .links import LinkEnds, LinkEndType, ObservableType, n_way_chain
from .links import observable_size as get_observable_size
from .models import (
    ObservationModel,
    OneWayRangeObservationModel,
    OneWayDopplerObservationModel,
    TwoWayDopplerObservationModel,
    OneWayDifferencedRangeObservationModel,
    NWayRangeObservationModel,
    AngularPositionObservationModel,
    PositionObservationModel,
)
from .proper_time import create_one_way_doppler_proper_time_calculator
from .settings import (
    ObservationSettings,
    OneWayDopplerObservationSettings,
    TwoWayDopplerObservationSettings,
    OneWayDifferencedRangeRateObservationSettings,
    NWayRangeObservationSettings,
)

# Settings classes that carry the extra fields of an observable
SPECIALIZED_OBSERVATION_SETTINGS: dict[ObservableType, type[ObservationSettings]] = {
    ObservableType.one_way_doppler: OneWayDopplerObservationSettings,
    ObservableType.two_way_doppler: TwoWayDopplerObservationSettings,
    ObservableType.one_way_differenced_range: (
        OneWayDifferencedRangeRateObservationSettings
    ),
    ObservableType.n_way_range: NWayRangeObservationSettings,
}


def _check_settings_class(
    settings: ObservationSettings, requires_specialization: bool = False
) -> None:

    expected = SPECIALIZED_OBSERVATION_SETTINGS.get(
        settings.observable_type, ObservationSettings
    )
    allowed = (expected,) if requires_specialization else (ObservationSettings, expected)
    if type(settings) not in allowed:
        raise InvalidSettingsError(
            f"Error when making {settings.observable_type.name} model, settings "
            f"of type {type(settings).__name__} are inconsistent"
        )

    return None


def _check_link_ends(
    link_ends: LinkEnds,
    required_roles: typing.Sequence[LinkEndType],
    observable_type: ObservableType,
) -> None:

    for role in required_roles:
        if role not in link_ends:
            raise InvalidLinkEndTopologyError(
                f"Error when making {observable_type.name} model, no "
                f"{role.name} found :: {link_ends}"
            )

    if len(link_ends) != len(required_roles):
        extra = [role.name for role in link_ends if role not in required_roles]
        raise InvalidLinkEndTopologyError(
            f"Error when making {observable_type.name} model, found unexpected "
            f"link ends {', '.join(extra)} :: {link_ends}"
        )

    return None


def _create_bias(
    link_ends: LinkEnds,
    settings: ObservationSettings,
    bodies: SystemOfBodies,
    size: int,
) -> ObservationBias | None:

    if settings.bias_settings is None:
        return None

    return create_observation_bias_calculator(
        link_ends, settings.observable_type, settings.bias_settings, bodies, size
    )


def two_way_doppler_leg_settings(
    settings: ObservationSettings,
) -> tuple[OneWayDopplerObservationSettings, OneWayDopplerObservationSettings]:
    """Uplink and downlink settings of a two-way Doppler observable.

    Legs that are not given explicitly are plain one-way Doppler settings
    with the light-time corrections of the two-way settings.
    """

    legs: list[OneWayDopplerObservationSettings] = []
    for name in ("uplink_settings", "downlink_settings"):

        leg = getattr(settings, name, None)
        if leg is None:
            leg = OneWayDopplerObservationSettings(
                light_time_corrections=settings.light_time_corrections,
                light_time_convergence=settings.light_time_convergence,
            )
        elif leg.observable_type != ObservableType.one_way_doppler:
            raise InvalidSettingsError(
                f"Error when making two-way Doppler model, {name} are of type "
                f"{leg.observable_type.name}"
            )
        legs.append(leg)

    return legs[0], legs[1]


def n_way_hop_settings(
    settings: ObservationSettings, number_of_hops: int
) -> list[ObservationSettings]:
    """One-way range settings for each hop of an n-way link."""

    explicit = getattr(settings, "one_way_range_settings", ())
    if len(explicit) == 0:
        return [
            ObservationSettings(
                observable_type=ObservableType.one_way_range,
                light_time_corrections=settings.light_time_corrections,
                light_time_convergence=settings.light_time_convergence,
            )
            for _ in range(number_of_hops)
        ]

    if len(explicit) != number_of_hops:
        raise InvalidLinkEndTopologyError(
            f"Error when making n-way range model, found {len(explicit)} one-way "
            f"range settings for {number_of_hops} links"
        )
    for hop_settings in explicit:
        if hop_settings.observable_type != ObservableType.one_way_range:
            raise InvalidSettingsError(
                "Error when making n-way range model, link settings of type "
                f"{hop_settings.observable_type.name} found"
            )

    return list(explicit)


def _create_one_way_doppler_model(
    link_ends: LinkEnds,
    settings: ObservationSettings,
    bodies: SystemOfBodies,
    bias: ObservationBias | None,
) -> OneWayDopplerObservationModel:

    transmitter_rate = None
    receiver_rate = None
    if isinstance(settings, OneWayDopplerObservationSettings):
        transmitter_rate = create_one_way_doppler_proper_time_calculator(
            settings.transmitter_proper_time_rate_settings,
            link_ends,
            bodies,
            LinkEndType.transmitter,
        )
        receiver_rate = create_one_way_doppler_proper_time_calculator(
            settings.receiver_proper_time_rate_settings,
            link_ends,
            bodies,
            LinkEndType.receiver,
        )

    return OneWayDopplerObservationModel(
        create_light_time_calculator(
            link_ends[LinkEndType.transmitter],
            link_ends[LinkEndType.receiver],
            bodies,
            settings.light_time_corrections,
            settings.light_time_convergence,
        ),
        transmitter_rate,
        receiver_rate,
        bias,
    )


def _create_size_one_model(
    link_ends: LinkEnds, settings: ObservationSettings, bodies: SystemOfBodies
) -> ObservationModel:

    observable_type = settings.observable_type

    match observable_type:

        case ObservableType.one_way_range:

            _check_link_ends(
                link_ends,
                (LinkEndType.transmitter, LinkEndType.receiver),
                observable_type,
            )
            _check_settings_class(settings)

            return OneWayRangeObservationModel(
                create_light_time_calculator(
                    link_ends[LinkEndType.transmitter],
                    link_ends[LinkEndType.receiver],
                    bodies,
                    settings.light_time_corrections,
                    settings.light_time_convergence,
                ),
                _create_bias(link_ends, settings, bodies, 1),
            )

        case ObservableType.one_way_doppler:

            _check_link_ends(
                link_ends,
                (LinkEndType.transmitter, LinkEndType.receiver),
                observable_type,
            )
            _check_settings_class(settings)

            return _create_one_way_doppler_model(
                link_ends,
                settings,
                bodies,
                _create_bias(link_ends, settings, bodies, 1),
            )

        case ObservableType.two_way_doppler:

            _check_link_ends(
                link_ends,
                (
                    LinkEndType.transmitter,
                    LinkEndType.reflector1,
                    LinkEndType.receiver,
                ),
                observable_type,
            )
            _check_settings_class(settings)

            uplink_settings, downlink_settings = two_way_doppler_leg_settings(
                settings
            )
            uplink_link_ends = LinkEnds(
                transmitter=link_ends[LinkEndType.transmitter],
                receiver=link_ends[LinkEndType.reflector1],
            )
            downlink_link_ends = LinkEnds(
                transmitter=link_ends[LinkEndType.reflector1],
                receiver=link_ends[LinkEndType.receiver],
            )

            # Leg biases are part of the leg models, not of the composition
            return TwoWayDopplerObservationModel(
                _create_one_way_doppler_model(
                    uplink_link_ends,
                    uplink_settings,
                    bodies,
                    _create_bias(uplink_link_ends, uplink_settings, bodies, 1),
                ),
                _create_one_way_doppler_model(
                    downlink_link_ends,
                    downlink_settings,
                    bodies,
                    _create_bias(downlink_link_ends, downlink_settings, bodies, 1),
                ),
                _create_bias(link_ends, settings, bodies, 1),
            )

        case ObservableType.one_way_differenced_range:

            _check_link_ends(
                link_ends,
                (LinkEndType.transmitter, LinkEndType.receiver),
                observable_type,
            )
            _check_settings_class(settings, requires_specialization=True)

            calculators = [
                create_light_time_calculator(
                    link_ends[LinkEndType.transmitter],
                    link_ends[LinkEndType.receiver],
                    bodies,
                    settings.light_time_corrections,
                    settings.light_time_convergence,
                )
                for _ in range(2)
            ]

            return OneWayDifferencedRangeObservationModel(
                calculators[0],
                calculators[1],
                settings.integration_time_function,
                _create_bias(link_ends, settings, bodies, 1),
            )

        case ObservableType.n_way_range:

            chain = n_way_chain(link_ends)
            _check_settings_class(settings)

            hop_settings = n_way_hop_settings(settings, len(chain) - 1)
            calculators = [
                create_light_time_calculator(
                    transmitter,
                    receiver,
                    bodies,
                    hop.light_time_corrections,
                    hop.light_time_convergence,
                )
                for transmitter, receiver, hop in zip(chain, chain[1:], hop_settings)
            ]
            log.debug(f"n-way range :: {len(calculators)} links")

            return NWayRangeObservationModel(
                calculators,
                getattr(settings, "retransmission_delays", None),
                _create_bias(link_ends, settings, bodies, 1),
            )

        case _:
            raise UnrecognizedTypeError(
                "Error, observable not recognized when making size 1 observation "
                f"model :: {observable_type}"
            )


def _create_size_two_model(
    link_ends: LinkEnds, settings: ObservationSettings, bodies: SystemOfBodies
) -> ObservationModel:

    observable_type = settings.observable_type

    match observable_type:

        case ObservableType.angular_position:

            _check_link_ends(
                link_ends,
                (LinkEndType.transmitter, LinkEndType.receiver),
                observable_type,
            )
            _check_settings_class(settings)

            return AngularPositionObservationModel(
                create_light_time_calculator(
                    link_ends[LinkEndType.transmitter],
                    link_ends[LinkEndType.receiver],
                    bodies,
                    settings.light_time_corrections,
                    settings.light_time_convergence,
                ),
                _create_bias(link_ends, settings, bodies, 2),
            )

        case _:
            raise UnrecognizedTypeError(
                "Error, observable not recognized when making size 2 observation "
                f"model :: {observable_type}"
            )


def _create_size_three_model(
    link_ends: LinkEnds, settings: ObservationSettings, bodies: SystemOfBodies
) -> ObservationModel:

    observable_type = settings.observable_type

    match observable_type:

        case ObservableType.position_observable:

            _check_link_ends(link_ends, (LinkEndType.observed_body,), observable_type)
            _check_settings_class(settings)

            if len(settings.light_time_corrections) > 0:
                raise InvalidSettingsError(
                    "Error when making position observable, found light time "
                    "corrections"
                )

            observed_body = link_ends[LinkEndType.observed_body]
            if not observed_body.is_body_origin:
                raise InvalidLinkEndTopologyError(
                    "Error, cannot have reference point on body for position "
                    f"observable :: {observed_body}"
                )

            return PositionObservationModel(
                get_link_end_state_function(observed_body, bodies),
                _create_bias(link_ends, settings, bodies, 3),
            )

        case _:
            raise UnrecognizedTypeError(
                "Error, observable not recognized when making size 3 observation "
                f"model :: {observable_type}"
            )


def create_observation_model(
    link_ends: LinkEnds,
    observation_settings: ObservationSettings,
    bodies: SystemOfBodies,
    observable_size: int | None = None,
) -> ObservationModel:
    """Build the runtime model of an observable for a set of link ends.

    :param link_ends: Link end roles of the observation
    :param observation_settings: Settings of the observable
    :param bodies: Environment providing states and sub-models
    :param observable_size: Size of the observable, deduced from its type when
        not given
    :return: Observation model with light-time, proper time and bias
        calculators attached
    """

    if not isinstance(link_ends, LinkEnds):
        link_ends = LinkEnds(link_ends)

    size = (
        get_observable_size(observation_settings.observable_type)
        if observable_size is None
        else observable_size
    )
    log.debug(
        f"Creating {observation_settings.observable_type.name} model :: "
        f"{link_ends}"
    )

    match size:
        case 1:
            return _create_size_one_model(link_ends, observation_settings, bodies)
        case 2:
            return _create_size_two_model(link_ends, observation_settings, bodies)
        case 3:
            return _create_size_three_model(link_ends, observation_settings, bodies)
        case _:
            raise UnsupportedDimensionError(
                f"Error, observation models of size {size} not supported"
            )


