import enum
import typing
from dataclasses import dataclass
from ..errors import InvalidLinkEndTopologyError, UnrecognizedTypeError


class LinkEndType(enum.Enum):

    transmitter = enum.auto()
    reflector1 = enum.auto()
    reflector2 = enum.auto()
    reflector3 = enum.auto()
    reflector4 = enum.auto()
    receiver = enum.auto()
    observed_body = enum.auto()


# Roles of an n-way link, ordered from the transmitter to the receiver
N_WAY_LINK_END_ORDER: tuple[LinkEndType, ...] = (
    LinkEndType.transmitter,
    LinkEndType.reflector1,
    LinkEndType.reflector2,
    LinkEndType.reflector3,
    LinkEndType.reflector4,
    LinkEndType.receiver,
)


class ObservableType(enum.Enum):

    one_way_range = enum.auto()
    one_way_doppler = enum.auto()
    two_way_doppler = enum.auto()
    one_way_differenced_range = enum.auto()
    n_way_range = enum.auto()
    angular_position = enum.auto()
    position_observable = enum.auto()


OBSERVABLE_SIZES: dict[ObservableType, int] = {
    ObservableType.one_way_range: 1,
    ObservableType.one_way_doppler: 1,
    ObservableType.two_way_doppler: 1,
    ObservableType.one_way_differenced_range: 1,
    ObservableType.n_way_range: 1,
    ObservableType.angular_position: 2,
    ObservableType.position_observable: 3,
}


def observable_size(observable_type: ObservableType) -> int:

    if observable_type not in OBSERVABLE_SIZES:
        raise UnrecognizedTypeError(
            f"Size of observable {observable_type} not defined"
        )
    return OBSERVABLE_SIZES[observable_type]


@dataclass(frozen=True)
class LinkEndId:

    body_name: str
    reference_point: str = ""

    @property
    def is_body_origin(self) -> bool:
        return self.reference_point == ""

    def __str__(self) -> str:
        if self.is_body_origin:
            return self.body_name
        return f"{self.reference_point} in {self.body_name}"


def body_origin_link_end_id(body_name: str) -> LinkEndId:
    return LinkEndId(body_name)


def body_reference_point_link_end_id(
    body_name: str, reference_point_id: str
) -> LinkEndId:
    return LinkEndId(body_name, reference_point_id)


class LinkEnds(typing.Mapping[LinkEndType, LinkEndId]):
    """Immutable, hashable mapping from link end roles to link end ids.

    Iteration follows the declaration order of ``LinkEndType``, so n-way
    links iterate from the transmitter towards the receiver.
    """

    def __init__(
        self,
        link_ends: typing.Mapping[LinkEndType, LinkEndId | str] | None = None,
        **kwargs: LinkEndId | str,
    ) -> None:

        # Collect roles from mapping and keywords
        raw: dict[LinkEndType, LinkEndId | str] = dict(link_ends or {})
        for role, link_end in kwargs.items():
            raw[LinkEndType[role]] = link_end

        # Plain strings refer to body origins
        self._link_ends: dict[LinkEndType, LinkEndId] = {
            role: (
                link_end
                if isinstance(link_end, LinkEndId)
                else body_origin_link_end_id(link_end)
            )
            for role, link_end in sorted(
                raw.items(), key=lambda item: item[0].value
            )
        }
        self._hash = hash(tuple(self._link_ends.items()))

        return None

    def __getitem__(self, role: LinkEndType) -> LinkEndId:
        return self._link_ends[role]

    def __iter__(self) -> typing.Iterator[LinkEndType]:
        return iter(self._link_ends)

    def __len__(self) -> int:
        return len(self._link_ends)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LinkEnds):
            return self._link_ends == other._link_ends
        return NotImplemented

    def __repr__(self) -> str:
        contents = ", ".join(
            f"{role.name}: {link_end}" for role, link_end in self.items()
        )
        return f"LinkEnds({contents})"


def n_way_chain(link_ends: LinkEnds) -> list[LinkEndId]:
    """Link end ids of an n-way link, from transmitter to receiver.

    Every role in the link must be preceded by all earlier roles of the
    chain, and the chain must start at a transmitter and end at a receiver.
    """

    if len(link_ends) < 2:
        raise InvalidLinkEndTopologyError(
            f"Expected at least 2 link ends for n-way link, found {len(link_ends)}"
        )

    for role in (LinkEndType.transmitter, LinkEndType.receiver):
        if role not in link_ends:
            raise InvalidLinkEndTopologyError(
                f"No {role.name} found in n-way link :: {link_ends}"
            )

    if LinkEndType.observed_body in link_ends:
        raise InvalidLinkEndTopologyError(
            f"Unexpected observed_body in n-way link :: {link_ends}"
        )

    # Intermediate roles must be contiguous
    for position, role in enumerate(N_WAY_LINK_END_ORDER[1:-1], start=1):
        previous_role = N_WAY_LINK_END_ORDER[position - 1]
        if role in link_ends and previous_role not in link_ends:
            raise InvalidLinkEndTopologyError(
                f"Found {role.name} without {previous_role.name} in n-way link"
            )

    return [link_ends[role] for role in N_WAY_LINK_END_ORDER if role in link_ends]


def link_end_indices_for_link_end_type(
    observable_type: ObservableType,
    link_end_type: LinkEndType,
    number_of_link_ends: int,
) -> list[int]:
    """Indices of a role in the link end times/states of an observable."""

    match observable_type:

        case (
            ObservableType.one_way_range
            | ObservableType.one_way_doppler
            | ObservableType.angular_position
        ):

            match link_end_type:
                case LinkEndType.transmitter:
                    return [0]
                case LinkEndType.receiver:
                    return [1]

        case ObservableType.one_way_differenced_range:

            match link_end_type:
                case LinkEndType.transmitter:
                    return [0, 2]
                case LinkEndType.receiver:
                    return [1, 3]

        case ObservableType.two_way_doppler:

            match link_end_type:
                case LinkEndType.transmitter:
                    return [0]
                case LinkEndType.reflector1:
                    return [1, 2]
                case LinkEndType.receiver:
                    return [3]

        case ObservableType.n_way_range:

            if link_end_type == LinkEndType.transmitter:
                return [0]
            if link_end_type == LinkEndType.receiver:
                return [2 * (number_of_link_ends - 1) - 1]

            # Reflectors are both received at and transmitted from
            if link_end_type in N_WAY_LINK_END_ORDER[1:-1]:
                position = N_WAY_LINK_END_ORDER.index(link_end_type)
                if position < number_of_link_ends - 1:
                    return [2 * position - 1, 2 * position]

        case ObservableType.position_observable:

            if link_end_type == LinkEndType.observed_body:
                return [0]

        case _:
            raise UnrecognizedTypeError(
                f"Link end indices not defined for observable {observable_type}"
            )

    raise InvalidLinkEndTopologyError(
        f"Link end {link_end_type.name} not available for "
        f"{observable_type.name} with {number_of_link_ends} link ends"
    )
