import pytest

from astrofactory.errors import InvalidLinkEndTopologyError, UnrecognizedTypeError
from astrofactory.estimation.links import (
    LinkEndId,
    LinkEnds,
    LinkEndType,
    ObservableType,
    link_end_indices_for_link_end_type,
    n_way_chain,
    observable_size,
)


def test_link_ends_from_strings_and_ids():

    link_ends = LinkEnds(
        receiver="Spacecraft", transmitter=LinkEndId("Earth", "DSS-63")
    )

    # Roles are ordered from transmitter to receiver
    assert list(link_ends) == [LinkEndType.transmitter, LinkEndType.receiver]
    assert link_ends[LinkEndType.receiver].is_body_origin
    assert link_ends[LinkEndType.transmitter].reference_point == "DSS-63"
    assert str(link_ends[LinkEndType.transmitter]) == "DSS-63 in Earth"


def test_link_ends_are_hashable_values():

    first = LinkEnds({LinkEndType.transmitter: "Earth", LinkEndType.receiver: "Moon"})
    second = LinkEnds(receiver="Moon", transmitter="Earth")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first: 1, second: 2}) == 1


def test_observable_sizes():

    assert observable_size(ObservableType.one_way_range) == 1
    assert observable_size(ObservableType.angular_position) == 2
    assert observable_size(ObservableType.position_observable) == 3


def test_n_way_chain_order():

    link_ends = LinkEnds(
        receiver="Earth",
        reflector2="Moon",
        transmitter="Earth",
        reflector1="Spacecraft",
    )

    assert [link_end.body_name for link_end in n_way_chain(link_ends)] == [
        "Earth",
        "Spacecraft",
        "Moon",
        "Earth",
    ]


@pytest.mark.parametrize(
    "link_ends",
    [
        LinkEnds(transmitter="Earth"),
        LinkEnds(transmitter="Earth", reflector1="Moon"),
        LinkEnds(reflector1="Moon", receiver="Earth"),
        LinkEnds(transmitter="Earth", reflector2="Moon", receiver="Earth"),
        LinkEnds(transmitter="Earth", observed_body="Moon", receiver="Earth"),
    ],
)
def test_n_way_chain_invalid_topology(link_ends):

    with pytest.raises(InvalidLinkEndTopologyError):
        n_way_chain(link_ends)


def test_link_end_indices():

    assert link_end_indices_for_link_end_type(
        ObservableType.one_way_differenced_range, LinkEndType.receiver, 2
    ) == [1, 3]
    assert link_end_indices_for_link_end_type(
        ObservableType.two_way_doppler, LinkEndType.reflector1, 3
    ) == [1, 2]
    assert link_end_indices_for_link_end_type(
        ObservableType.n_way_range, LinkEndType.reflector2, 4
    ) == [3, 4]
    assert link_end_indices_for_link_end_type(
        ObservableType.n_way_range, LinkEndType.receiver, 4
    ) == [5]


def test_link_end_indices_unavailable_role():

    with pytest.raises(InvalidLinkEndTopologyError):
        link_end_indices_for_link_end_type(
            ObservableType.one_way_range, LinkEndType.reflector1, 2
        )

    with pytest.raises(UnrecognizedTypeError):
        link_end_indices_for_link_end_type("bogus", LinkEndType.receiver, 2)
