import pytest

from roundnet.scoring import rotation

VALID_PAIRS = sorted(rotation.ROTATION_TABLES)


def test_eight_legal_pairs():
    assert len(VALID_PAIRS) == 8
    for server, receiver in VALID_PAIRS:
        assert rotation.team_of(server) != rotation.team_of(receiver)


@pytest.mark.parametrize("pair", VALID_PAIRS, ids=lambda p: "".join(p))
def test_point_zero_is_the_starting_pair(pair):
    table = rotation.rotation_table(*pair)

    assert rotation.server_at(table, 0) == pair[0]
    assert rotation.receiver_at(table, 0) == pair[1]


@pytest.mark.parametrize("pair", VALID_PAIRS, ids=lambda p: "".join(p))
def test_server_and_receiver_oppose_in_normal_play(pair):
    table = rotation.rotation_table(*pair)
    for i in range(100):
        server = rotation.server_at(table, i)
        receiver = rotation.receiver_at(table, i)
        assert rotation.team_of(server) != rotation.team_of(receiver), i


@pytest.mark.parametrize("win_points", [15, 21])
@pytest.mark.parametrize("pair", VALID_PAIRS, ids=lambda p: "".join(p))
def test_server_and_receiver_oppose_in_overtime(pair, win_points):
    table = rotation.rotation_table(*pair)
    for i in range(2 * win_points - 2, 2 * win_points + 40):
        server = rotation.server_at(table, i, overtime=True, win_points=win_points)
        receiver = rotation.receiver_at(table, i, overtime=True, win_points=win_points)
        assert server is not None and receiver is not None
        assert rotation.team_of(server) != rotation.team_of(receiver), i


def test_double_serve_sequence_for_a_c():
    table = rotation.rotation_table("a", "c")
    servers = [rotation.server_at(table, i) for i in range(9)]
    receivers = [rotation.receiver_at(table, i) for i in range(9)]

    assert servers == ["a", "d", "d", "b", "b", "c", "c", "a", "a"]
    assert receivers == ["c", "b", "a", "c", "d", "a", "b", "d", "c"]


def test_overtime_sequence_for_a_c_at_15():
    table = rotation.rotation_table("a", "c")
    servers = [rotation.server_at(table, i, overtime=True, win_points=15) for i in range(28, 32)]
    receivers = [rotation.receiver_at(table, i, overtime=True, win_points=15) for i in range(28, 32)]

    assert servers == ["b", "c", "a", "d"]
    assert receivers == ["c", "a", "d", "b"]


@pytest.mark.parametrize("pair", [("a", "b"), ("c", "d"), ("a", "a"), ("x", "c"), (None, None)])
def test_illegal_pair_has_no_rotation(pair):
    table = rotation.rotation_table(*pair)

    assert table is None
    assert rotation.server_at(table, 5) is None
    assert rotation.receiver_at(table, 5) is None


def test_overtime_receiver_unavailable_for_unsupported_target():
    table = rotation.rotation_table("a", "c")
    assert rotation.receiver_at(table, 40, overtime=True, win_points=18) is None


def test_negative_point_index_rejected():
    table = rotation.rotation_table("a", "c")
    with pytest.raises(ValueError):
        rotation.server_at(table, -1)


def test_serving_team_follows_server():
    table = rotation.rotation_table("a", "c")
    for total in range(30):
        expected = rotation.team_of(rotation.server_at(table, total))
        assert rotation.serving_team_at("a", total) == expected, total


@pytest.mark.parametrize(
    "total, overtime, expected",
    [(0, False, 1), (1, False, 1), (2, False, 2), (3, False, 1), (4, False, 2), (29, True, 1)],
)
def test_serve_number(total, overtime, expected):
    assert rotation.serve_number_at(total, overtime=overtime) == expected
