"""Roundnet serve and receive rotation.

Service opens with a single serve, then each side serves two points in a row
(double-serve turns). Once a set enters overtime every point is a single
serve and receivers follow a dedicated overtime order.

Every set is opened by one ``(starting server, starting receiver)`` pair. Only
eight pairs are legal (a server faces one of the two opposing players) and
each has a fixed table of orders, looked up by that pair.

Players are ``a``/``b`` (team A) and ``c``/``d`` (team B).
"""

from dataclasses import dataclass
import math
from typing import Dict, Optional, Tuple

PLAYER_TEAMS = {"a": "a", "b": "a", "c": "b", "d": "b"}


@dataclass(frozen=True)
class RotationTable:
    server: str
    receiver: str
    serve_order: Tuple[str, ...]
    receiving_order: Tuple[str, ...]
    overtime_order_15: Tuple[str, ...]
    overtime_order_21: Tuple[str, ...]

    @property
    def key(self) -> Tuple[str, str]:
        return (self.server, self.receiver)

    def overtime_order(self, win_points: int) -> Optional[Tuple[str, ...]]:
        if win_points == 15:
            return self.overtime_order_15
        if win_points == 21:
            return self.overtime_order_21
        return None


def _table(server, receiver, serve, receiving, overtime_15, overtime_21) -> RotationTable:
    return RotationTable(
        server=server,
        receiver=receiver,
        serve_order=tuple(serve),
        receiving_order=tuple(receiving),
        overtime_order_15=tuple(overtime_15),
        overtime_order_21=tuple(overtime_21),
    )


ROTATION_TABLES: Dict[Tuple[str, str], RotationTable] = {
    t.key: t
    for t in (
        _table("a", "c", "adbc", "cbacdabd", "adbc", "bdac"),
        _table("a", "d", "acbd", "dbadcabc", "acbd", "bcad"),
        _table("b", "c", "bdac", "cabcdbad", "bdac", "adbc"),
        _table("b", "d", "bcad", "dabdcbac", "bcad", "acbd"),
        _table("c", "a", "cbda", "adcabcdb", "cbda", "dbca"),
        _table("c", "b", "cadb", "bdcbacda", "cadb", "dacb"),
        _table("d", "a", "dbca", "acdabdcb", "dbca", "cbda"),
        _table("d", "b", "dacb", "bcdbadca", "dacb", "cadb"),
    )
}


def rotation_table(server: Optional[str], receiver: Optional[str]) -> Optional[RotationTable]:
    """Return the table for a starting pair, or ``None`` if the pair is not legal."""
    return ROTATION_TABLES.get((server, receiver))


def team_of(player: Optional[str]) -> Optional[str]:
    return PLAYER_TEAMS.get(player)


def _rem(value: float, divisor: int) -> float:
    # Remainder takes the sign of the dividend, so phases before the overtime
    # anchor stay negative and fall outside the table.
    return math.fmod(value, divisor)


def _pick(order: Tuple[str, ...], start: int, step: float) -> Optional[str]:
    index = _rem(start + step, len(order))
    if index < 0:
        return None
    return order[int(index)]


def _check_index(point_index: int) -> None:
    if point_index < 0:
        raise ValueError("point_index must be >= 0")


def server_at(
    table: Optional[RotationTable],
    point_index: int,
    *,
    overtime: bool = False,
    win_points: int = 15,
) -> Optional[str]:
    """Player serving point ``point_index`` (0-based) of a set."""
    _check_index(point_index)
    if table is None:
        return None
    if point_index == 0:
        return table.server

    start = table.serve_order.index(table.server)
    if not overtime:
        step = math.floor(((point_index + 1) / 2) % 4)
    else:
        # Overtime begins logically at this point count; realign the
        # double-serve phase there and advance one server per point.
        till_overtime = win_points * 2 - 2
        step = math.floor(
            _rem(_rem((till_overtime + 1) / 2, 4) + _rem(point_index - till_overtime, 4), 4)
        )
    return _pick(table.serve_order, start, step)


def receiver_at(
    table: Optional[RotationTable],
    point_index: int,
    *,
    overtime: bool = False,
    win_points: int = 15,
) -> Optional[str]:
    """Player receiving point ``point_index`` (0-based) of a set."""
    _check_index(point_index)
    if table is None:
        return None
    if point_index == 0:
        return table.receiver

    start = table.receiving_order.index(table.receiver)
    if not overtime:
        return _pick(table.receiving_order, start, point_index % 8)

    order = table.overtime_order(win_points)
    if order is None:
        return None
    return _pick(order, start, _rem(point_index - 1, 4))


def serving_team_at(starting_team: str, total_points: int, *, overtime: bool = False) -> str:
    """Team serving after ``total_points`` have been played in a set."""
    other = "b" if starting_team == "a" else "a"
    if overtime:
        return starting_team if total_points % 2 == 0 else other
    if total_points == 0:
        return starting_team
    # The opening single serve is followed by the other side's double turn.
    turn = (total_points - 1) // 2
    return other if turn % 2 == 0 else starting_team


def serve_number_at(total_points: int, *, overtime: bool = False) -> int:
    """1 or 2 within the current service turn; overtime is always single serve."""
    if overtime or total_points == 0:
        return 1
    return (total_points - 1) % 2 + 1
