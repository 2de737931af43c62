import asyncio
import logging

import fakeredis.aioredis
import pytest

from roundnet.services import Scoreboard, build_write_batch, scoreboard_from_snapshot
from roundnet.store import MatchStore


def test_write_then_rehydrate():
    async def run():
        store = MatchStore(fakeredis.aioredis.FakeRedis(decode_responses=True))
        scoreboard = Scoreboard()
        changes = scoreboard.configure_serve(1, "b", "d")
        changes.update(scoreboard.edit_score("b", 1, 1))
        await store.write(build_write_batch(5, changes, scoreboard.log))
        return await store.read(5)

    data = asyncio.run(run())

    assert data["score"]["set_1"]["team_b"]["score"] == 1
    assert data["score"]["set_1"]["starting_server"] == "b"
    restored = scoreboard_from_snapshot(data)
    assert restored.get_score(1, "b") == 1
    assert [e.team for e in restored.score_history(1)] == ["b"]
    assert restored.current_players().server == "c"


def test_one_hset_per_channel(monkeypatch):
    calls = []

    async def run():
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        original = client.hset

        async def counting_hset(key, *args, **kwargs):
            calls.append(key)
            return await original(key, *args, **kwargs)

        monkeypatch.setattr(client, "hset", counting_hset)
        store = MatchStore(client)
        await store.write(
            {
                "/match-1/active_set": 2,
                "/match-1/score/set_2/team_a/score": 3,
                "/match-2/active_set": 1,
            }
        )
        return await store.read(1), await store.read(2)

    first, second = asyncio.run(run())

    assert sorted(calls) == ["match-1", "match-2"]
    assert first == {"active_set": 2, "score": {"set_2": {"team_a": {"score": 3}}}}
    assert second == {"active_set": 1}


def test_unknown_channel_reads_empty():
    async def run():
        store = MatchStore(fakeredis.aioredis.FakeRedis(decode_responses=True))
        return await store.read(99)

    assert asyncio.run(run()) == {}


@pytest.mark.parametrize("path", ["/scores/a", "/match-1", "active_set"])
def test_write_rejects_paths_outside_a_channel(path):
    async def run():
        store = MatchStore(fakeredis.aioredis.FakeRedis(decode_responses=True))
        await store.write({path: 1})

    with pytest.raises(ValueError):
        asyncio.run(run())


def test_read_skips_fields_that_are_not_json(caplog):
    async def run():
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        await client.hset(
            "match-1",
            mapping={"event_history": "not json [", "score/set_1/team_a/score": "3"},
        )
        return await MatchStore(client).read(1)

    with caplog.at_level(logging.WARNING):
        data = asyncio.run(run())

    assert data == {"score": {"set_1": {"team_a": {"score": 3}}}}
    assert "Ignoring field event_history" in caplog.text
    restored = scoreboard_from_snapshot(data)
    assert len(restored.log) == 0
    assert restored.get_score(1, "a") == 3
