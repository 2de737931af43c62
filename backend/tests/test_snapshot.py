import logging

from roundnet.services import EventLog, apply_snapshot, build_write_batch, scoreboard_from_snapshot
from roundnet.services.snapshot import channel_path, flatten_paths


SNAPSHOT = {
    "active_set": "2",
    "score": {
        "set_1": {
            "team_a": {"score": 15},
            "team_b": {"score": "13"},
            "starting_server": "A",
            "starting_receiver": "c",
        },
        "set_2": {"team_a": {"score": 1}},
        "squad": {"team_a": {"squad_score": 2}},
    },
    "game_settings": {"win_points": "21", "hardcap": 25, "set_mode": 3},
    "teams_info": {"team_b": {"player_1": "Robin"}},
    "event_history": [{"type": "score", "team": "a", "set": 2, "score": 1}],
}


def test_flatten_paths_keeps_event_history_whole():
    paths = flatten_paths(SNAPSHOT)

    assert paths["score.set_1.team_b.score"] == "13"
    assert paths["game_settings.set_mode"] == 3
    assert paths["event_history"] == SNAPSHOT["event_history"]
    assert not any(p.startswith("event_history.") for p in paths)


def test_scoreboard_from_snapshot():
    scoreboard = scoreboard_from_snapshot(SNAPSHOT)
    state = scoreboard.state

    assert state.active_set == 2
    assert scoreboard.get_score(1, "a") == 15
    assert scoreboard.get_score(1, "b") == 13
    assert scoreboard.get_score(2, "a") == 1
    assert state.squad_scores["a"] == 2
    assert scoreboard.serve_configuration(1).starting_server == "a"
    assert scoreboard.rotation_table(1).key == ("a", "c")
    assert scoreboard.player_name("c") == "Robin"
    assert scoreboard.settings.win_points == 21
    assert scoreboard.settings.set_mode == "3"
    assert len(scoreboard.score_history(2)) == 1
    assert scoreboard.set_winner(1) is None


def test_missing_or_malformed_snapshot_starts_fresh(caplog):
    assert scoreboard_from_snapshot(None).active_set == 1

    with caplog.at_level(logging.WARNING):
        scoreboard = scoreboard_from_snapshot(["nope"])

    assert scoreboard.total_points() == 0
    assert "Snapshot is not a mapping" in caplog.text


def test_apply_snapshot_skips_locked_paths(scoreboard, caplog):
    data = {"score": {"set_1": {"team_a": {"score": 5}, "team_b": {"score": 4}}}, "active_set": 3}

    with caplog.at_level(logging.INFO):
        changes = apply_snapshot(scoreboard, data, ["score.set_1.team_a.score"])

    assert changes == {"score.set_1.team_b.score": 4, "active_set": 3}
    assert scoreboard.get_score(1, "a") == 0
    assert "Skipping locked field: score.set_1.team_a.score" in caplog.text


def test_apply_snapshot_warns_on_bad_values(scoreboard, caplog):
    data = {
        "game_settings": {"hardcap": "abc", "win_points": 18},
        "score": {"set_9": {"team_a": {"score": 1}}, "set_1": {"team_b": {"score": -2}}},
        "active_set": 0,
    }

    with caplog.at_level(logging.WARNING):
        changes = apply_snapshot(scoreboard, data)

    assert changes == {"game_settings.win_points": 18}
    assert scoreboard.settings.hardcap == 21
    assert "game_settings.hardcap is not a number" in caplog.text
    assert "win_points=18" in caplog.text
    assert "no such set" in caplog.text
    assert "Ignoring active_set=0" in caplog.text
    assert scoreboard.get_score(1, "b") == 0


def test_channel_path():
    assert channel_path(4, "score.set_1.team_a.score") == "/match-4/score/set_1/team_a/score"


def test_write_batch_always_carries_event_history():
    log = EventLog()
    log.on_score_edit("a", 1, 1)

    batch = build_write_batch(2, {}, log)

    assert batch == {"/match-2/event_history": log.to_wire()}


def test_write_batch_coerces_and_drops_bad_integers(caplog):
    changes = {
        "score.set_1.team_a.score": "x",
        "score.set_1.team_b.score": "7",
        "score.set_1.starting_server": "a",
        "active_set": "2",
        "teams_info.team_a.player_1": "Kim",
    }

    with caplog.at_level(logging.WARNING):
        batch = build_write_batch(1, changes, EventLog())

    assert "/match-1/score/set_1/team_a/score" not in batch
    assert batch["/match-1/score/set_1/team_b/score"] == 7
    assert batch["/match-1/score/set_1/starting_server"] == "a"
    assert batch["/match-1/active_set"] == 2
    assert batch["/match-1/teams_info/team_a/player_1"] == "Kim"
    assert "can't be converted to integer" in caplog.text
