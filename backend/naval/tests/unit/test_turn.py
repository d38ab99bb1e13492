import pytest
from pydantic import ValidationError

from naval.logic.enums import GameStatus, Orientation
from naval.logic.exceptions import (
    InvalidActionError,
    InvalidPlacementError,
    InvalidTransitionError,
    OutOfTurnError,
    RepeatAttackError,
    StateInconsistencyError,
)
from naval.logic.record import Fleet
from naval.logic.settings import GameRules
from naval.logic.turn import (
    attack_changes,
    can_act,
    creation_changes,
    ensure_transition,
    join_changes,
    merge_changes,
    new_record,
    placement_changes,
)
from naval.tests.conftest import (
    DUEL_RULES,
    SKIRMISH_RULES,
    create_fleet,
    create_playing_record,
    create_record,
    create_ship,
)


class TestEnsureTransition:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (GameStatus.WAITING, GameStatus.SETUP),
            (GameStatus.SETUP, GameStatus.PLAYING),
            (GameStatus.PLAYING, GameStatus.PLAYING),
            (GameStatus.PLAYING, GameStatus.FINISHED),
            (GameStatus.SETUP, GameStatus.SETUP),
        ],
    )
    def test_allowed(self, current, target):
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (GameStatus.WAITING, GameStatus.PLAYING),
            (GameStatus.SETUP, GameStatus.WAITING),
            (GameStatus.PLAYING, GameStatus.SETUP),
            (GameStatus.FINISHED, GameStatus.PLAYING),
            (GameStatus.FINISHED, GameStatus.FINISHED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError, match=f"{current.value} -> {target.value}"):
            ensure_transition(current, target)


class TestCreateAndJoin:
    def test_creation_changes_start_waiting_with_default_rules(self):
        changes = creation_changes("  Alice ")
        assert changes.player1 == "Alice"
        assert changes.status is GameStatus.WAITING
        assert changes.rules == GameRules()

    def test_creation_requires_a_name(self):
        with pytest.raises(InvalidActionError, match="Please enter your name"):
            creation_changes("   ")

    def test_join_moves_to_setup(self):
        record = create_record(status=GameStatus.WAITING, player2=None)
        changes = join_changes(record, "Bob")
        assert changes.to_wire() == {"player2": "Bob", "status": "setup"}

    def test_join_full_game_rejected(self):
        with pytest.raises(InvalidActionError, match="no longer open"):
            join_changes(create_record(), "Carol")

    def test_join_with_creator_name_rejected(self):
        record = create_record(status=GameStatus.WAITING, player2=None)
        with pytest.raises(InvalidActionError, match="already taken"):
            join_changes(record, "Alice")

    def test_join_requires_a_name(self):
        record = create_record(status=GameStatus.WAITING, player2=None)
        with pytest.raises(InvalidActionError, match="Please enter your name"):
            join_changes(record, "")


class TestCanAct:
    def test_setup_while_fleet_incomplete(self):
        record = create_record(player1_board=create_fleet(create_ship("Destroyer", (0, 0), 2)))
        assert not can_act(record, 1)
        assert can_act(record, 2)

    def test_playing_only_for_current_player(self):
        record = create_playing_record(current_player=2)
        assert can_act(record, 2)
        assert not can_act(record, 1)

    def test_nobody_acts_while_waiting(self):
        assert not can_act(create_record(status=GameStatus.WAITING, player2=None), 1)


class TestPlacementChanges:
    def test_destroyer_at_origin(self):
        ship, changes = placement_changes(create_record(), 1, 0, 0, Orientation.HORIZONTAL)

        assert ship.name == "Destroyer"
        assert ship.positions == ((0, 0), (0, 1))
        assert changes.to_wire() == {
            "player1Board": {"ships": [{"name": "Destroyer", "positions": [[0, 0], [0, 1]], "hits": 0}]},
        }

    def test_places_catalog_in_order(self):
        record = create_record(rules=SKIRMISH_RULES)
        ship, changes = placement_changes(record, 2, 0, 0, Orientation.VERTICAL)
        record = merge_changes(record, changes.to_wire())
        second, _ = placement_changes(record, 2, 0, 1, Orientation.HORIZONTAL)

        assert ship.name == "Cruiser"
        assert ship.positions == ((0, 0), (1, 0), (2, 0))
        assert second.name == "Destroyer"

    def test_first_fleet_complete_keeps_setup(self):
        _, changes = placement_changes(create_record(), 2, 3, 3, Orientation.HORIZONTAL)
        assert changes.status is None
        assert "status" not in changes.to_wire()

    @pytest.mark.parametrize("last_player", [1, 2])
    def test_both_fleets_complete_starts_game_with_player_one(self, last_player):
        first_player = 2 if last_player == 1 else 1
        record = create_record(**{f"player{first_player}_board": create_fleet(create_ship("Destroyer", (4, 0), 2))})

        _, changes = placement_changes(record, last_player, 0, 0, Orientation.HORIZONTAL)

        assert changes.status is GameStatus.PLAYING
        assert changes.current_player == 1
        merged = merge_changes(record, changes.to_wire())
        assert merged.status is GameStatus.PLAYING

    def test_out_of_bounds_placement_raises(self):
        with pytest.raises(InvalidPlacementError):
            placement_changes(create_record(), 1, 0, 4, Orientation.HORIZONTAL)

    def test_overlap_with_own_ship_raises(self):
        record = create_record(rules=SKIRMISH_RULES, player1_board=create_fleet(create_ship("Cruiser", (0, 0), 3)))
        with pytest.raises(InvalidPlacementError):
            placement_changes(record, 1, 0, 2, Orientation.VERTICAL)

    def test_complete_fleet_rejected(self):
        record = create_record(player1_board=create_fleet(create_ship("Destroyer", (0, 0), 2)))
        with pytest.raises(InvalidActionError, match="already placed"):
            placement_changes(record, 1, 2, 2, Orientation.HORIZONTAL)

    def test_placement_outside_setup_rejected(self):
        with pytest.raises(InvalidActionError, match="during setup"):
            placement_changes(create_playing_record(), 1, 4, 0, Orientation.HORIZONTAL)


class TestAttackChanges:
    def test_miss_passes_the_turn(self):
        resolution, changes = attack_changes(create_playing_record(), 1, (4, 4))

        assert not resolution.hit
        assert changes.current_player == 2
        assert changes.status is GameStatus.PLAYING
        assert changes.player1_attacks == ((4, 4),)

    def test_hit_also_passes_the_turn(self):
        resolution, changes = attack_changes(create_playing_record(), 1, (2, 2))

        assert resolution.hit
        assert changes.current_player == 2
        assert changes.player2_board.ships[0].hits == 1

    def test_winning_attack_finishes_the_game(self):
        record = create_playing_record(
            player1_attacks=[(2, 2)],
            player2_board=create_fleet(create_ship("Destroyer", (2, 2), 2, hits=1)),
        )

        resolution, changes = attack_changes(record, 1, (2, 3))

        assert resolution.all_sunk
        assert resolution.sunk_ship_name == "Destroyer"
        assert changes.to_wire()["status"] == "finished"
        assert changes.to_wire()["currentPlayer"] is None
        assert changes.winner == "Alice"
        merged = merge_changes(record, changes.to_wire())
        assert merged.winner == "Alice"

    def test_out_of_turn_rejected(self):
        with pytest.raises(OutOfTurnError, match="Not your turn"):
            attack_changes(create_playing_record(current_player=2), 1, (4, 4))

    def test_repeat_attack_rejected(self):
        record = create_playing_record(player1_attacks=[(4, 4)])
        with pytest.raises(RepeatAttackError, match="Already attacked"):
            attack_changes(record, 1, (4, 4))

    def test_repeat_attack_is_an_invalid_action(self):
        assert issubclass(RepeatAttackError, InvalidActionError)
        assert issubclass(OutOfTurnError, InvalidActionError)

    def test_attack_before_start_rejected(self):
        with pytest.raises(InvalidActionError, match="not started"):
            attack_changes(create_record(), 1, (0, 0))

    def test_attack_off_the_board_rejected(self):
        with pytest.raises(InvalidActionError, match="outside the board"):
            attack_changes(create_playing_record(), 1, (5, 5))

    def test_missing_defender_fleet_is_inconsistent(self):
        record = create_playing_record().model_copy(update={"player2_board": Fleet()})
        with pytest.raises(StateInconsistencyError, match="fleet of player 2"):
            attack_changes(record, 1, (0, 0))


class TestNewRecord:
    def test_assigns_id_and_first_version(self):
        record = new_record("XYZ789", creation_changes("Alice", DUEL_RULES).to_wire())
        assert record.game_id == "XYZ789"
        assert record.version == 1
        assert record.status is GameStatus.WAITING

    def test_store_owned_fields_rejected(self):
        with pytest.raises(InvalidActionError, match="version"):
            new_record("XYZ789", {"player1": "Alice", "version": 7})

    def test_must_start_waiting(self):
        with pytest.raises(InvalidActionError, match="waiting"):
            new_record("XYZ789", {"player1": "Alice", "player2": "Bob", "status": "setup"})

    def test_invalid_record_raises_validation_error(self):
        with pytest.raises(ValidationError):
            new_record("XYZ789", {"player1": ""})


class TestMergeChanges:
    def test_keeps_version_and_unchanged_fields(self):
        record = create_record(version=4)
        merged = merge_changes(record, {"player2Board": {"ships": [{"name": "Destroyer", "positions": [[1, 1], [1, 2]]}]}})
        assert merged.version == 4
        assert merged.player1 == "Alice"
        assert merged.player2_board.ships[0].positions == ((1, 1), (1, 2))

    def test_finished_record_accepts_no_updates(self):
        record = create_playing_record(
            status=GameStatus.FINISHED,
            current_player=None,
            winner="Alice",
            player1_attacks=[(2, 2), (2, 3)],
            player2_board=create_fleet(create_ship("Destroyer", (2, 2), 2, hits=2)),
        )
        with pytest.raises(InvalidActionError, match="finished"):
            merge_changes(record, {"winner": "Bob"})

    @pytest.mark.parametrize("field", ["gameId", "version", "rules", "player1", "bogus"])
    def test_fixed_fields_rejected(self, field):
        with pytest.raises(InvalidActionError, match="cannot be updated"):
            merge_changes(create_record(), {field: "x"})

    def test_second_player_cannot_be_replaced(self):
        with pytest.raises(InvalidActionError, match="cannot be replaced"):
            merge_changes(create_record(), {"player2": "Mallory"})

    def test_backward_transition_rejected(self):
        with pytest.raises(InvalidTransitionError):
            merge_changes(create_playing_record(), {"status": "setup", "currentPlayer": None})

    def test_invariant_violation_rejected(self):
        with pytest.raises(ValidationError):
            merge_changes(create_record(), {"status": "playing", "currentPlayer": 1})
