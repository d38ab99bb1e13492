import pytest
from pydantic import ValidationError

from naval.logic.enums import GameStatus
from naval.logic.record import MUTABLE_WIRE_FIELDS, Fleet, GameRecord, RecordChanges, Ship
from naval.logic.settings import CLASSIC_FLEET, GameRules
from naval.tests.conftest import create_fleet, create_playing_record, create_record, create_ship


class TestShip:
    def test_sunk_when_hits_equal_length(self):
        assert create_ship("Destroyer", (0, 0), 2, hits=2).is_sunk
        assert not create_ship("Destroyer", (0, 0), 2, hits=1).is_sunk

    def test_hits_above_length_rejected(self):
        with pytest.raises(ValidationError, match="3 hits"):
            Ship(name="Destroyer", positions=((0, 0), (0, 1)), hits=3)

    def test_non_contiguous_positions_rejected(self):
        with pytest.raises(ValidationError, match="contiguous"):
            Ship(name="Destroyer", positions=((0, 0), (0, 2)))

    def test_diagonal_positions_rejected(self):
        with pytest.raises(ValidationError, match="contiguous"):
            Ship(name="Destroyer", positions=((0, 0), (1, 1)))


class TestFleet:
    def test_overlapping_ships_rejected(self):
        with pytest.raises(ValidationError, match="overlaps"):
            Fleet(ships=(create_ship("A", (0, 0), 2), create_ship("B", (0, 1), 2)))

    def test_empty_fleet_is_never_all_sunk(self):
        assert not Fleet().all_sunk


class TestGameRecordInvariants:
    def test_waiting_game_has_no_second_player(self):
        with pytest.raises(ValidationError, match="waiting game"):
            create_record(status=GameStatus.WAITING, player2="Bob")

    def test_setup_requires_second_player(self):
        with pytest.raises(ValidationError, match="requires a second player"):
            create_record(status=GameStatus.SETUP, player2=None)

    def test_duplicate_player_names_rejected(self):
        with pytest.raises(ValidationError, match="must differ"):
            create_record(player2="Alice")

    def test_playing_requires_current_player(self):
        with pytest.raises(ValidationError, match="currentPlayer must be 1 or 2"):
            create_playing_record(current_player=None)

    def test_current_player_only_while_playing(self):
        with pytest.raises(ValidationError, match="currentPlayer must be empty"):
            create_record(current_player=1)

    def test_playing_requires_complete_fleets(self):
        with pytest.raises(ValidationError, match="both fleets"):
            create_playing_record(player2_board=Fleet())

    def test_attacks_not_allowed_in_setup(self):
        with pytest.raises(ValidationError, match="attacks are not allowed"):
            create_record(player1_attacks=[(0, 0)])

    def test_duplicate_attacks_rejected(self):
        with pytest.raises(ValidationError, match="duplicates"):
            create_playing_record(player1_attacks=[(4, 4), (4, 4)])

    def test_attack_off_the_board_rejected(self):
        with pytest.raises(ValidationError, match="leaves the board"):
            create_playing_record(player1_attacks=[(5, 0)])

    def test_hit_counter_must_match_incoming_attacks(self):
        with pytest.raises(ValidationError, match="expected 0"):
            create_playing_record(player2_board=create_fleet(create_ship("Destroyer", (2, 2), 2, hits=1)))

    def test_hit_counter_matching_attacks_is_valid(self):
        record = create_playing_record(
            current_player=2,
            player1_attacks=[(2, 2)],
            player2_board=create_fleet(create_ship("Destroyer", (2, 2), 2, hits=1)),
        )
        assert record.player2_board.ships[0].hits == 1

    def test_ship_not_in_catalog_rejected(self):
        with pytest.raises(ValidationError, match="not in the ship catalog"):
            create_record(player1_board=create_fleet(create_ship("Carrier", (0, 0), 5)))

    def test_ship_with_wrong_length_rejected(self):
        with pytest.raises(ValidationError, match="must have 2 cells"):
            create_record(player1_board=create_fleet(create_ship("Destroyer", (0, 0), 3)))

    def test_too_many_ships_of_a_kind_rejected(self):
        fleet = create_fleet(create_ship("Destroyer", (0, 0), 2), create_ship("Destroyer", (1, 0), 2))
        with pytest.raises(ValidationError, match="too many Destroyer"):
            create_record(player1_board=fleet)

    def test_ship_outside_board_rejected(self):
        with pytest.raises(ValidationError, match="outside"):
            create_record(player1_board=create_fleet(create_ship("Destroyer", (0, 4), 2)))

    def test_finished_requires_winner(self):
        with pytest.raises(ValidationError, match="must have a winner"):
            create_playing_record(status=GameStatus.FINISHED, current_player=None)

    def test_winner_must_have_sunk_the_losing_fleet(self):
        with pytest.raises(ValidationError, match="still floats"):
            create_playing_record(status=GameStatus.FINISHED, current_player=None, winner="Alice")

    def test_winner_must_be_a_player(self):
        with pytest.raises(ValidationError, match="not a player"):
            create_playing_record(status=GameStatus.FINISHED, current_player=None, winner="Carol")

    def test_finished_game_with_sunk_fleet_is_valid(self):
        record = create_playing_record(
            status=GameStatus.FINISHED,
            current_player=None,
            winner="Alice",
            player1_attacks=[(2, 2), (2, 3)],
            player2_board=create_fleet(create_ship("Destroyer", (2, 2), 2, hits=2)),
        )
        assert record.player2_board.all_sunk


class TestWireFormat:
    def test_to_wire_uses_camel_case_keys(self):
        wire = create_playing_record().to_wire()
        assert wire["gameId"] == "ABC123"
        assert wire["currentPlayer"] == 1
        assert wire["player1Board"]["ships"][0] == {"name": "Destroyer", "positions": [[0, 0], [0, 1]], "hits": 0}
        assert wire["rules"]["boardSize"] == 5

    def test_wire_round_trip(self):
        record = create_playing_record(current_player=2, player1_attacks=[(4, 4)])
        assert GameRecord.model_validate(record.to_wire()) == record

    def test_changes_only_carry_fields_that_were_set(self):
        changes = RecordChanges(status=GameStatus.FINISHED, current_player=None, winner="Alice")
        assert changes.to_wire() == {"status": "finished", "currentPlayer": None, "winner": "Alice"}

    def test_changes_send_nested_defaults_in_full(self):
        ship = Ship(name="Destroyer", positions=((0, 0), (0, 1)))
        wire = RecordChanges(rules=GameRules(), player1_board=Fleet(ships=(ship,))).to_wire()

        assert wire["player1Board"]["ships"][0]["hits"] == 0
        assert wire["rules"]["boardSize"] == 10
        assert len(wire["rules"]["ships"]) == len(CLASSIC_FLEET)

    def test_empty_changes_send_nothing(self):
        assert RecordChanges().to_wire() == {}

    def test_mutable_fields_exclude_store_owned_keys(self):
        assert "gameId" not in MUTABLE_WIRE_FIELDS
        assert "version" not in MUTABLE_WIRE_FIELDS
        assert {"player2", "currentPlayer", "player1Attacks", "player2Board"} <= MUTABLE_WIRE_FIELDS
