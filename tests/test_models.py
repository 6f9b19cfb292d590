"""Tests for catalog and team domain models."""

import pytest

from pokeroster.models.creature import (
    CatalogPageEntry,
    CreatureRecord,
    creature_id_from_url,
    detail_url,
)
from pokeroster.models.failure import (
    ApiResponse,
    FailureKind,
    InvalidArgumentError,
    NotFoundError,
    OutcomeType,
)
from pokeroster.models.team import TeamSnapshot


class TestCatalogUrls:
    def test_detail_url_encodes_id(self) -> None:
        assert detail_url(25) == "https://pokeapi.co/api/v2/pokemon/25/"

    def test_id_from_url(self) -> None:
        assert creature_id_from_url("https://pokeapi.co/api/v2/pokemon/25/") == 25
        assert creature_id_from_url("https://pokeapi.co/api/v2/pokemon/25") == 25

    def test_id_from_url_without_id(self) -> None:
        assert creature_id_from_url("https://pokeapi.co/api/v2/pokemon/pikachu/") is None

    def test_page_entry_exposes_id(self) -> None:
        entry = CatalogPageEntry(page=0, name="pikachu", url=detail_url(25))
        assert entry.creature_id == 25


class TestCreatureRecordValidation:
    def test_valid_record(self, bulbasaur) -> None:
        assert bulbasaur.types == ("grass", "poison")

    def test_rejects_non_positive_id(self, make_creature) -> None:
        with pytest.raises(InvalidArgumentError):
            make_creature(0, "missingno")

    def test_rejects_empty_name(self, make_creature) -> None:
        with pytest.raises(InvalidArgumentError):
            make_creature(1, "")

    def test_rejects_wrong_type_count(self, make_creature) -> None:
        with pytest.raises(InvalidArgumentError, match="1 or 2 types"):
            make_creature(1, "x", ())
        with pytest.raises(InvalidArgumentError, match="1 or 2 types"):
            make_creature(1, "x", ("fire", "water", "grass"))

    def test_rejects_stats_over_cap(self, make_creature) -> None:
        with pytest.raises(InvalidArgumentError, match="hp=301"):
            make_creature(1, "x", hp=301)
        with pytest.raises(InvalidArgumentError, match="exp=1001"):
            make_creature(1, "x", exp=1001)

    def test_accepts_stats_at_cap(self, make_creature) -> None:
        record = make_creature(1, "x", hp=300, attack=300, defense=300, speed=300, exp=1000)
        assert record.exp == 1000

    def test_rejects_negative_physical_attributes(self, make_creature) -> None:
        with pytest.raises(InvalidArgumentError, match="weight"):
            make_creature(1, "x", weight=-1)

    def test_record_is_immutable(self, bulbasaur) -> None:
        with pytest.raises(AttributeError):
            bulbasaur.hp = 100  # type: ignore[misc]


class TestCreatureLabels:
    def test_id_label_is_zero_padded(self, bulbasaur, snorlax) -> None:
        assert bulbasaur.id_label == "#001"
        assert snorlax.id_label == "#143"

    def test_physical_labels(self) -> None:
        record = CreatureRecord(
            id=25, name="pikachu", height=4, weight=60, experience=112, types=("electric",)
        )
        assert record.weight_label == "6.0 KG"
        assert record.height_label == "0.4 M"

    def test_stat_label(self, bulbasaur) -> None:
        assert bulbasaur.stat_label("hp") == " 45/300"
        assert bulbasaur.stat_label("exp") == " 0/1000"

    def test_unknown_stat_label(self, bulbasaur) -> None:
        with pytest.raises(InvalidArgumentError):
            bulbasaur.stat_label("luck")


class TestTeamSnapshot:
    def test_member_ids_and_fullness(self, starters) -> None:
        snapshot = TeamSnapshot(name="Starters", members=tuple(starters), max_size=3)
        assert snapshot.member_ids == [1, 4, 7]
        assert snapshot.is_full is True

    def test_empty_snapshot(self) -> None:
        snapshot = TeamSnapshot(name="Empty")
        assert snapshot.member_ids == []
        assert snapshot.is_full is False


class TestKnownErrors:
    def test_not_found_response(self) -> None:
        error = NotFoundError("Team 9 not found")
        response = error.to_response()

        assert error.status_code == 404
        assert response.failure is not None
        assert response.failure.kind == FailureKind.NOT_FOUND
        assert response.failure.message == "Team 9 not found"

    def test_invalid_argument_keeps_suggestion(self) -> None:
        error = InvalidArgumentError("bad", suggestion="try again")
        assert error.status_code == 400
        assert error.to_response().failure.suggestion == "try again"

    def test_unknown_failure_envelope(self) -> None:
        response = ApiResponse.unknown_failure(detail="ValueError")

        assert response.outcome == OutcomeType.UNKNOWN_FAILURE
        assert response.failure.kind == FailureKind.UNKNOWN
        assert response.failure.detail == "ValueError"
