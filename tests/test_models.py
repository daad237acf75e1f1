import pytest

from aufguss_scoring.errors import ValidationError
from aufguss_scoring.models import (
    Competition,
    Contestant,
    Juror,
    format_contestants,
    format_jury,
    parse_contestant_lines,
    parse_jury_lines,
    validate_competition,
)


def _competition(**overrides):
    values = dict(
        name="Sauna Cup",
        source_sheet_id="template-id",
        jury=(Juror("Anna", 100), Juror("Ben", 50)),
        contestants=(Contestant("Team A"),),
    )
    values.update(overrides)
    return Competition(**values)


class TestValidateCompetition:
    def test_valid_competition_passes(self):
        validate_competition(_competition())

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"name": "  "}, "Competition name cannot be empty."),
            ({"jury": ()}, "There must be at least one juror."),
            ({"jury": (Juror("Anna"), Juror(" "))}, "Juror #2 has an empty name."),
            ({"jury": (Juror("Anna", 101),)}, "Juror #1 has an invalid weight (101)."),
            ({"jury": (Juror("Anna", -1),)}, "Juror #1 has an invalid weight (-1)."),
            ({"contestants": ()}, "There must be at least one contestant."),
            ({"contestants": (Contestant(""),)}, "Contestant #1 has an empty name."),
            ({"source_sheet_id": ""}, "A template sheet must be defined."),
        ],
    )
    def test_reports_first_problem(self, overrides, message):
        with pytest.raises(ValidationError) as excinfo:
            validate_competition(_competition(**overrides))
        assert str(excinfo.value).startswith(message)

    def test_weight_bounds_are_inclusive(self):
        validate_competition(_competition(jury=(Juror("Low", 0), Juror("High", 100))))


class TestCompetitionValue:
    def test_build_strips_and_freezes_sequences(self):
        jury = [Juror("Anna", 80)]
        competition = Competition.build("  Cup ", " id ", jury, [Contestant("A")])
        jury.append(Juror("Late", 10))

        assert competition.name == "Cup"
        assert competition.source_sheet_id == "id"
        assert competition.jury == (Juror("Anna", 80),)
        assert isinstance(competition.contestants, tuple)

    def test_snapshot_is_equal_but_detached(self):
        competition = _competition()
        snapshot = competition.snapshot()
        assert snapshot == competition
        assert snapshot.jury is not competition.jury

    def test_dict_round_trip_keeps_order(self):
        competition = _competition(
            contestants=(Contestant("C"), Contestant("A"), Contestant("B"))
        )
        data = competition.to_dict()
        assert data["jury"] == [{"name": "Anna", "weight": 100}, {"name": "Ben", "weight": 50}]
        assert Competition.from_dict(data) == competition

    def test_from_dict_tolerates_missing_and_bad_fields(self):
        competition = Competition.from_dict(
            {"name": "Cup", "jury": [{"name": "Anna", "weight": "x"}, "junk"], "contestants": None}
        )
        assert competition.jury == (Juror("Anna", 0),)
        assert competition.contestants == ()
        assert competition.source_sheet_id == ""

    def test_weight_fraction(self):
        assert Juror("Y", 50).weight_fraction == 0.5
        assert Juror("X", 100).weight_fraction == 1.0


class TestTextHelpers:
    def test_parse_contestant_lines_skips_blanks(self):
        assert parse_contestant_lines(" A \n\nB\n  \n") == [Contestant("A"), Contestant("B")]

    def test_format_contestants(self):
        assert format_contestants([Contestant("A"), Contestant("B")]) == "A\nB\n"

    def test_parse_jury_lines(self):
        jurors = parse_jury_lines("Anna; 80\nBen\n\nDr. Who; ; \nC;D; 20")
        assert jurors == [
            Juror("Anna", 80),
            Juror("Ben", 100),
            Juror("Dr. Who;", 100),
            Juror("C;D", 20),
        ]

    def test_parse_jury_lines_rejects_bad_weight(self):
        with pytest.raises(ValidationError, match="Line 2"):
            parse_jury_lines("Anna; 80\nBen; lots")

    def test_format_jury_parses_back(self):
        jury = [Juror("Anna", 80), Juror("Ben", 0)]
        assert parse_jury_lines(format_jury(jury)) == jury
