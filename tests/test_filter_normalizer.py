"""
ElectionTrends - Filter Normalizer Tests

Unit tests for query validation and observation filtering.
"""

import unittest
from datetime import date

from election_trends.filters.normalizer import FilterNormalizer, ObservationFilter
from election_trends.models.observations import (
    GeographicLevel,
    Observation,
    ObservationKind,
    PoliticalFamily
)
from election_trends.models.series import GroupBy
from election_trends.utils.errors import InvalidQuery


def make_result(
    day: date = date(2022, 4, 10),
    election_type: str = "presidentielle",
    round_number: int = 1,
    candidate: str = "Anne HIDALGO",
    family: PoliticalFamily = PoliticalFamily.LEFT,
    parties=("PS",),
    level: GeographicLevel = GeographicLevel.NATIONAL,
    city: str = ""
) -> Observation:
    """Helper to create a result observation."""
    return Observation(
        kind=ObservationKind.RESULT,
        election_id=f"{election_type}_{day.year}_t{round_number}",
        election_type=election_type,
        round=round_number,
        date=day,
        candidate_name=candidate,
        political_family=family,
        affiliated_parties=frozenset(parties),
        geographic_level=level,
        city=city,
        percentage_of_expressed=10.0
    )


class TestFilterNormalizerParsing(unittest.TestCase):
    """Test cases for wire-format parsing."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = FilterNormalizer()

    def test_none_query_is_unconstrained(self):
        self.assertTrue(self.normalizer.normalize(None).is_unconstrained)
        self.assertTrue(self.normalizer.normalize({}).is_unconstrained)

    def test_snake_and_camel_case_keys(self):
        """Both key spellings map to the same field."""
        snake = self.normalizer.normalize({"start_date": "2022-01-01", "election_types": ["presidentielle"]})
        camel = self.normalizer.normalize({"startDate": "2022-01-01", "electionTypes": ["presidentielle"]})

        self.assertEqual(snake, camel)
        self.assertEqual(snake.start_date, date(2022, 1, 1))

    def test_nuances_alias_and_french_labels(self):
        """Legacy 'nuances' accepts French family labels."""
        query_filter = self.normalizer.normalize({"nuances": ["Extreme droite", "Gauche"]})

        self.assertEqual(
            query_filter.political_families,
            frozenset({PoliticalFamily.FAR_RIGHT, PoliticalFamily.LEFT})
        )

    def test_iso_timestamp_dates(self):
        query_filter = self.normalizer.normalize({"end_date": "2022-04-24T00:00:00.000Z"})
        self.assertEqual(query_filter.end_date, date(2022, 4, 24))

    def test_rounds_accept_numeric_strings(self):
        query_filter = self.normalizer.normalize({"rounds": [1, "2"]})
        self.assertEqual(query_filter.rounds, frozenset({1, 2}))

    def test_blank_values_are_ignored(self):
        query_filter = self.normalizer.normalize({"city": "  ", "parties": ["", "PS"], "start_date": ""})

        self.assertIsNone(query_filter.city)
        self.assertIsNone(query_filter.start_date)
        self.assertEqual(query_filter.parties, frozenset({"PS"}))

    def test_group_by_defaults_and_aliases(self):
        self.assertEqual(self.normalizer.normalize_request({}).group_by, GroupBy.POLITICAL_FAMILY)
        self.assertEqual(
            self.normalizer.normalize_request({"group_by": "candidate_name"}).group_by,
            GroupBy.CANDIDATE_NAME
        )

    def test_configured_default_group_by(self):
        normalizer = FilterNormalizer(default_group_by=GroupBy.PARTY)
        self.assertEqual(normalizer.normalize_request(None).group_by, GroupBy.PARTY)


class TestFilterNormalizerErrors(unittest.TestCase):
    """Test cases for rejected queries."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = FilterNormalizer()

    def test_unknown_key(self):
        with self.assertRaises(InvalidQuery) as context:
            self.normalizer.normalize({"region": "Bretagne"})
        self.assertEqual(context.exception.field_name, "region")

    def test_query_must_be_mapping(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize(["presidentielle"])

    def test_collection_must_be_list(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize({"parties": "PS"})

    def test_unknown_election_type(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize({"election_types": ["senatoriale"]})

    def test_invalid_round(self):
        for bad in (3, True, "deux", 1.5):
            with self.assertRaises(InvalidQuery):
                self.normalizer.normalize({"rounds": [bad]})

    def test_invalid_date(self):
        with self.assertRaises(InvalidQuery) as context:
            self.normalizer.normalize({"start_date": "10/04/2022"})
        self.assertEqual(context.exception.field_name, "start_date")

    def test_unknown_family(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize({"political_families": ["Écologiste"]})

    def test_unknown_level(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize({"level": "regional"})

    def test_duplicate_key_through_alias(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize({"start_date": "2022-01-01", "startDate": "2022-02-01"})

    def test_invalid_group_by(self):
        with self.assertRaises(InvalidQuery):
            self.normalizer.normalize_request({"group_by": "region"})


class TestObservationFilterMatching(unittest.TestCase):
    """Test cases for ObservationFilter.matches."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = FilterNormalizer()

    def test_election_type_filter(self):
        query_filter = self.normalizer.normalize({"election_types": ["presidentielle"]})

        self.assertTrue(query_filter(make_result()))
        self.assertFalse(query_filter(make_result(election_type="europeenne")))

    def test_date_bounds_are_inclusive(self):
        query_filter = self.normalizer.normalize({"start_date": "2022-04-10", "end_date": "2022-04-24"})

        self.assertTrue(query_filter(make_result(day=date(2022, 4, 10))))
        self.assertTrue(query_filter(make_result(day=date(2022, 4, 24))))
        self.assertFalse(query_filter(make_result(day=date(2022, 4, 9))))
        self.assertFalse(query_filter(make_result(day=date(2022, 4, 25))))

    def test_inverted_date_range_matches_nothing(self):
        query_filter = self.normalizer.normalize({"start_date": "2022-05-01", "end_date": "2022-04-01"})
        self.assertFalse(query_filter(make_result(day=date(2022, 4, 15))))

    def test_party_filter_matches_any_affiliated_party(self):
        query_filter = self.normalizer.normalize({"parties": ["PCF"]})

        self.assertTrue(query_filter(make_result(parties=("LFI", "PCF"))))
        self.assertFalse(query_filter(make_result(parties=("PS",))))

    def test_round_filter(self):
        query_filter = self.normalizer.normalize({"rounds": [2]})

        self.assertTrue(query_filter(make_result(round_number=2)))
        self.assertFalse(query_filter(make_result(round_number=1)))

    def test_level_and_city(self):
        query_filter = self.normalizer.normalize({"level": "municipal", "city": "Paris"})

        self.assertTrue(query_filter(make_result(level=GeographicLevel.MUNICIPAL, city="Paris")))
        self.assertFalse(query_filter(make_result(level=GeographicLevel.MUNICIPAL, city="Lyon")))
        self.assertFalse(query_filter(make_result()))

    def test_candidate_filter(self):
        query_filter = ObservationFilter(candidates=frozenset({"Anne HIDALGO"}))

        self.assertTrue(query_filter.matches(make_result()))
        self.assertFalse(query_filter.matches(make_result(candidate="Yannick JADOT")))

    def test_to_dict_is_sorted(self):
        query_filter = self.normalizer.normalize({"parties": ["PS", "LFI"]})
        self.assertEqual(query_filter.to_dict()["parties"], ["LFI", "PS"])


if __name__ == "__main__":
    unittest.main()
