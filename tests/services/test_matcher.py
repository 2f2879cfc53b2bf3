"""Tests for the linear-scan matcher."""
import random

import pytest

from facematch.core.exceptions import InvalidDescriptorError
from facematch.domain.entities.status import PersonStatus
from facematch.services.matcher import find_matches
from tests.conftest import ZERO, descriptor_at, make_person


class Record:
    """Bare candidate record; the matcher only needs `.status` when filtering."""

    def __init__(self, name, status=PersonStatus.MISSING):
        self.id = name
        self.name = name
        self.status = status


def names(matches):
    return [match.record.name for match in matches]


class TestFindMatches:
    """Ranking, thresholding and filtering of candidates."""

    def test_closest_first(self):
        a, b = Record("A"), Record("B")
        candidates = [(a, descriptor_at(0.55)), (b, descriptor_at(0.40))]

        matches = find_matches(ZERO, candidates, max_distance=0.6)

        assert names(matches) == ["B", "A"]
        assert [m.distance for m in matches] == [0.40, 0.55]

    def test_nothing_within_threshold_returns_empty(self):
        candidates = [(Record("A"), descriptor_at(0.5)), (Record("B"), descriptor_at(0.7))]

        assert find_matches(ZERO, candidates, max_distance=0.3) == []

    def test_threshold_is_inclusive(self):
        candidates = [(Record("edge"), descriptor_at(0.6)), (Record("over"), descriptor_at(0.6000001))]

        assert names(find_matches(ZERO, candidates, max_distance=0.6)) == ["edge"]

    def test_default_threshold_is_configured_value(self):
        candidates = [(Record("in"), descriptor_at(0.59)), (Record("out"), descriptor_at(0.61))]

        assert names(find_matches(ZERO, candidates)) == ["in"]

    def test_ties_keep_input_order(self):
        candidates = [
            (Record("first"), descriptor_at(0.3, axis=0)),
            (Record("closer"), descriptor_at(0.1, axis=5)),
            (Record("second"), descriptor_at(0.3, axis=1)),
            (Record("third"), descriptor_at(-0.3, axis=2)),
        ]

        assert names(find_matches(ZERO, candidates)) == ["closer", "first", "second", "third"]

    def test_limit_truncates_after_sorting(self):
        candidates = [(Record(str(d)), descriptor_at(d)) for d in (0.5, 0.1, 0.4, 0.2, 0.3)]

        assert names(find_matches(ZERO, candidates, limit=2)) == ["0.1", "0.2"]

    def test_status_filter(self):
        candidates = [
            (Record("missing", PersonStatus.MISSING), descriptor_at(0.2)),
            (Record("found", PersonStatus.FOUND), descriptor_at(0.1)),
            (Record("reunited", PersonStatus.REUNITED), descriptor_at(0.0)),
        ]

        matches = find_matches(ZERO, candidates, status_filter=PersonStatus.MISSING)

        assert names(matches) == ["missing"]
        assert find_matches(ZERO, candidates, status_filter="found")[0].record.name == "found"

    def test_accepts_domain_records(self):
        person = make_person(descriptor_at(0.25))

        matches = find_matches(ZERO, [(person, person.face_descriptor)])

        assert matches[0].record is person
        assert matches[0].distance == 0.25

    def test_candidates_may_be_a_generator(self):
        candidates = ((Record(str(i)), descriptor_at(i / 10)) for i in range(10))

        assert len(find_matches(ZERO, candidates, max_distance=0.45)) == 5

    def test_unusable_candidate_descriptor_is_skipped(self):
        candidates = [
            (Record("broken"), [0.0] * 64),
            (Record("ok"), descriptor_at(0.2)),
        ]

        assert names(find_matches(ZERO, candidates)) == ["ok"]

    def test_invalid_query_fails_before_scanning(self):
        def exploding_candidates():
            raise AssertionError("candidates must not be scanned")
            yield

        with pytest.raises(InvalidDescriptorError):
            find_matches([0.0] * 127, exploding_candidates())
        with pytest.raises(InvalidDescriptorError):
            find_matches([10 ** 400] + [0.0] * 127, exploding_candidates())

    @pytest.mark.parametrize("kwargs", [{"max_distance": -0.1}, {"limit": 0}])
    def test_rejects_bad_arguments(self, kwargs):
        with pytest.raises(ValueError):
            find_matches(ZERO, [], **kwargs)

    def test_random_population_properties(self):
        rng = random.Random(42)
        statuses = list(PersonStatus)
        candidates = [
            (Record(f"p{i}", rng.choice(statuses)), [rng.uniform(-0.06, 0.06) for _ in range(128)])
            for i in range(300)
        ]
        query = [rng.uniform(-0.06, 0.06) for _ in range(128)]

        matches = find_matches(query, candidates, max_distance=0.65, status_filter=PersonStatus.MISSING)

        assert matches, "population should produce some matches"
        distances = [m.distance for m in matches]
        assert all(d <= 0.65 for d in distances)
        assert distances == sorted(distances)
        assert all(m.record.status == PersonStatus.MISSING for m in matches)
        order = {record.name: index for index, (record, _) in enumerate(candidates)}
        for left, right in zip(matches, matches[1:]):
            if left.distance == right.distance:
                assert order[left.record.name] < order[right.record.name]
