"""Tests for the lost-and-found and devotee matching services."""
import re

import pytest

from facematch.core.exceptions import (
    DuplicateRecordError,
    InvalidDescriptorError,
    InvalidTransitionError,
    StoreUnavailableError,
)
from facematch.domain.entities.person import Gender
from facematch.domain.entities.status import PersonStatus
from facematch.services import face_matching
from facematch.services.models import DevoteeRegistration, SightingReport
from tests.conftest import ZERO, descriptor_at


def report(**overrides) -> SightingReport:
    values = {"photo_url": "photos/report.jpg"}
    values.update(overrides)
    return SightingReport(**values)


def registration(**overrides) -> DevoteeRegistration:
    values = {
        "full_name": "Ramesh Kumar",
        "age": 64,
        "gender": "male",
        "phone": "9000000001",
        "emergency_contact_name": "Suresh Kumar",
        "emergency_contact_phone": "9000000002",
    }
    values.update(overrides)
    return DevoteeRegistration(**values)


class TestReportSighting:

    async def test_creates_missing_record(self, face_matching_service, store):
        person = await face_matching_service.report_sighting(
            descriptor_at(0.1),
            report(name=None, gender="female", last_seen_location="Ram Ghat")
        )

        assert person.status == PersonStatus.MISSING
        assert person.name == "Unknown"
        assert person.gender == Gender.FEMALE
        assert person.last_seen_location == "Ram Ghat"
        assert person.version == 1
        assert person.created_at == person.updated_at
        assert store.records[person.id] == person

    async def test_defaults(self, face_matching_service):
        person = await face_matching_service.report_sighting(ZERO, report(gender="robot"))

        assert person.gender == Gender.UNKNOWN
        assert person.last_seen_location == "Not specified"
        assert person.current_location is None

    async def test_found_report(self, face_matching_service):
        person = await face_matching_service.report_sighting(
            ZERO, report(status="found", current_location="Lost & Found camp 2")
        )

        assert person.status == PersonStatus.FOUND
        assert person.current_location == "Lost & Found camp 2"

    async def test_cannot_report_as_reunited(self, face_matching_service, store):
        with pytest.raises(InvalidTransitionError):
            await face_matching_service.report_sighting(ZERO, report(status="reunited"))
        assert store.records == {}

    async def test_invalid_descriptor_stores_nothing(self, face_matching_service, store):
        with pytest.raises(InvalidDescriptorError):
            await face_matching_service.report_sighting([0.1] * 100, report())
        assert store.records == {}


class TestMatchFace:

    async def _report(self, service, distance, status="missing", axis=0):
        return await service.report_sighting(descriptor_at(distance, axis), report(status=status))

    async def test_ranked_matches_with_similarity(self, face_matching_service):
        a = await self._report(face_matching_service, 0.55)
        b = await self._report(face_matching_service, 0.40)
        await self._report(face_matching_service, 0.9)

        result = await face_matching_service.match_face(ZERO)

        assert [m.record.id for m in result.matches] == [b.id, a.id]
        assert [m.distance for m in result.matches] == [0.40, 0.55]
        assert result.matches[0].similarity == pytest.approx(1 - 0.40 / 1.2)

    async def test_threshold_override(self, face_matching_service):
        await self._report(face_matching_service, 0.5)
        await self._report(face_matching_service, 0.7)

        result = await face_matching_service.match_face(ZERO, max_distance=0.3)

        assert result.matches == []

    async def test_reunited_excluded_without_filter(self, face_matching_service):
        person = await self._report(face_matching_service, 0.1)
        await face_matching_service.transition_status(person.id, PersonStatus.REUNITED)

        assert (await face_matching_service.match_face(ZERO)).matches == []

        result = await face_matching_service.match_face(ZERO, status_filter="reunited")
        assert [m.record.id for m in result.matches] == [person.id]

    async def test_found_person_drops_out_of_missing_search(self, face_matching_service):
        person = await self._report(face_matching_service, 0.2)
        other = await self._report(face_matching_service, 0.3, axis=1)

        await face_matching_service.transition_status(person.id, PersonStatus.FOUND, "Sector 4 camp")
        result = await face_matching_service.match_face(ZERO, status_filter=PersonStatus.MISSING)

        assert [m.record.id for m in result.matches] == [other.id]
        assert all(m.record.status == PersonStatus.MISSING for m in result.matches)

    async def test_default_limit_is_five(self, face_matching_service):
        for i in range(8):
            await self._report(face_matching_service, 0.05 * (i + 1))

        result = await face_matching_service.match_face(ZERO)

        assert len(result.matches) == 5
        assert result.matches[-1].distance == pytest.approx(0.25)

    async def test_invalid_query_does_not_touch_store(self, face_matching_service, store):
        store.available = False

        with pytest.raises(InvalidDescriptorError):
            await face_matching_service.match_face(["a"] * 128)

    async def test_store_failure_is_not_an_empty_result(self, face_matching_service, store):
        await self._report(face_matching_service, 0.1)
        store.available = False

        with pytest.raises(StoreUnavailableError):
            await face_matching_service.match_face(ZERO)


class TestListAndDetails:

    async def test_list_newest_first_with_limit(self, face_matching_service):
        reported = [
            await face_matching_service.report_sighting(ZERO, report(name=f"p{i}"))
            for i in range(25)
        ]

        people = await face_matching_service.list_by_status()

        assert len(people) == 20
        assert people[0].id == reported[-1].id

    async def test_list_by_status(self, face_matching_service):
        missing = await face_matching_service.report_sighting(ZERO, report())
        found = await face_matching_service.report_sighting(ZERO, report(status="found"))

        assert [p.id for p in await face_matching_service.list_by_status("found")] == [found.id]
        assert [p.id for p in await face_matching_service.list_by_status(PersonStatus.MISSING)] == [missing.id]

    async def test_get_and_update_details(self, face_matching_service):
        person = await face_matching_service.report_sighting(ZERO, report())

        await face_matching_service.update_details(person.id, current_location="Medical tent 3")

        fetched = await face_matching_service.get_person(person.id)
        assert fetched.current_location == "Medical tent 3"
        assert fetched.status == PersonStatus.MISSING


class TestDevoteeSearch:

    async def test_register_generates_registration_number(self, devotee_search_service):
        devotee = await devotee_search_service.register(registration(), descriptor=descriptor_at(0.1))

        assert re.fullmatch(r"KM\d{4}-[0-9A-Z]{6}", devotee.registration_number)
        assert devotee.gender == Gender.MALE
        assert devotee.face_descriptor == descriptor_at(0.1)

    async def test_register_retries_taken_registration_number(self, devotee_search_service, monkeypatch):
        numbers = iter(["KM2026-AAAAAA", "KM2026-AAAAAA", "KM2026-BBBBBB"])
        monkeypatch.setattr(face_matching, "generate_registration_number", lambda now=None: next(numbers))

        first = await devotee_search_service.register(registration())
        second = await devotee_search_service.register(registration(full_name="Second"))

        assert first.registration_number == "KM2026-AAAAAA"
        assert second.registration_number == "KM2026-BBBBBB"

    async def test_register_gives_up_after_repeated_collisions(self, devotee_search_service, store, monkeypatch):
        monkeypatch.setattr(face_matching, "generate_registration_number", lambda now=None: "KM2026-AAAAAA")
        await devotee_search_service.register(registration())

        with pytest.raises(DuplicateRecordError):
            await devotee_search_service.register(registration(full_name="Second"))
        assert len(store.devotees) == 1

    async def test_register_without_descriptor(self, devotee_search_service):
        devotee = await devotee_search_service.register(registration())

        assert devotee.face_descriptor is None
        assert await devotee_search_service.search_by_face(ZERO) == []

    async def test_register_rejects_bad_descriptor(self, devotee_search_service, store):
        with pytest.raises(InvalidDescriptorError):
            await devotee_search_service.register(registration(), descriptor=[1.0, 2.0])
        assert store.devotees == []

    async def test_search_ranks_and_prefers_newest_on_ties(self, devotee_search_service):
        older = await devotee_search_service.register(registration(full_name="Older"), descriptor_at(0.3))
        newer = await devotee_search_service.register(registration(full_name="Newer"), descriptor_at(0.3, axis=1))
        closest = await devotee_search_service.register(registration(full_name="Closest"), descriptor_at(0.1))
        await devotee_search_service.register(registration(full_name="Far"), descriptor_at(0.8))

        matches = await devotee_search_service.search_by_face(ZERO)

        assert [m.devotee.id for m in matches] == [closest.id, newer.id, older.id]
        assert matches[0].similarity == pytest.approx(1 - 0.1 / 1.2)

    async def test_search_max_distance_override(self, devotee_search_service):
        await devotee_search_service.register(registration(), descriptor_at(0.5))

        assert await devotee_search_service.search_by_face(ZERO, max_distance=0.4) == []
        assert len(await devotee_search_service.search_by_face(ZERO, max_distance=0.5)) == 1

    async def test_search_limit_is_ten(self, devotee_search_service):
        for i in range(12):
            await devotee_search_service.register(registration(phone=f"90000{i:05d}"), descriptor_at(0.01 * i))

        assert len(await devotee_search_service.search_by_face(ZERO)) == 10
