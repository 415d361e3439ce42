"""Unit tests for EventProcessor."""
import pytest

from processor.event_processor import EventProcessor
from processor.models import Event, Volunteer


def make_event(event_id, title='Event', **kwargs):
    return Event(id=event_id, title=title, **kwargs)


def make_volunteer(volunteer_id, assigned_events, email=None):
    return Volunteer(
        id=volunteer_id,
        name=f'Volunteer {volunteer_id}',
        email=email or f'{volunteer_id}@example.com',
        assigned_events=assigned_events
    )


class TestDerive:
    """Test cases for volunteer count derivation."""

    def test_counts_assigned_volunteers(self):
        """Test each event counts the volunteers assigned to it."""
        processor = EventProcessor()
        events = [make_event('1'), make_event('2'), make_event('3')]
        volunteers = [
            make_volunteer('a', ['1', '2']),
            make_volunteer('b', ['1']),
            make_volunteer('c', ['9']),
        ]

        derived = processor.derive(events, volunteers)

        assert [e.current_volunteers for e in derived] == [2, 1, 0]

    def test_count_matches_definition_for_every_event(self):
        """Test derived count equals the number of volunteers listing the id."""
        processor = EventProcessor()
        events = [make_event(str(i)) for i in range(6)]
        volunteers = [
            make_volunteer(str(v), [str(i) for i in range(6) if (i + v) % 3 == 0])
            for v in range(7)
        ]

        derived = processor.derive(events, volunteers)

        for event in derived:
            expected = len([v for v in volunteers if event.id in v.assigned_events])
            assert event.current_volunteers == expected

    def test_stored_count_is_ignored(self):
        """Test a stale cached count is overwritten."""
        processor = EventProcessor()
        events = [make_event('1', current_volunteers=42, max_volunteers=5)]

        derived = processor.derive(events, [make_volunteer('a', ['1'])])

        assert derived[0].current_volunteers == 1
        assert derived[0].max_volunteers == 5

    def test_default_capacity(self):
        """Test events without maxVolunteers derive a capacity of 10."""
        processor = EventProcessor()

        derived = processor.derive([make_event('1')], [])

        assert derived[0].max_volunteers == 10
        assert derived[0].current_volunteers == 0

    def test_custom_default_capacity(self):
        """Test the default capacity is configurable."""
        processor = EventProcessor(default_max_volunteers=25)

        derived = processor.derive([make_event('1')], [])

        assert derived[0].max_volunteers == 25

    def test_missing_assigned_events_treated_as_empty(self):
        """Test a volunteer without assignedEvents is not an error."""
        processor = EventProcessor()
        volunteer = make_volunteer('a', None)

        derived = processor.derive([make_event('1')], [volunteer])

        assert derived[0].current_volunteers == 0

    def test_duplicate_assignment_counts_once(self):
        """Test a volunteer listing an event twice counts once."""
        processor = EventProcessor()

        derived = processor.derive(
            [make_event('1')], [make_volunteer('a', ['1', '1'])]
        )

        assert derived[0].current_volunteers == 1

    def test_derive_does_not_mutate_input(self):
        """Test derivation returns new Event objects."""
        processor = EventProcessor()
        event = make_event('1')

        processor.derive([event], [make_volunteer('a', ['1'])])

        assert event.current_volunteers is None
        assert event.max_volunteers is None

    def test_full_event_scenario(self):
        """Test two assigned volunteers fill an event with capacity 2."""
        processor = EventProcessor()
        events = [make_event('100', max_volunteers=2)]
        volunteers = [
            make_volunteer('a', ['100']),
            make_volunteer('b', ['100', '7']),
        ]

        derived = processor.derive(events, volunteers)

        assert derived[0].current_volunteers == 2
        assert derived[0].is_full is True

    def test_derive_event_single(self):
        """Test derive_event matches derive for one event."""
        processor = EventProcessor()
        volunteers = [make_volunteer('a', ['5']), make_volunteer('b', ['5'])]

        event = processor.derive_event(make_event('5'), volunteers)

        assert event.current_volunteers == 2
        assert event.max_volunteers == 10


class TestFilterEvents:
    """Test cases for the dashboard filter."""

    @pytest.fixture
    def events(self):
        return [
            make_event('100', 'Beach Cleanup Day', tags=['Environmental']),
            make_event('300', 'River Cleanup', tags=['Environmental', 'Animal']),
            make_event('200', 'Animal Shelter', tags=['Animal', 'Healthcare']),
            make_event('400', 'Blood Drive', tags=['Blood Donation'], canceled=True),
            make_event('50', 'Park Walk'),
        ]

    def test_drops_canceled_events(self, events):
        """Test canceled events never appear."""
        filtered = EventProcessor().filter_events(events, '', [])

        assert all(not e.canceled for e in filtered)
        assert '400' not in [e.id for e in filtered]

    def test_sorted_newest_first(self, events):
        """Test events are ordered by numeric id, descending."""
        filtered = EventProcessor().filter_events(events, '', [])

        assert [e.id for e in filtered] == ['300', '200', '100', '50']

    def test_numeric_not_lexical_order(self):
        """Test ids compare as numbers."""
        events = [make_event('9'), make_event('10'), make_event('100')]

        filtered = EventProcessor().filter_events(events)

        assert [e.id for e in filtered] == ['100', '10', '9']

    def test_search_is_case_insensitive_substring(self, events):
        """Test 'beach' matches 'Beach Cleanup Day' but not 'River Cleanup'."""
        filtered = EventProcessor().filter_events(events, 'beach', [])

        assert [e.title for e in filtered] == ['Beach Cleanup Day']

    def test_search_text_is_trimmed(self, events):
        """Test surrounding whitespace is ignored."""
        filtered = EventProcessor().filter_events(events, '  CLEANUP ', [])

        assert [e.id for e in filtered] == ['300', '100']

    def test_blank_search_keeps_all(self, events):
        """Test whitespace-only search applies no title filter."""
        filtered = EventProcessor().filter_events(events, '   ', [])

        assert len(filtered) == 4

    def test_tag_filter_requires_every_tag(self, events):
        """Test an event tagged only 'Animal' is excluded by Animal+Healthcare."""
        filtered = EventProcessor().filter_events(
            events, '', {'Animal', 'Healthcare'}
        )

        assert [e.id for e in filtered] == ['200']

    def test_tag_filter_excludes_untagged(self, events):
        """Test events without tags are excluded by any tag filter."""
        filtered = EventProcessor().filter_events(events, '', ['Environmental'])

        assert '50' not in [e.id for e in filtered]
        assert [e.id for e in filtered] == ['300', '100']

    def test_search_and_tags_combined(self, events):
        """Test search and tag filters both apply."""
        filtered = EventProcessor().filter_events(events, 'cleanup', ['Animal'])

        assert [e.id for e in filtered] == ['300']

    def test_filter_is_idempotent(self, events):
        """Test filtering a filtered list changes nothing."""
        processor = EventProcessor()

        once = processor.filter_events(events, 'e', ['Animal'])
        twice = processor.filter_events(once, 'e', ['Animal'])

        assert twice == once

    def test_non_numeric_ids_sort_last(self):
        """Test ids that are not timestamps go to the end."""
        events = [make_event('draft'), make_event('5'), make_event('12')]

        filtered = EventProcessor().filter_events(events)

        assert [e.id for e in filtered] == ['12', '5', 'draft']

    def test_does_not_mutate_input(self, events):
        """Test the input list keeps its order."""
        ids_before = [e.id for e in events]

        EventProcessor().filter_events(events, '', [])

        assert [e.id for e in events] == ids_before
