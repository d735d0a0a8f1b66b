import pytest

from hirepipe.core.errors import ValidationError
from hirepipe.core.state_machine import InterviewStatus
from hirepipe.models import InterviewSession
from hirepipe.services.behavioral import record_signal, record_signals
from tests.factories import make_candidate


async def _interview(db_session, candidate) -> InterviewSession:
    interview = InterviewSession(
        candidate_id=candidate.id,
        assessment_id=candidate.assessment_id,
        status=InterviewStatus.IN_PROGRESS,
    )
    db_session.add(interview)
    await db_session.commit()
    return interview


async def test_record_signal_counts_candidate_signals(db_session, candidate):
    first = await record_signal(db_session, candidate, "paste_detection", {"chars": 120})
    second = await record_signal(db_session, candidate, "tab_focus", {"blurred": True})

    assert first.total_signals == 1
    assert second.total_signals == 2
    assert second.signal_type == "tab_focus"


async def test_record_signal_accepts_owned_session(db_session, candidate):
    interview = await _interview(db_session, candidate)

    recorded = await record_signal(db_session, candidate, "typing_rhythm", {"wpm": 60}, interview.id)

    assert recorded.total_signals == 1


async def test_foreign_session_is_rejected(db_session, assessment, candidate):
    other = await make_candidate(db_session, assessment, email="grace@example.com")
    foreign = await _interview(db_session, other)

    with pytest.raises(ValidationError) as excinfo:
        await record_signal(db_session, candidate, "typing_rhythm", {}, foreign.id)
    assert excinfo.value.detail == "Invalid session_id"


@pytest.mark.parametrize(
    "signal_type, data, message",
    [
        (None, {}, "Field 'signal_type' is required and must be a string"),
        ("mouse_wiggle", {}, "Invalid signal_type. Must be one of:"),
        ("tab_focus", "blurred", "Field 'data' is required and must be an object"),
    ],
)
async def test_signal_fields_are_validated(db_session, candidate, signal_type, data, message):
    with pytest.raises(ValidationError) as excinfo:
        await record_signal(db_session, candidate, signal_type, data)
    assert excinfo.value.detail.startswith(message)


async def test_batch_inserts_all_items(db_session, candidate):
    batch = [{"signal_type": "response_timing", "data": {"ms": index}} for index in range(3)]

    recorded = await record_signals(db_session, candidate, batch)

    assert recorded.inserted == 3
    assert len(set(recorded.signal_ids)) == 3


async def test_batch_over_limit_is_rejected(db_session, candidate):
    batch = [{"signal_type": "interaction", "data": {}}] * 101

    with pytest.raises(ValidationError) as excinfo:
        await record_signals(db_session, candidate, batch)
    assert excinfo.value.detail == "Maximum 100 signals per batch"


@pytest.mark.parametrize("signals", [None, [], "tab_focus", {"signal_type": "tab_focus"}])
async def test_batch_requires_non_empty_array(db_session, candidate, signals):
    with pytest.raises(ValidationError) as excinfo:
        await record_signals(db_session, candidate, signals)
    assert excinfo.value.detail == "Field 'signals' is required and must be a non-empty array"


async def test_invalid_item_rejects_whole_batch(db_session, candidate):
    batch = [
        {"signal_type": "navigation", "data": {"to": "/pr"}},
        {"signal_type": "navigation", "data": None},
    ]

    with pytest.raises(ValidationError) as excinfo:
        await record_signals(db_session, candidate, batch)
    assert excinfo.value.detail == "Signal at index 1: Field 'data' is required and must be an object"

    after = await record_signal(db_session, candidate, "navigation", {"to": "/done"})
    assert after.total_signals == 1
