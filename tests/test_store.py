import pytest

from mockinterview.infrastructure.data import (
    InterviewStore, STATUS_COMPLETED, STATUS_IN_PROGRESS
)


@pytest.fixture
def store(tmp_path):
    return InterviewStore(str(tmp_path / "interviews"), user_id="user-1")


@pytest.fixture
def record(store):
    return store.create_interview("Frontend Engineer", "behavioral", "junior", ["React"], ["Q1?", "Q2?"])


FEEDBACK = {
    "overallScore": 71,
    "categoryScores": {"communication": 80},
    "strengths": ["Friendly"],
    "improvements": ["Be concise"],
    "finalAssessment": "Promising.",
}


def test_created_interview_round_trips(store, record):
    loaded = store.get_interview(record.id)

    assert loaded == record
    assert loaded.status == STATUS_IN_PROGRESS
    assert loaded.user_id == "user-1"
    assert loaded.finished_at is None


def test_unknown_interview_is_none(store):
    assert store.get_interview("missing") is None
    assert store.get_feedback("missing") is None
    assert store.update_interview_status("missing", STATUS_COMPLETED) is False
    assert store.save_feedback("missing", FEEDBACK) is None


def test_completing_stamps_finished_at(store, record):
    assert store.update_interview_status(record.id, STATUS_COMPLETED)

    loaded = store.get_interview(record.id)
    assert loaded.status == STATUS_COMPLETED
    assert loaded.finished_at is not None


def test_saving_feedback_completes_interview(store, record):
    saved = store.save_feedback(record.id, FEEDBACK)

    assert saved.overall_score == 71
    assert store.get_feedback(record.id) == saved
    assert store.get_interview(record.id).status == STATUS_COMPLETED


def test_retake_clears_feedback(store, record):
    store.save_feedback(record.id, FEEDBACK)

    store.update_interview_status(record.id, STATUS_IN_PROGRESS)

    assert store.get_feedback(record.id) is None
    assert store.get_interview(record.id).finished_at is None


def test_list_interviews_is_newest_first_and_per_user(store):
    first = store.create_interview("A", "technical", "mid", [], ["Q?"])
    second = store.create_interview("B", "technical", "mid", [], ["Q?"])
    other_user = InterviewStore(store.data_dir, user_id="user-2")
    other_user.create_interview("C", "technical", "mid", [], ["Q?"])

    records = store.list_interviews()

    assert {r.id for r in records} == {first.id, second.id}
    created = [r.created_at for r in records]
    assert created == sorted(created, reverse=True)
