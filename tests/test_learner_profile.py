"""Tests for learner profile storage."""

from datetime import date

import pytest

from adaptive_tutor.models.learner import CEFRLevel, DailyStats, LearnerProfile, MistakeRecord
from adaptive_tutor.storage import learner_profile as store


@pytest.fixture(autouse=True)
def patch_profile_path(tmp_path, monkeypatch):
    def _get_profile_path(learner_id: str):
        tmp_path.mkdir(parents=True, exist_ok=True)
        return tmp_path / f"{learner_id}.json"

    monkeypatch.setattr(store, "get_profile_path", _get_profile_path)


def test_load_profile_new_learner():
    profile = store.load_profile("learner_new")
    assert isinstance(profile, LearnerProfile)
    assert profile.learner_id == "learner_new"
    assert profile.level is None
    assert profile.tasks_completed == 0


def test_save_and_load():
    profile = store.load_profile("learner_save")
    profile.level = CEFRLevel.B2
    profile.vocabulary = {"river": 2}
    profile.recent_mistakes = [MistakeRecord(topic="Articles", detail="a apple")]
    profile.daily_stats = DailyStats(day=date(2026, 3, 2), completed=4, correct=3)
    store.save_profile(profile)

    loaded = store.load_profile("learner_save")
    assert loaded.level == CEFRLevel.B2
    assert loaded.vocabulary == {"river": 2}
    assert loaded.recent_mistakes[0].topic == "Articles"
    assert loaded.daily_stats.day == date(2026, 3, 2)


def test_delete_profile():
    store.save_profile(LearnerProfile(learner_id="learner_del"))
    assert store.delete_profile("learner_del") is True
    assert store.delete_profile("learner_del") is False


def test_save_leaves_only_the_profile_file(tmp_path):
    profile = LearnerProfile(learner_id="learner_atomic", feedback_history=["Больше путешествий"])
    store.save_profile(profile)
    store.save_profile(profile)
    assert [p.name for p in tmp_path.iterdir()] == ["learner_atomic.json"]
    assert store.load_profile("learner_atomic").feedback_history == ["Больше путешествий"]
