"""Tests for MasteryTracker state updates."""

from datetime import date

import pytest

from adaptive_tutor.config import Settings
from adaptive_tutor.models.learner import DailyStats, LearnerProfile, MistakeRecord
from adaptive_tutor.models.task import TaskOutcome, TaskType
from adaptive_tutor.progress.mastery import MasteryTracker

TODAY = date(2026, 3, 2)


@pytest.fixture
def tracker():
    return MasteryTracker()


@pytest.fixture
def profile():
    return LearnerProfile(learner_id="learner", daily_stats=DailyStats(day=TODAY))


def outcome(results, **kwargs) -> TaskOutcome:
    return TaskOutcome(task_type=kwargs.pop("task_type", TaskType.GRAMMAR), results=results, **kwargs)


class TestHistories:
    def test_records_task_and_results(self, tracker, profile):
        updated = tracker.record_outcome(profile, outcome([True, False]), today=TODAY)
        assert updated.task_history == ["grammar"]
        assert updated.result_history == [True, False]
        assert updated.tasks_completed == 1

    def test_input_profile_untouched(self, tracker, profile):
        tracker.record_outcome(profile, outcome([True], new_words=["apple"]), today=TODAY)
        assert profile.tasks_completed == 0
        assert profile.vocabulary == {}

    def test_task_history_evicts_oldest(self, tracker, profile):
        profile.task_history = [f"t{i}" for i in range(12)]
        updated = tracker.record_outcome(profile, outcome([True]), today=TODAY)
        assert len(updated.task_history) == 12
        assert updated.task_history[0] == "t1"
        assert updated.task_history[-1] == "grammar"

    def test_result_history_capped_at_100(self, tracker, profile):
        profile.result_history = [False] * 98
        updated = tracker.record_outcome(profile, outcome([True] * 5), today=TODAY)
        assert len(updated.result_history) == 100
        assert updated.result_history[-5:] == [True] * 5
        assert updated.result_history.count(False) == 95

    def test_mistakes_capped(self, tracker, profile):
        profile.recent_mistakes = [MistakeRecord(topic=f"m{i}") for i in range(10)]
        updated = tracker.record_outcome(
            profile,
            outcome([False], mistakes=[MistakeRecord(topic="new")]),
            today=TODAY,
        )
        assert len(updated.recent_mistakes) == 10
        assert updated.recent_mistakes[0].topic == "m1"
        assert updated.recent_mistakes[-1].topic == "new"


class TestDailyStats:
    def test_same_day_accumulates(self, tracker, profile):
        updated = tracker.record_outcome(profile, outcome([True, False]), today=TODAY)
        updated = tracker.record_outcome(updated, outcome([True]), today=TODAY)
        assert updated.daily_stats.completed == 3
        assert updated.daily_stats.correct == 2

    def test_new_day_resets(self, tracker, profile):
        profile.daily_stats = DailyStats(day=date(2026, 3, 1), completed=9, correct=7)
        updated = tracker.record_outcome(profile, outcome([True]), today=TODAY)
        assert updated.daily_stats.day == TODAY
        assert updated.daily_stats.completed == 1
        assert updated.daily_stats.correct == 1


class TestVocabulary:
    def test_new_word_enters_and_counts_success(self, tracker, profile):
        updated = tracker.record_outcome(profile, outcome([True], new_words=["Apple"]), today=TODAY)
        assert updated.vocabulary == {"apple": 1}
        assert updated.recent_new_words == ["apple"]

    def test_failure_clamped_at_zero(self, tracker, profile):
        profile.vocabulary = {"river": 0}
        updated = tracker.record_outcome(profile, outcome([False], words=["river"]), today=TODAY)
        assert updated.vocabulary["river"] == 0

    def test_partial_success_counts_as_failure(self, tracker, profile):
        profile.vocabulary = {"river": 2}
        updated = tracker.record_outcome(
            profile, outcome([True, False], words=["river"]), today=TODAY
        )
        assert updated.vocabulary["river"] == 1

    def test_empty_results_count_as_failure(self, tracker, profile):
        profile.vocabulary = {"river": 2}
        updated = tracker.record_outcome(profile, outcome([], words=["river"]), today=TODAY)
        assert updated.vocabulary["river"] == 1

    def test_word_retired_at_threshold(self, tracker, profile):
        profile.vocabulary = {"river": 4, "cloud": 1}
        updated = tracker.record_outcome(profile, outcome([True], words=["river"]), today=TODAY)
        assert "river" not in updated.vocabulary
        assert updated.vocabulary == {"cloud": 1}
        assert updated.mastered_word_count == 1

    def test_untracked_words_ignored(self, tracker, profile):
        updated = tracker.record_outcome(profile, outcome([True], words=["ghost"]), today=TODAY)
        assert updated.vocabulary == {}
        assert updated.mastered_word_count == 0

    def test_recent_new_words_capped_and_reordered(self, tracker, profile):
        profile.recent_new_words = ["a", "b", "c", "d", "e"]
        profile.vocabulary = {w: 0 for w in "abcde"}
        updated = tracker.record_outcome(profile, outcome([True], new_words=["f", "b"]), today=TODAY)
        assert updated.recent_new_words == ["c", "d", "e", "f", "b"]

    def test_custom_threshold(self, profile):
        tracker = MasteryTracker(mastery_threshold=2)
        profile.vocabulary = {"river": 1}
        updated = tracker.record_outcome(profile, outcome([True], words=["river"]), today=TODAY)
        assert updated.vocabulary == {}


class TestFeedbackAndPreferences:
    def test_feedback_capped_at_20(self, tracker, profile):
        for i in range(25):
            profile = tracker.add_feedback(profile, f"note {i}")
        assert len(profile.feedback_history) == 20
        assert profile.feedback_history[0] == "note 5"

    def test_blank_feedback_ignored(self, tracker, profile):
        assert tracker.add_feedback(profile, "   ").feedback_history == []

    def test_help_request_becomes_feedback(self, tracker, profile):
        updated = tracker.record_help_request(profile, " phrasal verbs ")
        assert updated.feedback_history == [
            'User explicitly asked for a task about: "phrasal verbs"'
        ]

    def test_preferences_cleaned(self, profile):
        updated = MasteryTracker.set_preferences(
            profile, ["  More travel topics ", "", "No images", "More travel topics"]
        )
        assert updated.global_preferences == ["More travel topics", "No images"]


def test_from_settings():
    settings = Settings(openai_api_key=None, mastery_threshold=3, recent_mistakes_length=4)
    tracker = MasteryTracker.from_settings(settings)
    assert tracker.mastery_threshold == 3
    assert tracker.recent_mistakes_length == 4
