"""Tests for results listeners."""

import threading
from unittest.mock import MagicMock

from j1939_toolkit.controllers.listener import (
    AnswerType,
    CompositeListener,
    MessageType,
    ResultsListener,
    TranscriptListener,
)
from j1939_toolkit.models import Outcome


class TestResultsListener:

    def test_cancel_from_another_thread(self):
        listener = ResultsListener()
        thread = threading.Thread(target=listener.cancel)
        thread.start()
        thread.join()

        assert listener.is_cancelled()
        listener.reset()
        assert not listener.is_cancelled()

    def test_add_outcome_writes_line(self):
        listener = TranscriptListener()
        listener.add_outcome(3, 7, Outcome.FAIL, "6.3.7.2.a - message")

        assert listener.results == ["FAIL: 6.3.7.2.a - message"]
        assert listener.outcomes[0].part == 3
        assert listener.outcomes[0].step == 7
        assert listener.transcript == "FAIL: 6.3.7.2.a - message\n"


class TestTranscriptListener:

    def test_scripted_answers(self):
        listener = TranscriptListener(answers=[AnswerType.NO])
        callback = MagicMock()

        first = listener.on_urgent_message("Continue?", "Question", MessageType.QUESTION, callback)
        second = listener.on_urgent_message("Continue?", "Question", MessageType.QUESTION)

        assert first == AnswerType.NO
        assert second == AnswerType.YES
        callback.assert_called_once_with(AnswerType.NO)
        assert listener.messages == ["Question: Continue?", "Question: Continue?"]

    def test_cancelled_question(self):
        listener = TranscriptListener(answers=[AnswerType.YES])
        listener.cancel()

        assert listener.on_urgent_message("Continue?", "Question", MessageType.QUESTION) == AnswerType.CANCEL

    def test_warning_has_no_answer(self):
        listener = TranscriptListener()
        assert listener.on_urgent_message("Turn key on", "Adjust Key Switch", MessageType.WARNING) is None

    def test_milestones(self):
        listener = TranscriptListener()
        listener.begin_part(1, "Part 1 Test")
        listener.begin_step(1, 1, "Part 1 Step 1")
        listener.end_step(1, 1, "Part 1 Step 1", Outcome.INCOMPLETE)
        listener.end_part(1, "Part 1 Test", Outcome.INCOMPLETE)

        assert listener.milestones == [
            "Begin Part 1 Test",
            "Begin Part 1 Step 1",
            "End Part 1 Step 1: INCOMPLETE",
            "End Part 1 Test: INCOMPLETE",
        ]


class TestCompositeListener:

    def test_fans_out(self):
        first, second = TranscriptListener(), TranscriptListener()
        listener = CompositeListener(first, second)

        listener.on_result("line")
        listener.add_outcome(1, 2, Outcome.WARN, "warning")
        listener.on_progress(1, 3, "progress")

        for child in (first, second):
            assert child.results == ["line", "WARN: warning"]
            assert child.progress == ["progress"]
            assert len(child.outcomes) == 1

    def test_only_first_listener_answers(self):
        first, second = TranscriptListener(answers=[AnswerType.NO]), TranscriptListener()
        listener = CompositeListener(first, second)

        answer = listener.on_urgent_message("Continue?", "Start Part 2", MessageType.QUESTION)

        assert answer == AnswerType.NO
        assert second.messages == []
        assert second.results == ["Start Part 2: Continue? [no]"]

    def test_cancel_reaches_children(self):
        child = TranscriptListener()
        listener = CompositeListener(child)

        listener.cancel()

        assert child.is_cancelled()
        assert listener.is_cancelled()

    def test_child_cancel_is_seen(self):
        child = TranscriptListener()
        listener = CompositeListener(child)

        child.cancel()

        assert listener.is_cancelled()
