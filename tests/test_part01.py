"""Tests for the encoded Part 1 steps."""

import pytest

from j1939_toolkit.bus.j1939 import BusResult, RequestResult
from j1939_toolkit.controllers.listener import AnswerType, TranscriptListener
from j1939_toolkit.controllers.step import Ending, EndingSignal, StepContext
from j1939_toolkit.errors import Interrupted
from j1939_toolkit.models import Outcome
from j1939_toolkit.packets import AckResponse, AcknowledgmentPacket, DM21DiagnosticReadinessPacket
from j1939_toolkit.steps import Part01Step11, Part01Step27


def dm21(address, km_mil=0, km_clear=0, minutes_mil=0, minutes_clear=0):
    return DM21DiagnosticReadinessPacket.create(address, km_mil, km_clear, minutes_mil, minutes_clear)


class TestPart01Step11:

    @pytest.fixture
    def run_step(self, make_context, mock_diagnostic_messages, listener):
        def run(global_packets, ds_results=None):
            ds_results = ds_results or {}
            mock_diagnostic_messages.request_dm21.return_value = RequestResult(packets=list(global_packets))
            mock_diagnostic_messages.request_dm21_ds.side_effect = \
                lambda _listener, address: ds_results.get(address, BusResult.timeout(3))
            Part01Step11().run(make_context(1, 11))
            return [record.message for record in listener.outcomes]

        return run

    def test_all_zero(self, run_step, repository):
        repository.put_obd_module(0)
        assert run_step([dm21(0)], {0: BusResult.of_packet(dm21(0))}) == []

    def test_no_responses(self, run_step):
        assert run_step([]) == ["6.1.11.1.e - No OBD ECU provided a DM21 message"]

    def test_non_zero_values(self, run_step):
        failures = run_step([dm21(0, 5, 6, 7, 8)])

        assert failures == [
            "6.1.11.1.a - Engine #1 (0) reported distance with MIL on (SPN 3069) is not zero",
            "6.1.11.1.b - Engine #1 (0) reported distance SCC (SPN 3294) is not zero",
            "6.1.11.1.c - Engine #1 (0) reported time with MIL on (SPN 3295) is not zero",
            "6.1.11.1.d - Engine #1 (0) reported time SCC (SPN 3296) > 1 minute",
        ]

    def test_not_available_distance_fails(self, run_step):
        failures = run_step([dm21(0, km_mil=None, minutes_mil=None)])
        assert failures == ["6.1.11.1.a - Engine #1 (0) reported distance with MIL on (SPN 3069) is not zero"]

    @pytest.mark.parametrize("minutes,expected", [(1, 0), (2, 1)])
    def test_time_since_clear_allows_one_minute(self, run_step, minutes, expected):
        assert len(run_step([dm21(0, minutes_clear=minutes)])) == expected

    def test_ds_checks(self, run_step, repository):
        repository.put_obd_module(0)
        repository.put_obd_module(1)
        nack = AcknowledgmentPacket.create(1, AckResponse.NACK, pgn_requested=DM21DiagnosticReadinessPacket.PGN)

        failures = run_step([dm21(0)], {0: BusResult.of_packet(dm21(0, km_clear=3)), 1: BusResult.of_ack(nack)})

        assert failures == [
            "6.1.11.4.b - Engine #1 (0) reported distance SCC (SPN 3294) is not zero",
            "6.1.11.4.e - Difference compared to data received during global request from Engine #1 (0)",
        ]

    def test_missing_nack(self, run_step, repository):
        repository.put_obd_module(1)

        failures = run_step([dm21(0)])

        assert failures == [
            "6.1.11.4.f - OBD module Engine #2 (1) did not provide a response to Global query "
            "and did not provide a NACK for the DS query"
        ]

    def test_packets_saved(self, run_step, repository):
        run_step([dm21(0), dm21(0x3D)])
        assert repository.get(DM21DiagnosticReadinessPacket, 0x3D) is not None


class TestPart01Step27:

    def test_no_failures_skips_question(self, make_context, listener, clock):
        Part01Step27().run(make_context(1, 27, total_steps=3))

        assert listener.messages == []
        assert listener.results == ["Allowing engine to idle for 60 seconds"]
        assert listener.progress[:3] == [
            "Part 1, Step 27 - Part 1 to Part 2 Transition",
            "Part 1, Step 27 b.i - Ensuring Key On, Engine On",
            "Part 1, Step 27 b.iii - Allowing engine to idle one minute",
        ]
        assert listener.progress[3] == "Allowing engine to idle for 60 seconds"
        assert listener.progress[-1] == "Allowing engine to idle for 1 seconds"
        assert clock.now() == pytest.approx(60.0)

    @pytest.fixture
    def context_with_failure(self, repository, clock, mock_engine_speed):
        def build(answer):
            repository.record_outcome(1, 11, Outcome.FAIL, "6.1.11.1.e - No OBD ECU provided a DM21 message")
            listener = TranscriptListener(answers=[answer])
            ctx = StepContext(1, 27, listener, repository, clock, engine_speed=mock_engine_speed,
                              ending=EndingSignal())
            return ctx, listener

        return build

    def test_user_ends_test(self, context_with_failure, repository, mock_engine_speed):
        ctx, listener = context_with_failure(AnswerType.NO)

        with pytest.raises(Interrupted, match="Aborted"):
            Part01Step27().run(ctx)

        assert ctx.ending.ending == Ending.ABORTED
        assert listener.messages[0].startswith("Start Part 2: Ready to transition from Part 1 to Part 2")
        assert repository.part_result(1).steps[27].worst == Outcome.ABORT
        assert listener.results == ["ABORT: Aborting - user ended test"]
        mock_engine_speed.is_engine_running.assert_not_called()

    def test_user_continues(self, context_with_failure, clock):
        ctx, listener = context_with_failure(AnswerType.YES)

        Part01Step27().run(ctx)

        assert len(listener.messages) == 1
        assert ctx.ending.ending is None
        assert clock.now() == pytest.approx(60.0)
