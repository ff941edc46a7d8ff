import numpy as np
import pytest

from faceid import (
    AlreadyConsumedError,
    CaptureConfig,
    CaptureFailedError,
    CaptureSession,
    Frame,
    Landmarks,
    NoFaceError,
    RejectReason,
    ReplayDetector,
    ResultEmitter,
    SessionPhase,
    SessionStateError,
)
from faceid.config import LENIENT_THRESHOLDS
from faceid.messages import DETECTING_MESSAGE, FORCE_NO_FACE_MESSAGE, REJECT_MESSAGES
from faceid.testing import ManualScheduler
from helpers import StatusRecorder, make_descriptor, make_frame


def build(detector, *, recorder=None, emitter=None, **overrides):
    config = CaptureConfig(**{"thresholds": LENIENT_THRESHOLDS, "required_streak": 3, **overrides})
    scheduler = ManualScheduler()
    listeners = [recorder] if recorder is not None else []
    session = CaptureSession(detector, config, scheduler=scheduler, emitter=emitter, listeners=listeners)
    return session, scheduler


def aligned(seed=1.0):
    return make_frame(face_width_ratio=0.4, nose_offset=0.05, eye_tilt=0.02, descriptor_seed=seed)


def test_three_aligned_frames_capture():
    recorder = StatusRecorder()
    detector = ReplayDetector([aligned(1), aligned(2), aligned(3)])
    session, scheduler = build(detector, recorder=recorder)

    session.start()
    assert session.phase is SessionPhase.COUNTDOWN
    scheduler.advance(3000)
    assert session.phase is SessionPhase.DETECTING
    scheduler.advance(1200)

    assert session.phase is SessionPhase.CAPTURED
    assert recorder.phases == [SessionPhase.COUNTDOWN, SessionPhase.DETECTING, SessionPhase.CAPTURED]
    streaks = [
        status.streak
        for status in recorder.statuses
        if status.phase in (SessionPhase.DETECTING, SessionPhase.CAPTURED) and status.streak > 0
    ]
    assert streaks == [1, 2, 3]
    countdown = [s.countdown_remaining for s in recorder.statuses if s.phase is SessionPhase.COUNTDOWN]
    assert countdown == [3, 2, 1]
    np.testing.assert_array_equal(session.result(timeout=0), make_descriptor(3))


def test_rejection_resets_streak():
    recorder = StatusRecorder()
    detector = ReplayDetector([aligned(), make_frame(face_width_ratio=0.1)])
    session, scheduler = build(detector, recorder=recorder, countdown_seconds=0)

    session.start()
    scheduler.advance(400)
    assert recorder.last.streak == 1
    scheduler.advance(400)

    assert recorder.last.streak == 0
    assert recorder.last.reason is RejectReason.TOO_FAR
    assert recorder.last.message == REJECT_MESSAGES[RejectReason.TOO_FAR]
    assert session.phase is SessionPhase.DETECTING


def test_no_face_times_out():
    detector = ReplayDetector([])
    session, scheduler = build(detector, countdown_seconds=0, timeout_ms=1000, poll_interval_ms=500)

    session.start()
    scheduler.advance(1000)

    assert session.phase is SessionPhase.TIMED_OUT
    assert detector.calls <= 2
    assert scheduler.pending == []
    with pytest.raises(CaptureFailedError) as excinfo:
        session.emitter.extract()
    assert excinfo.value.phase is SessionPhase.TIMED_OUT


def test_descriptor_comes_from_last_passing_frame():
    frames = [aligned(1), make_frame(eye_tilt=0.3, descriptor_seed=2), aligned(3), aligned(4), aligned(5)]
    session, scheduler = build(ReplayDetector(frames), countdown_seconds=0)

    session.start()
    scheduler.advance(400 * len(frames))

    assert session.phase is SessionPhase.CAPTURED
    np.testing.assert_array_equal(session.emitter.extract(), make_descriptor(5))


def test_timeout_wins_when_streak_never_reached():
    detector = ReplayDetector([aligned()], loop=True)
    session, scheduler = build(detector, countdown_seconds=0, required_streak=10, timeout_ms=2000)

    session.start()
    scheduler.advance(2000)
    assert session.phase is SessionPhase.TIMED_OUT
    calls = detector.calls
    scheduler.advance(10000)
    assert session.phase is SessionPhase.TIMED_OUT
    assert detector.calls == calls


def test_cancel_during_countdown_stops_everything():
    recorder = StatusRecorder()
    detector = ReplayDetector([aligned()], loop=True)
    session, scheduler = build(detector, recorder=recorder)

    session.start()
    scheduler.advance(1500)
    assert session.cancel() is True

    assert session.phase is SessionPhase.CANCELLED
    assert scheduler.pending == []
    ticks = len(recorder.statuses)
    scheduler.advance(10000)
    assert detector.calls == 0
    assert len(recorder.statuses) == ticks
    assert session.cancel() is False


def test_cancel_during_detection_stops_polling():
    detector = ReplayDetector([])
    session, scheduler = build(detector, countdown_seconds=0)

    session.start()
    scheduler.advance(800)
    session.cancel()

    assert session.phase is SessionPhase.CANCELLED
    scheduler.advance(5000)
    assert detector.calls == 2
    with pytest.raises(CaptureFailedError):
        session.emitter.extract()


def test_cancel_while_detector_running_discards_result():
    session_ref = {}

    def detector():
        session_ref["session"].cancel()
        return aligned()

    session, scheduler = build(detector, countdown_seconds=0, required_streak=1)
    session_ref["session"] = session

    session.start()
    scheduler.advance(400)

    assert session.phase is SessionPhase.CANCELLED
    assert session.frames_polled == 0


def test_overlapping_polls_are_skipped():
    class SlowDetector:
        calls = 0

        def __call__(self):
            self.calls += 1
            if self.calls == 1:
                scheduler.advance(1000)
            return None

    detector = SlowDetector()
    session, scheduler = build(detector, countdown_seconds=0)

    session.start()
    scheduler.advance(400)

    assert detector.calls == 1
    assert session.polls_skipped == 2
    assert session.frames_polled == 1


def test_detector_failure_is_a_skipped_poll():
    class FlakyDetector:
        calls = 0

        def __call__(self):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("camera hiccup")
            return aligned()

    session, scheduler = build(FlakyDetector(), countdown_seconds=0)

    session.start()
    scheduler.advance(1600)

    assert session.phase is SessionPhase.CAPTURED
    assert session.detector_errors == 1


def test_restart_is_rejected():
    session, scheduler = build(ReplayDetector([]), countdown_seconds=0, timeout_ms=500)
    session.start()
    with pytest.raises(SessionStateError):
        session.start()
    scheduler.advance(500)
    assert session.phase is SessionPhase.TIMED_OUT
    with pytest.raises(SessionStateError):
        session.start()


def test_zero_countdown_starts_detecting_immediately():
    session, _ = build(ReplayDetector([]), countdown_seconds=0)
    session.start()
    assert session.phase is SessionPhase.DETECTING
    assert session.status().message == DETECTING_MESSAGE


def test_no_face_message_is_throttled():
    session, scheduler = build(ReplayDetector([]), countdown_seconds=0)
    session.start()
    scheduler.advance(1200)
    assert session.status().message == DETECTING_MESSAGE
    scheduler.advance(400)
    assert session.status().message == REJECT_MESSAGES[RejectReason.NO_FACE]


def test_progress_and_capture_messages():
    recorder = StatusRecorder()
    session, scheduler = build(ReplayDetector([aligned()] * 3), recorder=recorder, countdown_seconds=0, mode="match")
    session.start()
    scheduler.advance(1200)
    messages = [status.message for status in recorder.statuses]
    assert "Face aligned (1/3)..." in messages
    assert "Face aligned (2/3)..." in messages
    assert recorder.last.message == "Face captured."


def test_force_capture_without_face_keeps_phase():
    session, scheduler = build(ReplayDetector([]), countdown_seconds=0)
    session.start()
    scheduler.advance(400)

    with pytest.raises(NoFaceError):
        session.force_capture()
    assert session.phase is SessionPhase.DETECTING
    assert session.status().message == FORCE_NO_FACE_MESSAGE


def test_force_capture_without_landmarks_counts_as_no_face():
    frame = make_frame(descriptor_seed=5)
    faceless = Frame(
        box_x=frame.box_x,
        box_y=frame.box_y,
        box_width=frame.box_width,
        box_height=frame.box_height,
        landmarks=Landmarks(left_eye=[], right_eye=[], nose=[]),
        descriptor=frame.descriptor,
        frame_width=frame.frame_width,
        frame_height=frame.frame_height,
    )
    session, scheduler = build(ReplayDetector([faceless], loop=True), countdown_seconds=0)
    session.start()
    scheduler.advance(400)

    with pytest.raises(NoFaceError):
        session.force_capture()
    assert session.phase is SessionPhase.DETECTING
    assert session.status().message == FORCE_NO_FACE_MESSAGE
    assert not session.emitter.has_result


def test_force_capture_ignores_streak():
    session, scheduler = build(ReplayDetector([make_frame(face_width_ratio=0.9, descriptor_seed=7)]))
    session.start()
    scheduler.advance(1000)

    descriptor = session.force_capture()

    np.testing.assert_array_equal(descriptor, make_descriptor(7))
    assert session.phase is SessionPhase.CAPTURED
    assert scheduler.pending == []
    with pytest.raises(AlreadyConsumedError):
        session.emitter.extract()


def test_force_capture_requires_active_session():
    session, _ = build(ReplayDetector([aligned()]))
    with pytest.raises(SessionStateError):
        session.force_capture()


def test_push_mode_delivers_once():
    received = []
    emitter = ResultEmitter(on_descriptor=received.append)
    session, scheduler = build(ReplayDetector([aligned()] * 3), emitter=emitter, countdown_seconds=0)
    session.start()
    scheduler.advance(2000)
    assert len(received) == 1
    with pytest.raises(AlreadyConsumedError):
        session.emitter.extract()


def test_scope_exit_cancels_session():
    session, scheduler = build(ReplayDetector([]))
    with pytest.raises(RuntimeError):
        with session:
            session.start()
            scheduler.advance(3400)
            raise RuntimeError("dialog closed")
    assert session.phase is SessionPhase.CANCELLED
    assert scheduler.pending == []


def test_real_scheduler_end_to_end():
    config = CaptureConfig(countdown_seconds=0, poll_interval_ms=10, timeout_ms=5000)
    detector = ReplayDetector([aligned(1), aligned(2), aligned(3)])
    with CaptureSession(detector, config) as session:
        session.start()
        descriptor = session.result(timeout=5.0)
    np.testing.assert_array_equal(descriptor, make_descriptor(3))
    assert session.phase is SessionPhase.CAPTURED
