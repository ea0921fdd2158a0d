"""Tests for the prioritized session status table."""

import itertools

import pytest

from collab_sketch.core.status_classifier import (
    StatusKind,
    classify_controls,
    classify_status,
    mapping_status_text,
)
from collab_sketch.models import (
    LimitedReason,
    MappingProgress,
    SessionNotice,
    SessionSignals,
    TrackingQuality,
)

NORMAL = TrackingQuality.normal()
RELOCALIZING = TrackingQuality.limited(LimitedReason.RELOCALIZING)
INITIALIZING = TrackingQuality.limited(LimitedReason.INITIALIZING)


def signals(**kwargs) -> SessionSignals:
    kwargs.setdefault("tracking", NORMAL)
    kwargs.setdefault("mapping", MappingProgress.LIMITED)
    return SessionSignals(**kwargs)


class TestPriorityTable:

    def test_ready_to_save(self):
        """Scenario A"""
        status = classify_status(signals(mapping=MappingProgress.MAPPED, has_user_drawn_anchor=True))
        assert status.kind == StatusKind.READY_TO_SAVE
        assert status.message == "Tap 'Save Experience' to save the current map."
        assert not status.show_thumbnail

    def test_ready_to_save_while_extending(self):
        status = classify_status(signals(mapping=MappingProgress.EXTENDING, has_user_drawn_anchor=True))
        assert status.kind == StatusKind.READY_TO_SAVE

    def test_tap_to_sketch(self):
        status = classify_status(signals(mapping=MappingProgress.EXTENDING))
        assert status.kind == StatusKind.TAP_TO_SKETCH
        assert status.message == "Tap Sketch to draw on screen."

    def test_mapped_rules_win_over_saved_map(self):
        status = classify_status(signals(mapping=MappingProgress.MAPPED, has_saved_map=True,
                                         peer_names=["bob"]))
        assert status.kind == StatusKind.TAP_TO_SKETCH

    def test_load_or_map(self):
        status = classify_status(signals(has_saved_map=True))
        assert status.kind == StatusKind.LOAD_OR_MAP
        assert "Load Experience" in status.message

    def test_wait_without_saved_map(self):
        status = classify_status(signals(peer_names=["bob"]))
        assert status.kind == StatusKind.WAIT_FOR_SHARED_SESSION
        assert status.message == ("Move around to map the environment, "
                                  "or wait to join a shared session.")

    def test_wait_when_relocalizing_alone(self):
        status = classify_status(signals(has_saved_map=True, relocalizing=True))
        assert status.kind == StatusKind.WAIT_FOR_SHARED_SESSION

    def test_connected_with_peers(self):
        status = classify_status(signals(has_saved_map=True, relocalizing=True,
                                         peer_names=("bob", "carol")))
        assert status.kind == StatusKind.CONNECTED_WITH
        assert status.message == "Connected with bob,carol."

    def test_connected_rule_needs_no_authority(self):
        status = classify_status(signals(has_saved_map=True, relocalizing=True,
                                         peer_names=("bob",), map_authority="bob"))
        assert status.kind == StatusKind.TRACKING_FEEDBACK

    def test_relocalize_to_image(self):
        """Scenario B"""
        status = classify_status(signals(tracking=RELOCALIZING, relocalizing=True, map_authority="bob"))
        assert status.kind == StatusKind.RELOCALIZE_TO_IMAGE
        assert status.message == "Move your device to the location shown in the image."
        assert status.show_thumbnail

    def test_received_map_while_initializing(self):
        status = classify_status(signals(tracking=INITIALIZING, map_authority="bob"))
        assert status.kind == StatusKind.RECEIVED_MAP
        assert status.message == "Received map from bob."
        assert not status.show_thumbnail

    def test_received_map_while_relocalizing_without_flag(self):
        status = classify_status(signals(tracking=RELOCALIZING, map_authority="bob"))
        assert status.kind == StatusKind.RECEIVED_MAP

    def test_fallback_to_tracking_feedback(self):
        quality = TrackingQuality.limited(LimitedReason.EXCESSIVE_MOTION)
        status = classify_status(signals(tracking=quality, map_authority="bob", relocalizing=True))
        assert status.kind == StatusKind.TRACKING_FEEDBACK
        assert status.message == quality.description

    def test_fallback_when_not_available(self):
        status = classify_status(signals(tracking=TrackingQuality.not_available(),
                                         mapping=MappingProgress.MAPPED, has_user_drawn_anchor=True))
        assert status.kind == StatusKind.TRACKING_FEEDBACK
        assert status.message == "Tracking unavailable."

    def test_initializing_without_authority_falls_back(self):
        status = classify_status(signals(tracking=INITIALIZING))
        assert status.message == "Initializing AR session."

    def test_connected_names_are_comma_joined(self):
        status = classify_status(signals(mapping=MappingProgress.LIMITED, has_saved_map=True,
                                         relocalizing=True, peer_names=("a", "b")))
        assert status.message == "Connected with a,b."


class TestSessionNotices:

    def test_interrupted_wins_over_every_rule(self):
        status = classify_status(signals(mapping=MappingProgress.MAPPED, has_user_drawn_anchor=True,
                                         session_notice=SessionNotice.INTERRUPTED))
        assert status.kind == StatusKind.SESSION_INTERRUPTED
        assert status.message == "Session was interrupted"
        assert not status.show_thumbnail

    def test_interruption_ended_wins_over_relocalization(self):
        status = classify_status(signals(tracking=RELOCALIZING, relocalizing=True, map_authority="bob",
                                         session_notice=SessionNotice.INTERRUPTION_ENDED))
        assert status.kind == StatusKind.SESSION_INTERRUPTION_ENDED
        assert status.message == "Session interruption ended"

    def test_failed_includes_error(self):
        status = classify_status(signals(session_notice=SessionNotice.FAILED,
                                         session_error="Camera access denied"))
        assert status.kind == StatusKind.SESSION_FAILED
        assert status.message == "Session failed: Camera access denied"


class TestDeterminism:

    @pytest.mark.parametrize("tracking", [NORMAL, RELOCALIZING, INITIALIZING, TrackingQuality.not_available()])
    def test_same_signals_same_status(self, tracking):
        for mapping, saved, reloc, peers, authority, drawn in itertools.product(
                list(MappingProgress), [False, True], [False, True],
                [(), ("bob",)], [None, "bob"], [False, True]):
            s = signals(tracking=tracking, mapping=mapping, has_saved_map=saved, relocalizing=reloc,
                        peer_names=peers, map_authority=authority, has_user_drawn_anchor=drawn)
            first = classify_status(s)
            assert all(classify_status(s) == first for _ in range(3))
            assert first.message is not None

    def test_does_not_mutate_signals(self):
        s = signals(tracking=RELOCALIZING, relocalizing=True, peer_names=("bob",))
        before = (s.relocalizing, s.peer_names, s.map_authority)
        classify_status(s)
        assert (s.relocalizing, s.peer_names, s.map_authority) == before


class TestControls:

    def test_save_needs_mapping_and_last_anchor(self):
        s = signals(mapping=MappingProgress.MAPPED)
        assert classify_controls(s, last_local_anchor_in_map=True).save_enabled
        assert not classify_controls(s, last_local_anchor_in_map=False).save_enabled
        assert not classify_controls(signals(), last_local_anchor_in_map=True).save_enabled

    def test_load_needs_saved_map(self):
        assert classify_controls(signals(has_saved_map=True), False).load_enabled
        assert not classify_controls(signals(), False).load_enabled

    def test_mapping_status_text(self):
        text = mapping_status_text(RELOCALIZING, MappingProgress.EXTENDING)
        assert text == "Mapping: extending\nTracking: limited(relocalizing)"
