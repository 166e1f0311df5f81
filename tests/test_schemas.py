"""Tests for pictospeak.schemas: wire records, status signals, events."""

import pytest
from pydantic import ValidationError

from pictospeak.errors import ServerError
from pictospeak.schemas import (
    ClientConfig,
    FeedbackEvent,
    FeedbackRecord,
    FeedbackStatus,
    KeyTerm,
    ProcessingSignal,
    Snapshot,
)
from streamdata import make_record


class TestFeedbackStatus:
    def test_milestones_are_ordered(self):
        ordered = sorted(FeedbackStatus, key=lambda s: s.order)
        assert ordered == [
            FeedbackStatus.UPLOADING_MEDIA,
            FeedbackStatus.UNDERSTANDING_CONTENT,
            FeedbackStatus.WRITING_AI_REFINED_PARAGRAPH,
            FeedbackStatus.COMPLETED,
        ]

    def test_values_are_wire_names(self):
        assert FeedbackStatus("writing_ai_refined_paragraph").order == 2
        assert str(FeedbackStatus.COMPLETED) == "completed"


class TestProcessingSignal:
    def test_known_status(self):
        signal = ProcessingSignal.model_validate_json('{"status":"understanding_content"}')
        assert signal.to_status() is FeedbackStatus.UNDERSTANDING_CONTENT

    def test_unknown_status(self):
        assert ProcessingSignal(status="reticulating").to_status() is None

    def test_feedback_record_is_not_a_signal(self):
        with pytest.raises(ValidationError):
            ProcessingSignal.model_validate(make_record())


class TestFeedbackRecord:
    def test_valid_record(self):
        record = FeedbackRecord.model_validate(make_record(is_final=True))
        assert record.is_final is True
        assert record.suggestions[0].refinement == "is running in the park"
        assert record.metadata.standard_description_segments == [
            "A dog is running",
            "in the park.",
        ]

    @pytest.mark.parametrize(
        "field", ["is_final", "description_teaching", "key_terms", "suggestions", "metadata"]
    )
    def test_required_fields(self, field):
        data = make_record()
        del data[field]
        with pytest.raises(ValidationError):
            FeedbackRecord.model_validate(data)

    @pytest.mark.parametrize(
        "field",
        [
            "chosen_key_terms",
            "chosen_refinements",
            "chosen_items_generated",
            "standard_description_segments",
        ],
    )
    def test_metadata_fields_required(self, field):
        data = make_record()
        del data["metadata"][field]
        with pytest.raises(ValidationError):
            FeedbackRecord.model_validate(data)

    def test_key_term_requires_translation(self):
        with pytest.raises(ValidationError):
            KeyTerm(term="bark", example="Dogs bark.")


class TestSnapshotAndEvents:
    def test_snapshot_defaults(self):
        snapshot = Snapshot(original_text="a", refined_text="b")
        assert snapshot.score is None
        assert snapshot.is_final is False
        assert snapshot.suggestions == []

    def test_status_event(self):
        event = FeedbackEvent.for_status(FeedbackStatus.COMPLETED)
        assert event.kind == "status"
        assert event.snapshot is None

    def test_snapshot_event(self):
        snapshot = Snapshot(original_text="a", refined_text="b")
        event = FeedbackEvent.for_snapshot(snapshot)
        assert event.kind == "snapshot"
        assert event.snapshot == snapshot

    def test_event_round_trips_through_json(self):
        event = FeedbackEvent.for_status(FeedbackStatus.UPLOADING_MEDIA)
        assert FeedbackEvent.model_validate_json(event.model_dump_json()) == event


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()
        assert config.base_url == "http://127.0.0.1:8000"
        assert config.timeout == 30.0

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientConfig(timeout=0)

    def test_read_chunk_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientConfig(read_chunk_size=0)


class TestErrors:
    def test_server_error_message(self):
        err = ServerError(503, "maintenance")
        assert str(err) == "Server returned HTTP 503: maintenance"
        assert err.status_code == 503

    def test_server_error_without_detail(self):
        assert str(ServerError(401)) == "Server returned HTTP 401"
