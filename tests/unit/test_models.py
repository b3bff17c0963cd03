"""Unit tests for segment and session models."""

import json
from unittest.mock import Mock

import pytest

from dualrec.models.segment import SegmentHandles, SegmentRecord
from dualrec.models.session import AggregateReport, SessionStatus


def _record(index: int, **kwargs) -> SegmentRecord:
    segment_id = SegmentRecord.make_segment_id("abc", index)
    return SegmentRecord(
        segment_id=segment_id,
        index=index,
        input_file=f"/tmp/input_{segment_id}.wav",
        output_file=f"/tmp/output_{segment_id}.wav",
        start_time=kwargs.pop("start_time", 100.0 + index * 10),
        **kwargs,
    )


@pytest.mark.unit
class TestSegmentRecord:
    """Test cases for SegmentRecord."""

    @pytest.mark.parametrize("index,expected", [(0, "abc_segment_000"), (11, "abc_segment_011"), (123, "abc_segment_123")])
    def test_segment_id_zero_padded(self, index, expected):
        assert SegmentRecord.make_segment_id("abc", index) == expected

    def test_finalize_sets_duration(self):
        record = _record(0, start_time=100.0)

        record.finalize(end_time=160.5, input_size=1000, output_size=44)

        assert record.is_finalized
        assert record.duration == pytest.approx(60.5)
        assert record.input_size == 1000
        assert record.output_size == 44

    def test_finalize_only_once(self):
        record = _record(0)
        record.finalize(end_time=200.0, input_size=1, output_size=1)

        with pytest.raises(RuntimeError):
            record.finalize(end_time=300.0, input_size=2, output_size=2)
        assert record.end_time == 200.0

    def test_detach_handles(self):
        handles = SegmentHandles(input_handle=Mock(), output_handle=None, has_output_audio=False)
        record = _record(0, handles=handles)

        assert record.detach_handles() is handles
        assert record.handles is None
        assert record.detach_handles() is None

    def test_to_dict_excludes_handles(self):
        record = _record(0, handles=SegmentHandles(input_handle=Mock()))

        data = record.to_dict()

        assert "handles" not in data
        json.dumps(data)
        assert data["segment_id"] == "abc_segment_000"
        assert data["end_time"] is None


@pytest.mark.unit
class TestAggregateReport:
    """Test cases for AggregateReport."""

    def test_totals(self):
        segments = []
        for i, (inp, out) in enumerate([(1000, 44), (2000, 500)]):
            record = _record(i)
            record.finalize(end_time=record.start_time + 5.0, input_size=inp, output_size=out)
            segments.append(record)

        report = AggregateReport(session_id="abc", segments=segments).to_dict()

        assert report["success"] is True
        assert report["total_segments"] == 2
        assert report["total_input_size"] == 3000
        assert report["total_output_size"] == 544
        assert report["total_duration"] == pytest.approx(10.0)
        assert report["input_files"] == [s.input_file for s in segments]
        assert report["output_files"] == [s.output_file for s in segments]
        json.dumps(report, allow_nan=False)

    def test_empty_report(self):
        report = AggregateReport(session_id=None).to_dict()

        assert report["total_segments"] == 0
        assert report["total_duration"] == 0


@pytest.mark.unit
def test_session_status_to_dict():
    status = SessionStatus(is_recording=True, session_id="abc", segment_count=3, state="recording")

    assert status.to_dict() == {
        "is_recording": True,
        "session_id": "abc",
        "segment_count": 3,
        "state": "recording",
    }
