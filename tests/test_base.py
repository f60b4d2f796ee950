import pytest

from ccline.config import SegmentId
from ccline.input import InputData, Model, Workspace
from ccline.segments.base import Segment, SegmentData


class _EchoSegment(Segment):
    segment_id = SegmentId.DIRECTORY

    def collect(self, input_data):
        if not input_data.workspace.current_dir:
            return None
        return SegmentData(
            primary=input_data.workspace.current_dir,
            metadata={"model": input_data.model.id},
        )


def _input(current_dir):
    return InputData(
        model=Model(id="m", display_name="M"),
        workspace=Workspace(current_dir=current_dir),
        transcript_path="t.jsonl",
    )


def test_segment_data_defaults():
    data = SegmentData(primary="x")
    assert data.secondary == ""
    assert data.metadata == {}


def test_segment_data_metadata_not_shared():
    first = SegmentData(primary="a")
    second = SegmentData(primary="b")
    first.metadata["k"] = "v"
    assert second.metadata == {}


def test_subclass_collects():
    data = _EchoSegment().collect(_input("/work"))
    assert data == SegmentData(primary="/work", metadata={"model": "m"})
    assert _EchoSegment.segment_id is SegmentId.DIRECTORY


def test_subclass_may_return_none():
    assert _EchoSegment().collect(_input("")) is None


def test_abstract_segment_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Segment()