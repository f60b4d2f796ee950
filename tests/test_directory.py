import pytest

from ccline.input import InputData, Model, Workspace
from ccline.segments.directory import DirectorySegment, extract_directory_name


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/home/user/project", "project"),
        ("C:\\Users\\user\\project", "project"),
        ("project", "project"),
        ("/", "root"),
        ("", "root"),
        ("/home/user/", "root"),
    ],
)
def test_extract_directory_name(path, expected):
    assert extract_directory_name(path) == expected


def test_windows_separator_wins_on_mixed_path():
    assert extract_directory_name("C:/work\\repo") == "repo"


def test_collect():
    data = DirectorySegment().collect(
        InputData(
            model=Model(id="m", display_name="M"),
            workspace=Workspace(current_dir="/srv/app"),
            transcript_path="t.jsonl",
        )
    )
    assert data.primary == "app"
    assert data.secondary == ""
    assert data.metadata == {"full_path": "/srv/app"}