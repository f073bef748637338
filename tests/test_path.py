import pytest

from grftools.path import PathFlag, SplitPath, fnmerge, fnsplit


def test_full_dos_path():
    parts = fnsplit("C:\\dir\\foo.txt")
    assert parts == SplitPath(
        "C:", "\\dir\\", "foo", ".txt",
        PathFlag.DRIVE | PathFlag.DIRECTORY | PathFlag.FILENAME | PathFlag.EXTENSION,
    )


def test_plain_file_name():
    parts = fnsplit("sprites.pcx")
    assert parts.name == "sprites"
    assert parts.extension == ".pcx"
    assert parts.directory == ""
    assert parts.drive == ""
    assert parts.flags == PathFlag.FILENAME | PathFlag.EXTENSION


def test_directory_only():
    parts = fnsplit("sprites/")
    assert parts.directory == "sprites/"
    assert parts.name == ""
    assert parts.flags == PathFlag.DIRECTORY


def test_only_last_dot_is_extension():
    parts = fnsplit("a/b.c/file.tar.gz")
    assert parts.directory == "a/b.c/"
    assert parts.name == "file.tar"
    assert parts.extension == ".gz"


@pytest.mark.parametrize("path", [".", ".."])
def test_dot_entries_are_directories(path):
    parts = fnsplit(path)
    assert parts.directory == path
    assert parts.name == ""
    assert parts.extension == ""
    assert parts.flags == PathFlag.DIRECTORY


def test_drive_relative_name():
    parts = fnsplit("C:foo")
    assert parts.drive == "C:"
    assert parts.name == "foo"
    assert PathFlag.DIRECTORY not in parts.flags


def test_wildcards_in_name():
    parts = fnsplit("dir/*.nfo")
    assert PathFlag.WILDCARDS in parts.flags
    assert parts.name == "*"


def test_wildcard_in_directory_not_flagged():
    parts = fnsplit("d?r/file")
    assert PathFlag.WILDCARDS not in parts.flags


def test_leading_spaces_are_skipped():
    assert fnsplit("   name.ext") == fnsplit("name.ext")


@pytest.mark.parametrize(
    "path",
    ["C:\\dir\\foo.txt", "sprites/trains.pcx", "a/b/c", "file.grf", "dir/sub/"],
)
def test_split_merge_round_trip(path):
    parts = fnsplit(path)
    assert fnmerge(parts.drive, parts.directory, parts.name, parts.extension) == path


def test_merge_adds_separators():
    assert fnmerge("D", "sprites", "trains", "pcx") == "D:sprites/trains.pcx"


def test_merge_keeps_existing_separators():
    assert fnmerge("", "dir\\", "name", ".ext") == "dir\\name.ext"


def test_merge_ignores_missing_parts():
    assert fnmerge(None, None, "name", None) == "name"
    assert fnmerge() == ""


def test_long_extension_is_truncated():
    parts = fnsplit("x." + "e" * 40)
    assert len(parts.extension) == 31
    assert parts.extension.startswith(".")
    assert parts.name == "x"