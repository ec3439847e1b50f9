import os

from hexascene.data_path import data_path


def test_suffix_is_appended_after_slash():
    assert data_path("hexapod.scene").endswith("/hexapod.scene")


def test_same_directory_for_different_files():
    first = data_path("hexapod.pnct")
    second = data_path("dusty-floor.opus")
    assert os.path.dirname(first) == os.path.dirname(second)


def test_result_is_absolute():
    path = data_path("hexapod.scene")
    assert os.path.abspath(path) == os.path.normpath(path)
    assert path.startswith(os.sep) or os.path.splitdrive(path)[0] != ""


def test_empty_suffix_gives_directory_with_trailing_slash():
    base = data_path("")
    assert base.endswith("/")
    assert data_path("x") == base + "x"


def test_nested_suffix_is_kept_whole():
    nested = data_path("sub/mesh.pnct")
    assert os.path.dirname(os.path.dirname(nested)) == os.path.dirname(data_path("mesh.pnct"))


def test_repeated_calls_agree():
    first = data_path("a.wav")
    assert os.path.basename(first) == "a.wav"
    assert data_path("a.wav") == data_path("") + "a.wav"