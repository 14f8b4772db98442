from pathlib import Path

import pytest

from leptoskit.paths import (
    PathError,
    append_str_to_filename,
    clean_windows_path,
    determine_pdb_filename,
    is_ext_any,
    ls_ascii,
    rebase,
    relative_to,
    remove_nested,
    resolve_home_dir,
    starts_with_any,
    test_string as render_test_string,
    unbase,
    without_last,
)


def test_append_str_to_filename_examples():
    assert str(append_str_to_filename(Path("foo.bar"), "_bazz")) == "foo_bazz.bar"
    assert str(append_str_to_filename(Path("a"), "b")) == "ab"


def test_append_str_keeps_parent():
    result = append_str_to_filename(Path("dir") / "app.exe", "_leptos")
    assert result.parent == Path("dir")
    assert result.suffix == ".exe"


def test_append_str_without_file_fails():
    with pytest.raises(PathError):
        append_str_to_filename(Path(".."), "_x")


def test_unbase_same_path_is_dot():
    assert unbase(Path("a/b"), Path("a/b")) == Path(".")


def test_unbase_strips_prefix():
    assert unbase(Path("root/sub/file.rs"), Path("root")) == Path("sub/file.rs")


def test_unbase_mismatch_raises():
    with pytest.raises(PathError):
        unbase(Path("other/file"), Path("root"))


def test_unbase_is_component_wise():
    with pytest.raises(PathError):
        unbase(Path("rootdir/file"), Path("root"))


def test_rebase_round_trip():
    src, dest = Path("src_root"), Path("dest_root")
    original = src / "a" / "b.txt"
    moved = rebase(original, src, dest)
    assert unbase(moved, dest) == unbase(original, src)
    assert rebase(moved, dest, src) == original


def test_rebase_error_is_wrapped():
    with pytest.raises(PathError) as info:
        rebase(Path("x/y"), Path("z"), Path("w"))
    assert isinstance(info.value.__cause__, PathError)


def test_relative_to_absolute(tmp_path):
    target = tmp_path / "x" / "y"
    assert relative_to(target, tmp_path) == Path("x") / "y"


def test_relative_to_relative_is_none():
    assert relative_to(Path("x/y"), Path("x")) is None


def test_without_last():
    base = Path("a") / "b"
    assert without_last(base / "c.txt") == base


def test_test_string_strips_exe():
    assert render_test_string("target/debug/app.exe") == "target/debug/app"


def test_starts_with_any():
    assert starts_with_any(Path("src/lib.rs"), [Path("other"), Path("src")])
    assert not starts_with_any(Path("src/lib.rs"), [Path("sr")])
    assert not starts_with_any(Path("src/lib.rs"), [])


def test_is_ext_any():
    assert is_ext_any(Path("style/main.scss"), ["scss", "sass", "css"])
    assert not is_ext_any(Path("src/main.rs"), ["js"])
    assert not is_ext_any(Path("Makefile"), ["rs"])


def test_resolve_home_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_home_dir(Path("~/proj/Cargo.toml")) == tmp_path / "proj" / "Cargo.toml"
    assert resolve_home_dir(Path("rel/Cargo.toml")) == Path("rel/Cargo.toml")


def test_resolve_home_dir_without_home(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    with pytest.raises(PathError):
        resolve_home_dir(Path("~/x"))


def test_clean_windows_path_plain_path_unchanged():
    assert clean_windows_path(Path("a/b")) == Path("a/b")


def test_remove_nested():
    a, ab, c = Path("a"), Path("a/b"), Path("c")
    assert remove_nested([ab, a]) == [a]
    assert remove_nested([a, ab]) == [a]
    assert remove_nested([a, c, ab]) == [a, c]


def test_determine_pdb_filename(tmp_path):
    exe = tmp_path / "server.exe"
    assert determine_pdb_filename(exe) is None
    pdb = tmp_path / "server.pdb"
    pdb.write_bytes(b"")
    assert determine_pdb_filename(exe) == pdb


def test_ls_ascii(tmp_path):
    (tmp_path / "a.txt").write_text("a")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.txt").write_text("b")
    assert ls_ascii(tmp_path, 0) == f"{tmp_path.name}:\n  a.txt\n  sub:\n    b.txt"