import pytest

from leptoskit import fsutil
from leptoskit.fsutil import FsError


def test_write_read_round_trip(tmp_path):
    target = tmp_path / "file.bin"
    data = bytes(range(50))
    fsutil.write(target, data)
    assert fsutil.read(target) == data


def test_write_text_read_to_string(tmp_path):
    target = tmp_path / "file.txt"
    fsutil.write(target, "héllo")
    assert fsutil.read_to_string(target) == "héllo"


def test_read_missing_raises_with_context(tmp_path):
    missing = tmp_path / "missing"
    with pytest.raises(FsError) as info:
        fsutil.read(missing)
    assert "Could not read" in str(info.value)
    assert isinstance(info.value.__cause__, FileNotFoundError)


def test_create_dir_existing_raises(tmp_path):
    with pytest.raises(FsError):
        fsutil.create_dir(tmp_path)


def test_create_dir_all_nested(tmp_path):
    target = tmp_path / "a" / "b" / "c"
    fsutil.create_dir_all(target)
    fsutil.create_dir_all(target)
    assert target.is_dir()


def test_copy_returns_size(tmp_path):
    src = tmp_path / "src.txt"
    data = b"some content"
    src.write_bytes(data)
    dst = tmp_path / "dst.txt"
    assert fsutil.copy(src, dst) == len(data)
    assert dst.read_bytes() == data


def test_read_dir_lists_entries(tmp_path):
    (tmp_path / "b").write_text("")
    (tmp_path / "a").mkdir()
    assert fsutil.read_dir(tmp_path) == [tmp_path / "a", tmp_path / "b"]


def test_rename(tmp_path):
    src = tmp_path / "old"
    src.write_text("x")
    dst = tmp_path / "new"
    fsutil.rename(src, dst)
    assert not src.exists()
    assert dst.read_text() == "x"


def test_remove_file_and_dirs(tmp_path):
    file = tmp_path / "f"
    file.write_text("")
    fsutil.remove_file(file)
    assert not file.exists()

    empty = tmp_path / "empty"
    empty.mkdir()
    fsutil.remove_dir(empty)
    assert not empty.exists()

    tree = tmp_path / "tree"
    (tree / "sub").mkdir(parents=True)
    (tree / "sub" / "f").write_text("x")
    fsutil.remove_dir_all(tree)
    assert not tree.exists()


def test_remove_dir_non_empty_raises(tmp_path):
    (tmp_path / "d").mkdir()
    (tmp_path / "d" / "f").write_text("")
    with pytest.raises(FsError):
        fsutil.remove_dir(tmp_path / "d")


def test_rm_dir_content(tmp_path):
    target = tmp_path / "site"
    (target / "pkg").mkdir(parents=True)
    (target / "pkg" / "app.wasm").write_bytes(b"x")
    (target / "index.html").write_text("")
    fsutil.rm_dir_content(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_rm_dir_content_missing_is_noop(tmp_path):
    missing = tmp_path / "missing"
    fsutil.rm_dir_content(missing)
    assert not missing.exists()


def _tree(root):
    return {
        p.relative_to(root).as_posix(): (p.read_bytes() if p.is_file() else None)
        for p in root.rglob("*")
    }


def test_copy_dir_all(tmp_path):
    src = tmp_path / "src"
    (src / "a" / "b").mkdir(parents=True)
    (src / "top.txt").write_bytes(b"top")
    (src / "a" / "mid.txt").write_bytes(b"mid")
    (src / "a" / "b" / "deep.txt").write_bytes(b"deep")
    dst = tmp_path / "out" / "dst"
    fsutil.copy_dir_all(src, dst)
    assert _tree(dst) == _tree(src)


def test_copy_dir_all_missing_source(tmp_path):
    with pytest.raises(FsError) as info:
        fsutil.copy_dir_all(tmp_path / "nope", tmp_path / "dst")
    assert "Copy dir recursively" in str(info.value)