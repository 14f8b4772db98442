import io
import tarfile
import zipfile

import httpx
import pytest

from leptoskit import tools
from leptoskit.exe import (
    ExeCache,
    extract_tar,
    extract_zip,
    get_exe,
    with_cache_dir,
)
from leptoskit.tools import ExeMeta, Tool


def _tar_gz(files):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def _zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = 0o100755 << 16
            archive.writestr(info, content)
    return buffer.getvalue()


def _meta(url, exe="dart-sass/sass"):
    return ExeMeta(name="sass", version="1.0.0", url=url, exe=exe, manual="install it")


def _transport(body, status=200):
    return httpx.MockTransport(lambda request: httpx.Response(status, content=body))


def test_extract_tar_round_trip(tmp_path):
    extract_tar(_tar_gz({"dart-sass/sass": b"#!/bin/sh\n"}), tmp_path / "out")
    assert (tmp_path / "out" / "dart-sass" / "sass").read_bytes() == b"#!/bin/sh\n"


def test_extract_zip_round_trip(tmp_path):
    extract_zip(_zip({"dart-sass/sass.bat": b"echo"}), tmp_path / "out")
    assert (tmp_path / "out" / "dart-sass" / "sass.bat").read_bytes() == b"echo"


def test_exe_in_cache_missing(tmp_path):
    cache = ExeCache(_meta("https://example.com/a.tar.gz"), tmp_path)
    with pytest.raises(FileNotFoundError):
        cache.exe_in_cache()


def test_exe_in_cache_present(tmp_path):
    (tmp_path / "dart-sass").mkdir()
    (tmp_path / "dart-sass" / "sass").write_bytes(b"x")
    cache = ExeCache(_meta("https://example.com/a.tar.gz"), tmp_path)
    assert cache.exe_in_cache() == tmp_path / "dart-sass" / "sass"


def test_write_binary(tmp_path):
    cache = ExeCache(_meta("https://example.com/tool", exe="tool"), tmp_path / "bin")
    cache.write_binary(b"binary")
    assert (tmp_path / "bin" / "tool").read_bytes() == b"binary"


def test_extract_downloaded_plain_binary(tmp_path):
    cache = ExeCache(_meta("https://example.com/tool-linux-x64", exe="tool"), tmp_path)
    cache.extract_downloaded(b"payload")
    assert cache.exe_in_cache().read_bytes() == b"payload"


def test_extract_downloaded_zip(tmp_path):
    cache = ExeCache(_meta("https://example.com/a.zip", exe="dart-sass/sass.bat"), tmp_path)
    cache.extract_downloaded(_zip({"dart-sass/sass.bat": b"bat"}))
    assert cache.exe_in_cache().read_bytes() == b"bat"


@pytest.mark.asyncio
async def test_download_tar(tmp_path):
    body = _tar_gz({"dart-sass/sass": b"script"})
    cache = ExeCache(
        _meta("https://example.com/a.tar.gz"), tmp_path / "dir", transport=_transport(body)
    )
    path = await cache.get()
    assert path == tmp_path / "dir" / "dart-sass" / "sass"
    assert path.read_bytes() == b"script"


@pytest.mark.asyncio
async def test_fetch_archive_failure(tmp_path):
    cache = ExeCache(
        _meta("https://example.com/a.tar.gz"), tmp_path, transport=_transport(b"", 404)
    )
    with pytest.raises(RuntimeError):
        await cache.fetch_archive()


@pytest.mark.asyncio
async def test_download_missing_binary_after_extract(tmp_path):
    body = _tar_gz({"other/file": b"x"})
    cache = ExeCache(
        _meta("https://example.com/a.tar.gz"), tmp_path, transport=_transport(body)
    )
    with pytest.raises(RuntimeError, match="could still not be found"):
        await cache.download()


@pytest.mark.asyncio
async def test_with_cache_dir_uses_existing(tmp_path):
    meta = _meta("https://example.com/a.tar.gz")
    exe = tmp_path / meta.full_name / "dart-sass" / "sass"
    exe.parent.mkdir(parents=True)
    exe.write_bytes(b"x")
    assert await with_cache_dir(meta, tmp_path) == exe


class _AbsentTool(Tool):
    name = "leptoskit-absent-tool-for-tests"
    github_owner = "owner"
    github_repo = "repo"
    default_version = "1.0.0"
    env_var_version_name = "LEPTOSKIT_ABSENT_TOOL_VERSION"

    def download_url(self, target_os, target_arch, version):
        return "https://example.com/tool.tar.gz"

    def executable_name(self, target_os, target_arch, version):
        return "bin/tool"


def _absent_tool():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"tag_name": "1.0.0"})
    )
    return _AbsentTool(musl=False, transport=transport)


@pytest.fixture
def isolated_cache(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.delenv("LEPTOSKIT_ABSENT_TOOL_VERSION", raising=False)
    return tmp_path


@pytest.mark.asyncio
async def test_get_exe_without_downloads_raises(isolated_cache):
    with pytest.raises(RuntimeError, match="is required but was not found"):
        await get_exe(_absent_tool(), allow_downloads=False)


@pytest.mark.asyncio
async def test_get_exe_from_cache(isolated_cache):
    cache_dir = tools.get_cache_dir()
    full_name = "leptoskit-absent-tool-for-tests-1.0.0"
    exe = cache_dir / full_name / full_name / "bin" / "tool"
    exe.parent.mkdir(parents=True)
    exe.write_bytes(b"x")
    assert await get_exe(_absent_tool()) == exe