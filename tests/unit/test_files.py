from __future__ import annotations

import pytest

from confighub.errors import DecodeError, NotPulledError
from confighub.files import Files


def _files() -> Files:
    files = Files()
    files.decode(
        {
            "server/conf/tomee.xml": "<tomee>\r\n  <port>8080</port>\r\n</tomee>\n",
            "settings.conf": "mode=prod\n",
        }
    )
    return files


def test_decode_and_lookup():
    files = _files()
    assert files.names() == {"server/conf/tomee.xml", "settings.conf"}
    assert files.has_file("settings.conf")
    assert not files.has_file("missing.conf")
    assert files.get("settings.conf") == "mode=prod\n"
    assert files.get("  settings.conf ") == "mode=prod\n"
    assert files.get("missing.conf") is None
    assert len(files) == 2


def test_write_to_local_creates_dirs_and_keeps_text_verbatim(tmp_path):
    files = _files()
    dest = tmp_path / "a" / "b" / "tomee.xml"

    out = files.write_to_local("server/conf/tomee.xml", dest)

    assert out == dest
    assert dest.read_bytes() == "<tomee>\r\n  <port>8080</port>\r\n</tomee>\n".encode("utf-8")


def test_write_to_local_unknown_path_raises_not_pulled(tmp_path):
    files = _files()
    with pytest.raises(NotPulledError):
        files.write_to_local("never/pulled.xml", tmp_path / "x.xml")
    assert not (tmp_path / "x.xml").exists()


def test_write_to_local_surfaces_os_errors(tmp_path):
    files = _files()
    blocker = tmp_path / "blocker"
    blocker.write_text("i am a file", encoding="utf-8")
    with pytest.raises(OSError):
        files.write_to_local("settings.conf", blocker / "settings.conf")


def test_non_text_file_content_fails_and_keeps_previous():
    files = _files()
    with pytest.raises(DecodeError):
        files.decode({"numbers.json": 42})
    assert files.has_file("settings.conf")
