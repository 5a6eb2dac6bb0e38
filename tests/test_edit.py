# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Tests for shout.edit."""

import pytest

from shout import edit
from shout.edit import Editor, LineReplacer, Replacer
from shout.errors import EditError

SSHD = (
    "Port 22\n"
    "PermitRootLogin yes\n"
    "#PasswordAuthentication yes\n"
    "  #  X11Forwarding yes\n"
    "UsePAM yes\n"
)


@pytest.fixture
def sshd(tmp_path):
    path = tmp_path / "sshd_config"
    path.write_text(SSHD)
    return path


class TestEditor:
    """Test the Editor object."""

    def test_opening_backs_up(self, sshd):
        with Editor(sshd) as e:
            assert e.read() == SSHD

        assert (sshd.parent / "sshd_config+1~").read_text() == SSHD

    def test_append(self, sshd):
        edit.append(sshd, "Banner none\n")
        assert sshd.read_text() == SSHD + "Banner none\n"

    def test_insert(self, sshd):
        edit.insert(sshd, "# managed file\n")
        assert sshd.read_text() == "# managed file\n" + SSHD

    def test_several_operations(self, sshd):
        with Editor(sshd) as e:
            e.replace([Replacer(r"(?m)^Port 22$", "Port 2222")])
            e.append("Banner none\n")

        content = sshd.read_text()
        assert content.startswith("Port 2222\n")
        assert content.endswith("Banner none\n")

    def test_keeps_crlf(self, tmp_path):
        path = tmp_path / "win.ini"
        path.write_bytes(b"a=1\r\nb=2\r\n")

        edit.replace(path, [Replacer("b=2", "b=3")])

        assert path.read_bytes() == b"a=1\r\nb=3\r\n"


class TestComment:
    """Test commenting and uncommenting lines."""

    def test_comment(self, sshd):
        assert edit.comment(sshd, r"^PermitRootLogin", r"^UsePAM") is True

        lines = sshd.read_text().splitlines()
        assert lines[1] == "# PermitRootLogin yes"
        assert lines[4] == "# UsePAM yes"
        assert lines[0] == "Port 22"

    def test_comment_custom_char(self, tmp_path):
        path = tmp_path / "my.cnf"
        path.write_text("bind-address = 127.0.0.1\n")

        edit.comment(path, "bind-address", comment_char=";")

        assert path.read_text() == "; bind-address = 127.0.0.1\n"

    def test_comment_no_match(self, sshd):
        assert edit.comment(sshd, r"^Nothing") is False
        assert sshd.read_text() == SSHD

    def test_comment_out(self, sshd):
        changed = edit.comment_out(sshd, r"PasswordAuthentication", r"X11Forwarding")

        assert changed is True
        lines = sshd.read_text().splitlines()
        assert lines[2] == "PasswordAuthentication yes"
        assert lines[3] == "X11Forwarding yes"

    def test_comment_out_only_first_marker(self, tmp_path):
        path = tmp_path / "conf"
        path.write_text("# key = value # note\n")

        edit.comment_out(path, "key")

        assert path.read_text() == "key = value # note\n"

    def test_comment_round_trip(self, sshd):
        edit.comment(sshd, r"^UsePAM")
        edit.comment_out(sshd, r"UsePAM")

        assert sshd.read_text() == SSHD


class TestReplace:
    """Test regular expression replacement."""

    def test_replace_all(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("yes yes yes\n")

        assert edit.replace(path, [Replacer("yes", "no")]) is True
        assert path.read_text() == "no no no\n"

    def test_replace_count(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("yes yes yes\n")

        edit.replace(path, [Replacer("yes", "no")], n=2)

        assert path.read_text() == "no no yes\n"

    def test_replace_zero(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("yes\n")

        assert edit.replace(path, [Replacer("yes", "no")], n=0) is False
        assert path.read_text() == "yes\n"

    def test_replacement_is_literal(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("path=/old\n")

        edit.replace(path, [Replacer(r"/(old)", r"\1/new")])

        assert path.read_text() == "path=\\1/new\n"

    def test_several_replacers(self, sshd):
        edit.replace(sshd, [Replacer("Port 22", "Port 2200"), Replacer("Port 2200", "Port 2201")])
        assert sshd.read_text().startswith("Port 2201\n")

    def test_no_change_not_rewritten(self, sshd):
        assert edit.replace(sshd, [Replacer("absent", "x")]) is False
        assert sshd.read_text() == SSHD

    def test_invalid_pattern(self, sshd):
        with pytest.raises(EditError):
            edit.replace(sshd, [Replacer("(", "x")])

    def test_replace_at_line(self, sshd):
        changed = edit.replace_at_line(sshd, [LineReplacer(r"^PermitRootLogin", "yes", "no")])

        assert changed is True
        lines = sshd.read_text().splitlines()
        assert lines[1] == "PermitRootLogin no"
        assert lines[4] == "UsePAM yes"
        assert lines[2] == "#PasswordAuthentication yes"
