"""Unit tests for the path safety policy."""

from pathlib import Path

import pytest
from saferm.quarantine.protected import (
    check_path_policy,
    has_traversal,
    is_inside,
    is_protected_path,
)


class TestIsProtectedPath:
    """Tests for is_protected_path."""

    @pytest.mark.parametrize("path", ["/etc", "/etc/passwd", "/usr/bin/ls", "/boot/vmlinuz", "/root/.ssh"])
    def test_protected(self, path: str) -> None:
        assert is_protected_path(path) is True

    @pytest.mark.parametrize("path", ["/usrdata", "/home/user/etc", "/tmp/lib", "/libraries"])
    def test_component_boundaries(self, path: str) -> None:
        assert is_protected_path(path) is False


class TestHelpers:
    """Tests for traversal and containment helpers."""

    def test_traversal_segment(self) -> None:
        assert has_traversal("../x") is True
        assert has_traversal("a/../b") is True
        assert has_traversal("file..txt") is False

    def test_is_inside(self) -> None:
        assert is_inside(Path("/q/trash/x"), Path("/q")) is True
        assert is_inside(Path("/q"), Path("/q")) is True
        assert is_inside(Path("/qq"), Path("/q")) is False


class TestCheckPathPolicy:
    """Tests for check_path_policy."""

    def test_ordinary_path_allowed(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("x")

        assert check_path_policy(str(target), target, tmp_path / "q") is None

    def test_system_path_rejected(self, tmp_path: Path) -> None:
        reason = check_path_policy("/etc/hostname", Path("/etc/hostname"), tmp_path / "q")
        assert reason is not None
        assert "Protected system path" in reason

    def test_force_allows_system_path(self, tmp_path: Path) -> None:
        assert check_path_policy("/etc/hostname", Path("/etc/hostname"), tmp_path / "q", force=True) is None

    def test_flag_like_name_rejected(self, tmp_path: Path) -> None:
        reason = check_path_policy("-rf", tmp_path / "-rf", tmp_path / "q")
        assert reason is not None
        assert "command-line flag" in reason

    def test_traversal_rejected(self, tmp_path: Path) -> None:
        raw = str(tmp_path / "a" / ".." / "b")
        reason = check_path_policy(raw, tmp_path / "b", tmp_path / "q")
        assert reason is not None
        assert "traversal" in reason

    def test_symlink_to_protected_target_rejected(self, tmp_path: Path) -> None:
        link = tmp_path / "passwd-link"
        link.symlink_to("/etc/passwd")

        reason = check_path_policy(str(link), link, tmp_path / "q")

        assert reason is not None
        assert "Symlink targets protected path" in reason

    def test_symlink_to_ordinary_target_allowed(self, tmp_path: Path) -> None:
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "elsewhere")

        assert check_path_policy(str(link), link, tmp_path / "q") is None

    def test_quarantine_contents_rejected_even_with_force(self, tmp_path: Path) -> None:
        root = tmp_path / "q"
        inside = root / "trash" / "x_1"
        inside.parent.mkdir(parents=True)
        inside.write_text("x")

        reason = check_path_policy(str(inside), inside, root, force=True)

        assert reason == "Path is inside the quarantine area"

    def test_quarantine_ancestor_rejected_even_with_force(self, tmp_path: Path) -> None:
        root = tmp_path / "q"
        root.mkdir()

        reason = check_path_policy(str(tmp_path), tmp_path, root, force=True)

        assert reason == "Path contains the quarantine area"
