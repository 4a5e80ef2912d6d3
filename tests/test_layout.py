"""Tests for the per-user workspace layout."""

import pytest

from agentgate.exceptions import NotFoundError, ValidationError
from agentgate.workspace.layout import (
    create_workspace,
    delete_workspace,
    list_workspaces,
    open_workspace,
    sanitize_email,
    sanitize_workspace_name,
    user_base_dir,
    user_home,
)


class TestSanitize:
    def test_email_kept(self):
        assert sanitize_email("ada@example.com") == "ada@example.com"

    def test_email_unsafe_characters_replaced(self):
        assert sanitize_email("a/b+c@x.io") == "a_b_c@x.io"

    def test_email_dots_only_rejected(self):
        with pytest.raises(ValidationError):
            sanitize_email("..")

    def test_workspace_name(self):
        assert sanitize_workspace_name("my project!") == "my_project_"

    def test_workspace_name_empty(self):
        with pytest.raises(ValidationError):
            sanitize_workspace_name("   ")


class TestLayout:
    def test_user_home_creates_tree(self, tmp_path):
        home = user_home(tmp_path, "ada@example.com")
        base = tmp_path / "ada@example.com"
        assert home.path == base / "home"
        assert home.path.is_dir()
        assert (base / "workspaces").is_dir()

    def test_base_dir_not_created(self, tmp_path):
        base = user_base_dir(tmp_path, "bob@example.com")
        assert base.path == tmp_path / "bob@example.com"
        assert not base.path.exists()

    def test_create_workspace(self, tmp_path):
        ws = create_workspace(tmp_path, "ada@example.com", "data science")
        assert ws.path == tmp_path / "ada@example.com" / "workspaces" / "data_science"
        assert ws.path.is_dir()

    def test_traversal_in_email_stays_inside(self, tmp_path):
        home = user_home(tmp_path / "data", "../../x@y.z")
        assert str(home.path).startswith(str(tmp_path / "data"))


class TestNamedWorkspaces:
    def test_list_without_layout(self, tmp_path):
        assert list_workspaces(tmp_path, "ada@example.com") == []

    def test_list_sorted(self, tmp_path):
        create_workspace(tmp_path, "ada@example.com", "zeta")
        create_workspace(tmp_path, "ada@example.com", "alpha")
        create_workspace(tmp_path, "bob@example.com", "other")
        assert list_workspaces(tmp_path, "ada@example.com") == ["alpha", "zeta"]

    def test_open_existing(self, tmp_path):
        created = create_workspace(tmp_path, "ada@example.com", "data science")
        opened = open_workspace(tmp_path, "ada@example.com", "data science")
        assert opened.path == created.path

    def test_open_missing(self, tmp_path):
        user_home(tmp_path, "ada@example.com")
        with pytest.raises(NotFoundError):
            open_workspace(tmp_path, "ada@example.com", "ghost")

    def test_open_does_not_create(self, tmp_path):
        with pytest.raises(NotFoundError):
            open_workspace(tmp_path, "ada@example.com", "ghost")
        assert not (tmp_path / "ada@example.com").exists()

    def test_delete(self, tmp_path):
        ws = create_workspace(tmp_path, "ada@example.com", "scratch")
        (ws.path / "f.txt").write_text("x")
        delete_workspace(tmp_path, "ada@example.com", "scratch")
        assert not ws.path.exists()
        assert list_workspaces(tmp_path, "ada@example.com") == []

    def test_delete_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            delete_workspace(tmp_path, "ada@example.com", "ghost")
