"""Tests for env file discovery and copying"""
import os
import stat

from git_worktree_keeper.services.env_files import EnvFileService
from conftest import commit_file


def write(root, rel_path, content="X=1\n"):
    path = os.path.join(root, rel_path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)


class TestDiscover:
    """Test finding untracked env files."""

    def test_finds_untracked_env_files(self, git_repo, config):
        root = git_repo.working_dir
        write(root, ".env")
        write(root, ".env.local")
        write(root, "services/api/.env.test")
        write(root, "notes.env")
        found = EnvFileService(config).discover(root)
        assert sorted(found) == [".env", ".env.local", os.path.join("services", "api", ".env.test")]

    def test_skips_dependency_directories(self, git_repo, config):
        root = git_repo.working_dir
        for skipped in ("node_modules/pkg", "vendor", "dist", "build"):
            write(root, os.path.join(skipped, ".env"))
        assert EnvFileService(config).discover(root) == []

    def test_excludes_tracked_files(self, git_repo, config):
        root = git_repo.working_dir
        commit_file(root, ".env.example", "X=\n", "Add example")
        write(root, ".env")
        assert EnvFileService(config).discover(root) == [".env"]

    def test_excludes_tracked_files_with_non_ascii_paths(self, git_repo, config):
        """git quotes such paths in plain ls-files output."""
        root = git_repo.working_dir
        tracked = os.path.join("dienste", "zähler", ".env.example")
        write(root, tracked, "X=\n")
        git_repo.git.add(tracked)
        git_repo.git.commit("-m", "Add counter env example")
        write(root, os.path.join("dienste", "zähler", ".env"))

        assert EnvFileService(config).discover(root) == [os.path.join("dienste", "zähler", ".env")]

    def test_nothing_found(self, git_repo, config):
        assert EnvFileService(config).discover(git_repo.working_dir) == []


class TestCopy:
    """Test copying env files between worktrees."""

    def test_copy_creates_parents_and_restricts_mode(self, temp_dir, config):
        source, dest = temp_dir / "src", temp_dir / "dest"
        write(str(source), "a/b/.env", "SECRET=1\n")
        dest.mkdir()

        copied = EnvFileService(config).copy([os.path.join("a", "b", ".env")], str(source), str(dest))

        target = dest / "a" / "b" / ".env"
        assert copied == [os.path.join("a", "b", ".env")]
        assert target.read_text() == "SECRET=1\n"
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600
