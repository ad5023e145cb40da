"""
Unit tests for the filesystem walker module.

Tests traversal order, depth pruning, conjunction filtering, symlink handling
and recovery from unreadable entries, both on a real temporary tree and on a
synthetic filesystem that counts directory reads.
"""

import errno
import os
import shutil
import tempfile
from pathlib import Path
import pytest

from fsfind.models.criteria import MatchCriteria
from fsfind.models.entry import DirEntry, EntryKind
from fsfind.models.matchers import EntryType, NameGlob, SizeComparison, SizeRange
from fsfind.tools.filesystem import FileSystem, LocalFileSystem
from fsfind.tools.fs_walker import EntryReadError, FSWalker, walk


class FakeFileSystem(FileSystem):
    """
    In-memory filesystem keyed by '/'-joined paths.

    ``tree`` maps a directory path to its child names; ``files`` maps file
    paths to sizes; ``symlinks`` lists symlink paths. Paths in
    ``unreadable`` fail to list, paths in ``vanished`` fail to stat.
    """

    def __init__(self, tree, files=None, symlinks=(), unreadable=(), vanished=()):
        self.tree = tree
        self.files = files or {}
        self.symlinks = set(symlinks)
        self.unreadable = set(unreadable)
        self.vanished = set(vanished)
        self.list_calls = []
        self.stat_calls = []

    def join(self, parent, name):
        return f"{parent}/{name}"

    def stat_entry(self, path, depth):
        self.stat_calls.append(path)
        if path in self.vanished:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        if path in self.tree:
            return DirEntry(path=path, kind=EntryKind.DIRECTORY, depth=depth)
        if path in self.symlinks:
            return DirEntry(path=path, kind=EntryKind.SYMLINK, depth=depth)
        if path in self.files:
            return DirEntry(path=path, kind=EntryKind.FILE, size=self.files[path], depth=depth)
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

    def list_dir(self, path):
        self.list_calls.append(path)
        if path in self.unreadable:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        return list(self.tree[path])


def deep_tree(levels):
    """A chain root/d1/d2/... with one file per level."""
    tree, files = {}, {}
    path = "root"
    for level in range(1, levels + 1):
        child = f"{path}/d{level}"
        tree[path] = [f"f{level - 1}.txt", f"d{level}"]
        files[f"{path}/f{level - 1}.txt"] = 1
        path = child
    tree[path] = []
    return tree, files


class TestFSWalkerSynthetic:
    """Walker behaviour on a synthetic filesystem."""

    def test_preorder_depth_first(self):
        fs = FakeFileSystem(
            tree={"root": ["b", "a"], "root/a": ["z.txt"], "root/b": []},
            files={"root/a/z.txt": 3},
        )
        walker = FSWalker(filesystem=fs)
        assert list(walker.walk("root", MatchCriteria())) == [
            "root", "root/a", "root/a/z.txt", "root/b",
        ]

    def test_os_order_when_sorting_disabled(self):
        fs = FakeFileSystem(tree={"root": ["b", "a"], "root/a": [], "root/b": []})
        walker = FSWalker(filesystem=fs, sort_entries=False)
        assert list(walker.walk("root", MatchCriteria())) == ["root", "root/b", "root/a"]

    @pytest.mark.parametrize("max_depth", [0, 1, 2, 3])
    def test_depth_pruning_never_reads_beyond_bound(self, max_depth):
        tree, files = deep_tree(6)
        fs = FakeFileSystem(tree=tree, files=files)
        walker = FSWalker(filesystem=fs)

        results = list(walker.walk("root", MatchCriteria(max_depth=max_depth)))

        # Directories at depth < max_depth are the only ones listed
        assert len(fs.list_calls) == max_depth
        # Nothing deeper than the bound is even inspected
        assert all(p.count("/") <= max_depth for p in fs.stat_calls)
        assert all(p.count("/") <= max_depth for p in results)
        assert walker.get_stats()['directories_read'] == max_depth

    def test_unbounded_walk_reads_every_directory(self):
        tree, files = deep_tree(4)
        fs = FakeFileSystem(tree=tree, files=files)
        results = list(FSWalker(filesystem=fs).walk("root", MatchCriteria()))

        assert len(fs.list_calls) == 5
        assert len(results) == 5 + 4

    def test_directory_at_bound_is_tested(self):
        fs = FakeFileSystem(tree={"root": ["sub"], "root/sub": ["deep"], "root/sub/deep": []})
        criteria = MatchCriteria(matchers=(EntryType.parse("d"),), max_depth=1)
        assert list(FSWalker(filesystem=fs).walk("root", criteria)) == ["root", "root/sub"]
        assert fs.list_calls == ["root"]

    def test_walk_is_lazy(self):
        tree, files = deep_tree(5)
        fs = FakeFileSystem(tree=tree, files=files)
        results = FSWalker(filesystem=fs).walk("root", MatchCriteria())

        assert fs.stat_calls == []
        assert next(results) == "root"
        assert fs.list_calls == []
        assert next(results) == "root/d1"
        assert fs.list_calls == ["root"]

    def test_unreadable_subtree_does_not_stop_siblings(self):
        fs = FakeFileSystem(
            tree={"root": ["locked", "open"], "root/locked": ["secret"], "root/open": ["x.log"]},
            files={"root/locked/secret": 1, "root/open/x.log": 1},
            unreadable={"root/locked"},
        )
        errors = []
        walker = FSWalker(filesystem=fs, on_error=errors.append)

        results = list(walker.walk("root", MatchCriteria(matchers=(EntryType.parse("f"),))))

        assert results == ["root/open/x.log"]
        assert len(errors) == 1
        assert errors[0].path == "root/locked"
        assert isinstance(errors[0].cause, PermissionError)
        assert walker.get_errors() == errors
        assert walker.get_stats()['errors'] == 1

    def test_vanished_entry_is_skipped(self):
        fs = FakeFileSystem(
            tree={"root": ["a.txt", "gone.txt", "z.txt"]},
            files={"root/a.txt": 1, "root/gone.txt": 1, "root/z.txt": 1},
            vanished={"root/gone.txt"},
        )
        walker = FSWalker(filesystem=fs)
        results = list(walker.walk("root", MatchCriteria(matchers=(EntryType.parse("f"),))))

        assert results == ["root/a.txt", "root/z.txt"]
        assert [str(e) for e in walker.get_errors()] == ["root/gone.txt: No such file or directory"]

    def test_unreadable_root_yields_nothing(self):
        fs = FakeFileSystem(tree={}, vanished={"missing"})
        walker = FSWalker(filesystem=fs)

        assert list(walker.walk("missing", MatchCriteria())) == []
        assert len(walker.get_errors()) == 1

    def test_symlinks_are_not_descended(self):
        fs = FakeFileSystem(
            tree={"root": ["link", "real"], "root/real": ["f"]},
            files={"root/real/f": 1},
            symlinks={"root/link"},
        )
        results = list(FSWalker(filesystem=fs).walk("root", MatchCriteria(matchers=(EntryType.parse("s"),))))

        assert results == ["root/link"]
        assert "root/link" not in fs.list_calls

    def test_stats_and_reset(self):
        fs = FakeFileSystem(tree={"root": ["a", "b"]}, files={"root/a": 1, "root/b": 2})
        walker = FSWalker(filesystem=fs)
        list(walker.walk("root", MatchCriteria(matchers=(SizeRange.parse("2"),))))

        assert walker.get_stats() == {
            'entries_visited': 3,
            'entries_matched': 1,
            'directories_read': 1,
            'errors': 0,
        }

        walker.reset_stats()
        assert walker.get_stats()['entries_visited'] == 0
        assert walker.get_errors() == []


class TestFSWalkerLocal:
    """Walker behaviour on a real temporary directory tree."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.base = Path(self.temp_dir)
        self.root = self.base / "root"
        self._create_test_structure()

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _create_test_structure(self):
        """root/{a.log (20MB), b.txt (1KB), sub/c.log (5MB)}"""
        (self.root / "sub").mkdir(parents=True)
        self._write_sized(self.root / "a.log", 20 * 1024 * 1024)
        self._write_sized(self.root / "b.txt", 1024)
        self._write_sized(self.root / "sub" / "c.log", 5 * 1024 * 1024)

    @staticmethod
    def _write_sized(path, size):
        with open(path, "wb") as f:
            f.truncate(size)

    def _walk(self, criteria, **kwargs):
        """Walk the tree and report paths relative to the temp dir, as 'root/...'."""
        results = FSWalker(**kwargs).walk(str(self.root), criteria)
        return [Path(os.path.relpath(p, self.base)).as_posix() for p in results]

    def test_large_files_scenario(self):
        criteria = MatchCriteria(matchers=(
            EntryType.parse("f"),
            SizeRange(comparison=SizeComparison.GREATER_THAN, threshold=10 * 1024 * 1024),
        ))
        assert self._walk(criteria) == ["root/a.log"]

    def test_unfiltered_listing(self):
        assert self._walk(MatchCriteria()) == [
            "root", "root/a.log", "root/b.txt", "root/sub", "root/sub/c.log",
        ]

    def test_name_glob_across_levels(self):
        criteria = MatchCriteria(matchers=(NameGlob(pattern="*.log"),))
        assert self._walk(criteria) == ["root/a.log", "root/sub/c.log"]

    def test_depth_limit(self):
        criteria = MatchCriteria(matchers=(NameGlob(pattern="*.log"),), max_depth=1)
        assert self._walk(criteria) == ["root/a.log"]

    def test_depth_zero_tests_only_root(self):
        assert self._walk(MatchCriteria(max_depth=0)) == ["root"]

    def test_type_directory(self):
        assert self._walk(MatchCriteria(matchers=(EntryType.parse("d"),))) == ["root", "root/sub"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_reported_not_followed(self):
        os.symlink(self.root / "sub", self.root / "loop")

        assert self._walk(MatchCriteria(matchers=(EntryType.parse("s"),))) == ["root/loop"]
        # c.log is reached once, through the real directory only
        assert self._walk(MatchCriteria(matchers=(NameGlob(pattern="c.log"),))) == ["root/sub/c.log"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_broken_symlink_is_an_entry(self):
        os.symlink(self.root / "nowhere", self.root / "dangling")
        assert self._walk(MatchCriteria(matchers=(EntryType.parse("s"),))) == ["root/dangling"]

    @pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions")
    def test_permission_denied_subtree(self):
        (self.root / "locked").mkdir()
        self._write_sized(self.root / "locked" / "hidden.log", 1)
        (self.root / "zz").mkdir()
        self._write_sized(self.root / "zz" / "later.log", 1)
        os.chmod(self.root / "locked", 0)

        errors = []
        try:
            results = self._walk(MatchCriteria(matchers=(NameGlob(pattern="*.log"),)), on_error=errors.append)
        finally:
            os.chmod(self.root / "locked", 0o755)

        assert results == ["root/a.log", "root/sub/c.log", "root/zz/later.log"]
        assert len(errors) == 1
        assert errors[0].path == str(self.root / "locked")
        assert isinstance(errors[0], EntryReadError)

    def test_local_filesystem(self):
        fs = LocalFileSystem()
        assert sorted(fs.list_dir(str(self.root))) == ["a.log", "b.txt", "sub"]
        entry = fs.stat_entry(str(self.root / "b.txt"), 1)
        assert entry.kind is EntryKind.FILE
        assert entry.size == 1024
        assert entry.depth == 1

    def test_module_walk_function(self):
        results = list(walk(str(self.root), MatchCriteria(matchers=(NameGlob(pattern="b.txt"),))))
        assert results == [os.path.join(str(self.root), "b.txt")]

    def test_undecodable_name_does_not_stop_walk(self):
        bad_name = b"bad\xff.txt"
        flat = self.base / "flat"
        flat.mkdir()
        self._write_sized(flat / "a.txt", 1)
        self._write_sized(flat / "z.txt", 1)
        try:
            with open(os.path.join(os.fsencode(str(flat)), bad_name), "wb"):
                pass
        except OSError:
            pytest.skip("filesystem rejects names that are not valid UTF-8")

        walker = FSWalker()
        results = list(walker.walk(str(flat), MatchCriteria(matchers=(NameGlob(pattern="*.txt"),))))

        assert results == [
            str(flat / "a.txt"),
            os.path.join(str(flat), os.fsdecode(bad_name)),
            str(flat / "z.txt"),
        ]
        assert walker.get_errors() == []


class TestFileSystemInterface:
    """The filesystem seam itself."""

    def test_incomplete_filesystem_cannot_be_created(self):
        class ListOnly(FileSystem):
            def list_dir(self, path):
                return []

        with pytest.raises(TypeError):
            ListOnly()

    def test_rejected_entry_is_reported_and_skipped(self):
        class PickyFileSystem(FakeFileSystem):
            def stat_entry(self, path, depth):
                if path == "root/odd":
                    return DirEntry(path=path, kind=EntryKind.DIRECTORY, size=4, depth=depth)
                return super().stat_entry(path, depth)

        fs = PickyFileSystem(tree={"root": ["a", "odd", "z"], "root/odd": []}, files={"root/a": 1, "root/z": 1})
        walker = FSWalker(filesystem=fs)

        assert list(walker.walk("root", MatchCriteria(matchers=(EntryType.parse("f"),)))) == ["root/a", "root/z"]
        assert [e.path for e in walker.get_errors()] == ["root/odd"]
