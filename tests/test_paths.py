# Tests for sitepub.utils.paths
# Object keys, atomic writes and pattern matching

from sitepub.utils.paths import atomic_write, matches_any_pattern, matches_pattern, normalize_prefix, object_key


class TestNormalizePrefix:
    """Tests for normalize_prefix."""

    def test_empty(self):
        """Test an empty prefix."""
        assert normalize_prefix("") == ""
        assert normalize_prefix("/") == ""

    def test_adds_trailing_slash(self):
        """Test a trailing slash is added."""
        assert normalize_prefix("site") == "site/"

    def test_strips_leading_slash(self):
        """Test a leading slash is removed."""
        assert normalize_prefix("/site/v2/") == "site/v2/"


class TestObjectKey:
    """Tests for object_key."""

    def test_without_prefix(self):
        """Test keys without a prefix."""
        assert object_key("img/logo.png") == "img/logo.png"

    def test_with_prefix(self):
        """Test keys with a prefix."""
        assert object_key("index.html", "preview") == "preview/index.html"

    def test_leading_slash(self):
        """Test leading slashes are dropped."""
        assert object_key("/index.html", "preview/") == "preview/index.html"


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_write_text(self, temp_dir):
        """Test writing text."""
        target = temp_dir / "nested" / "file.txt"
        atomic_write(target, "hello")
        assert target.read_text(encoding="utf-8") == "hello"

    def test_write_bytes(self, temp_dir):
        """Test writing bytes."""
        target = temp_dir / "file.bin"
        atomic_write(target, b"\x00\x01")
        assert target.read_bytes() == b"\x00\x01"

    def test_replaces_and_leaves_no_temp_files(self, temp_dir):
        """Test overwriting leaves no temp files."""
        target = temp_dir / "file.txt"
        atomic_write(target, "one")
        atomic_write(target, "two")
        assert target.read_text(encoding="utf-8") == "two"
        assert [p.name for p in temp_dir.iterdir()] == ["file.txt"]


class TestMatchesPattern:
    """Tests for matches_pattern."""

    def test_simple_glob(self):
        """Test simple glob pattern."""
        assert matches_pattern("style.css", "*.css")
        assert not matches_pattern("style.css", "*.js")

    def test_basename_match(self):
        """Test bare patterns match the file name."""
        assert matches_pattern("a/b/.DS_Store", ".DS_Store")

    def test_pattern_with_directory(self):
        """Test pattern with directory."""
        assert matches_pattern("drafts/post.html", "drafts/*.html")
        assert not matches_pattern("posts/post.html", "drafts/*.html")

    def test_double_star(self):
        """Test ** pattern."""
        assert matches_pattern(".git/objects/ab/cd", ".git/**")
        assert matches_pattern("a/b/c.map", "**/*.map")

    def test_any_pattern(self):
        """Test matching any of several patterns."""
        assert matches_any_pattern("app.js.map", ["*.tmp", "*.map"])
        assert not matches_any_pattern("app.js", ["*.tmp", "*.map"])
