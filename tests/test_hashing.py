# Tests for sitepub.utils.hashing
# Content fingerprints for change detection

from sitepub.utils.hashing import content_hash, document_hash, file_hash


class TestContentHash:
    """Tests for content_hash."""

    def test_string_input(self):
        """Test hashing string content."""
        h = content_hash("hello")
        assert isinstance(h, str)
        assert len(h) == 64  # SHA256 hex length

    def test_bytes_input(self):
        """Test hashing bytes content."""
        assert content_hash(b"hello") == content_hash("hello")

    def test_known_digest(self):
        """Test a known SHA-256 digest."""
        assert content_hash("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_different_content(self):
        """Test different content gives different hashes."""
        assert content_hash("a") != content_hash("b")


class TestFileHash:
    """Tests for file_hash."""

    def test_matches_content_hash(self, temp_dir):
        """Test file hash equals content hash."""
        f = temp_dir / "logo.png"
        f.write_bytes(b"\x89PNG data")
        assert file_hash(f) == content_hash(b"\x89PNG data")

    def test_small_chunks(self, temp_dir):
        """Test chunked reads give the same hash."""
        f = temp_dir / "big.bin"
        f.write_bytes(b"x" * 1000)
        assert file_hash(f, chunk_size=7) == content_hash(b"x" * 1000)

    def test_nonexistent_file(self, temp_dir):
        """Test hash of nonexistent file."""
        assert file_hash(temp_dir / "missing.txt") is None

    def test_directory_returns_none(self, temp_dir):
        """Test hash of a directory."""
        assert file_hash(temp_dir) is None

    def test_mtime_does_not_matter(self, temp_dir):
        """Test modification time does not change the hash."""
        a = temp_dir / "a.html"
        b = temp_dir / "b.html"
        a.write_text("same", encoding="utf-8")
        b.write_text("same", encoding="utf-8")
        assert file_hash(a) == file_hash(b)


class TestDocumentHash:
    """Tests for document_hash."""

    def test_empty(self):
        """Test empty documents have no revision."""
        assert document_hash("") == ""
        assert document_hash(None) == ""

    def test_short_token(self):
        """Test revision token length."""
        token = document_hash('{"Version": "2012-10-17"}')
        assert len(token) == 16
        assert token == content_hash('{"Version": "2012-10-17"}')[:16]
