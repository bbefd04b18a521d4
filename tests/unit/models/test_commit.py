"""Unit tests for commit models."""

from snaprel.models.commit import ChangeItem, CommitRecord


class TestCommitRecord:
    """Tests for CommitRecord class."""

    def test_trailer_author_defaults_to_none(self) -> None:
        """Records credited to the git author have no trailer author."""
        record = CommitRecord("abc", "body", "Bob <b@x>", "Merge pull request #1", "desc")

        assert record.trailer_author is None


class TestChangeItem:
    """Tests for ChangeItem class."""

    def test_equality(self) -> None:
        """Items compare by value."""
        assert ChangeItem("Fix", "MP") == ChangeItem("Fix", "MP")
        assert ChangeItem("Fix", "MP") != ChangeItem("Fix", "")
