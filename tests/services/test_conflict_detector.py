import pytest

from roster_import.services.conflict_detector import ConflictDetector
from roster_import.services.errors import ConflictDetectionError
from tests.helpers import create_accounts, make_rows

pytestmark = pytest.mark.anyio


class TestConflictDetector:
    """Tests for ConflictDetector."""

    async def test_no_existing_accounts(self, session_maker, roster_file):
        """Test that every ID is new against an empty store."""
        path = roster_file(make_rows(4))

        summary = await ConflictDetector(session_maker).detect(path)

        assert summary.existing_count == 0
        assert summary.new_count == 4
        assert summary.sample == ()
        assert not summary.has_conflicts

    async def test_two_of_ten_existing(self, session_maker, roster_file):
        """Test counting existing and new accounts."""
        await create_accounts(session_maker, ["S0003", "S0007"])
        path = roster_file(make_rows(10))

        summary = await ConflictDetector(session_maker).detect(path)

        assert summary.existing_count == 2
        assert summary.new_count == 8
        assert [ref.school_id for ref in summary.sample] == ["S0003", "S0007"]
        assert [ref.row_number for ref in summary.sample] == [3, 7]
        assert summary.sample[0].first_name == "Existing"

    async def test_sample_is_capped_and_in_file_order(self, session_maker, roster_file):
        """Test that the sample is the first five conflicts in file order."""
        rows = list(reversed(make_rows(12)))
        await create_accounts(session_maker, [row["student_id"] for row in rows])
        path = roster_file(rows)

        summary = await ConflictDetector(session_maker).detect(path)

        assert summary.existing_count == 12
        assert len(summary.sample) == 5
        assert [ref.school_id for ref in summary.sample] == ["S0012", "S0011", "S0010", "S0009", "S0008"]
        assert [ref.row_number for ref in summary.sample] == [1, 2, 3, 4, 5]

    async def test_duplicate_ids_are_counted_once(self, session_maker, roster_file):
        """Test that repeated IDs in the file are classified once."""
        await create_accounts(session_maker, ["S0001"])
        rows = make_rows(3) + make_rows(2)
        path = roster_file(rows)

        summary = await ConflictDetector(session_maker).detect(path)

        assert summary.existing_count == 1
        assert summary.new_count == 2
        assert [ref.row_number for ref in summary.sample] == [1]

    async def test_batches_queries(self, session_maker, roster_file):
        """Test that results are the same when IDs span several query batches."""
        await create_accounts(session_maker, ["S0002", "S0005", "S0009"])
        path = roster_file(make_rows(10))

        summary = await ConflictDetector(session_maker, batch_size=3).detect(path)

        assert summary.existing_count == 3
        assert summary.new_count == 7

    async def test_unreadable_file(self, session_maker, tmp_path):
        """Test that a missing file raises ConflictDetectionError."""
        with pytest.raises(ConflictDetectionError):
            await ConflictDetector(session_maker).detect(str(tmp_path / "missing.csv"))

    async def test_zero_sample_size(self, session_maker, roster_file):
        """Test that an explicit sample size of 0 counts conflicts without listing them."""
        await create_accounts(session_maker, ["S0001", "S0002"])
        path = roster_file(make_rows(4))

        summary = await ConflictDetector(session_maker, sample_size=0).detect(path)

        assert summary.existing_count == 2
        assert summary.sample == ()
