"""Tests for the file-snapshot store."""

import asyncio
import json

import pytest

from tinyurl.database.fallback import FallbackStore
from tinyurl.exceptions import DuplicateOwner, DuplicateShortCode, OwnerNotFound, StoreUnavailable

from helpers import make_record, seed_owner


@pytest.mark.asyncio
class TestFallbackStore:
    """Test the fallback record store."""

    async def test_missing_file_is_empty(self, fallback_store):
        assert await fallback_store.load() == []
        assert await fallback_store.find_by_short_code("abcde") is None
        assert await fallback_store.collision_statistics() == {"total_urls": 0, "unique_short_codes": 0}

    async def test_create_and_find_owner(self, fallback_store):
        owner = await seed_owner(fallback_store)

        by_id = await fallback_store.find_owner_by_id(owner.id)
        by_email = await fallback_store.find_owner_by_email("owner@example.com")

        assert by_id.id == owner.id
        assert by_email.id == owner.id
        assert by_id.first_name == "Test"
        assert await fallback_store.find_owner_by_id(owner.id + 1) is None

    async def test_duplicate_email_rejected(self, fallback_store):
        await seed_owner(fallback_store)
        with pytest.raises(DuplicateOwner):
            await seed_owner(fallback_store)

    async def test_anonymous_owners_never_clash(self, fallback_store):
        attrs = {"email": "anonymous_1", "is_anonymous": True}
        first = await fallback_store.create_owner(attrs)
        second = await fallback_store.create_owner(attrs)
        assert first.id != second.id

    async def test_append_and_find_record(self, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("abc12"))

        found_owner, record = await fallback_store.find_by_short_code("abc12")
        assert found_owner.id == owner.id
        assert record.original_url == "https://example.com/a"
        assert record.click_count == 0
        assert await fallback_store.short_code_exists("abc12")
        assert not await fallback_store.short_code_exists("zzz99")

    async def test_duplicate_code_rejected_across_owners(self, fallback_store):
        first = await seed_owner(fallback_store, "a@example.com")
        second = await seed_owner(fallback_store, "b@example.com")
        await fallback_store.append_record(first.id, make_record("abc12"))

        with pytest.raises(DuplicateShortCode):
            await fallback_store.append_record(second.id, make_record("abc12", "https://other.example"))

        _, record = await fallback_store.find_by_short_code("abc12")
        assert record.original_url == "https://example.com/a"

    async def test_append_to_missing_owner(self, fallback_store):
        with pytest.raises(OwnerNotFound):
            await fallback_store.append_record(12345, make_record("abc12"))

    async def test_list_records_in_insertion_order(self, fallback_store):
        owner = await seed_owner(fallback_store)
        for code in ["ccccc", "aaaaa", "bbbbb"]:
            await fallback_store.append_record(owner.id, make_record(code))

        records = await fallback_store.list_records(owner.id)
        assert [r.short_code for r in records] == ["ccccc", "aaaaa", "bbbbb"]

        with pytest.raises(OwnerNotFound):
            await fallback_store.list_records(owner.id + 1)

    async def test_increment_stats(self, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("abc12"))

        await fallback_store.increment_stats("abc12")
        await fallback_store.increment_stats("abc12")

        _, record = await fallback_store.find_by_short_code("abc12")
        assert record.click_count == 2
        assert record.last_accessed is not None

    async def test_increment_stats_unknown_code_is_noop(self, fallback_store):
        await fallback_store.increment_stats("nope1")
        assert not fallback_store.data_file.exists()

    async def test_concurrent_increments_not_lost(self, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("abc12"))

        await asyncio.gather(*[fallback_store.increment_stats("abc12") for _ in range(20)])

        _, record = await fallback_store.find_by_short_code("abc12")
        assert record.click_count == 20

    async def test_snapshot_format(self, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("abc12"))

        data = json.loads(fallback_store.data_file.read_text())
        assert data[0]["id"] == owner.id
        assert data[0]["urls"][0]["shortCode"] == "abc12"
        assert data[0]["urls"][0]["clickCount"] == 0
        assert "createdAt" in data[0]["urls"][0]

    async def test_reads_snake_case_snapshot(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps([{
            "id": 7,
            "email": "legacy@example.com",
            "urls": [{
                "original_url": "https://example.com/legacy",
                "short_code": "legac",
                "short_url": "http://testserver/legac",
                "created_at": "2023-05-01T10:00:00",
                "click_count": 3,
            }],
        }]))

        owner, record = await FallbackStore(path).find_by_short_code("legac")
        assert owner.id == 7
        assert record.click_count == 3
        assert record.created_at.tzinfo is not None

    async def test_corrupt_snapshot_reads_as_empty(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("{not json")
        store = FallbackStore(path)

        assert await store.load() == []
        assert await store.health_check()

    async def test_unwritable_location_is_unavailable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = FallbackStore(blocker / "users.json")

        with pytest.raises(StoreUnavailable):
            await seed_owner(store)

    async def test_update_original_url(self, fallback_store):
        owner = await seed_owner(fallback_store)
        await fallback_store.append_record(owner.id, make_record("abc12", "https://https://x.com"))

        assert await fallback_store.update_original_url("abc12", "https://x.com")
        assert not await fallback_store.update_original_url("nope1", "https://x.com")

        _, record = await fallback_store.find_by_short_code("abc12")
        assert record.original_url == "https://x.com"

    async def test_iter_all_records(self, fallback_store):
        first = await seed_owner(fallback_store, "a@example.com")
        second = await seed_owner(fallback_store, "b@example.com")
        await fallback_store.append_record(first.id, make_record("aaaaa"))
        await fallback_store.append_record(second.id, make_record("bbbbb"))

        pairs = await fallback_store.iter_all_records()
        assert [(o, r.short_code) for o, r in pairs] == [(first.id, "aaaaa"), (second.id, "bbbbb")]
        assert await fallback_store.collision_statistics() == {"total_urls": 2, "unique_short_codes": 2}
