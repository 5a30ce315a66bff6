import pytest
from unittest.mock import patch

from template_indexer.index import faiss_index as faiss_index_module

from template_indexer.index.base import VectorIndexError
from template_indexer.index.faiss_index import FaissIndex, FaissPersistenceError
from template_indexer.templates.models import TemplateMetadata, UploadRecord


def make_record(record_id, values, title="Example"):
    return UploadRecord(
        id=record_id,
        values=values,
        metadata=TemplateMetadata(
            title=title,
            content=f'**"{title}"**\n\n**Template:**\n\nbody',
            raw_content="body",
            chunk_id="chunk_001",
            character_count=len(title) + 28,
            hyperlink_count=0,
            created_at="2024-01-01T00:00:00.000Z",
        ),
    )


@pytest.fixture
def index(tmp_path):
    return FaissIndex(
        index_path=str(tmp_path / "index.bin"),
        meta_path=str(tmp_path / "meta.json"),
    )


@pytest.mark.asyncio
async def test_empty_index_stats(index):
    stats = await index.describe_stats()
    assert stats.total_record_count == 0


@pytest.mark.asyncio
async def test_upsert_adds_records(index):
    count = await index.upsert([
        make_record("a", [1.0, 0.0, 0.0, 0.0]),
        make_record("b", [0.0, 1.0, 0.0, 0.0]),
    ])

    stats = await index.describe_stats()
    assert count == 2
    assert stats.total_record_count == 2
    assert stats.dimension == 4


@pytest.mark.asyncio
async def test_upsert_replaces_existing_id(index):
    await index.upsert([make_record("a", [1.0, 0.0, 0.0, 0.0], title="Old")])
    await index.upsert([make_record("a", [0.0, 1.0, 0.0, 0.0], title="New")])

    stats = await index.describe_stats()
    assert stats.total_record_count == 1
    assert index.get_metadata("a").title == "New"


@pytest.mark.asyncio
async def test_dimension_mismatch_is_rejected(index):
    await index.upsert([make_record("a", [1.0, 0.0, 0.0, 0.0])])

    with pytest.raises(VectorIndexError, match="does not match index dimension"):
        await index.upsert([make_record("b", [1.0, 0.0])])


@pytest.mark.asyncio
async def test_inconsistent_batch_is_rejected(index):
    with pytest.raises(VectorIndexError, match="Inconsistent"):
        await index.upsert([
            make_record("a", [1.0, 0.0, 0.0, 0.0]),
            make_record("b", [1.0, 0.0]),
        ])


@pytest.mark.asyncio
async def test_persisted_index_reloads(index, tmp_path):
    await index.upsert([
        make_record("a", [1.0, 0.0, 0.0, 0.0], title="First"),
        make_record("b", [0.0, 1.0, 0.0, 0.0], title="Second"),
    ])

    reloaded = FaissIndex(
        index_path=str(tmp_path / "index.bin"),
        meta_path=str(tmp_path / "meta.json"),
    )
    reloaded.load()

    stats = await reloaded.describe_stats()
    assert stats.total_record_count == 2
    assert reloaded.get_metadata("b").title == "Second"

    await reloaded.upsert([make_record("a", [0.0, 0.0, 1.0, 0.0], title="Replaced")])
    assert (await reloaded.describe_stats()).total_record_count == 2
    assert reloaded.get_metadata("a").title == "Replaced"


@pytest.mark.asyncio
async def test_duplicate_ids_in_one_batch_keep_the_last(index):
    count = await index.upsert([
        make_record("a", [1.0, 0.0, 0.0, 0.0], title="First"),
        make_record("b", [0.0, 1.0, 0.0, 0.0], title="Other"),
        make_record("a", [0.0, 0.0, 1.0, 0.0], title="Last"),
    ])

    assert count == 2
    assert (await index.describe_stats()).total_record_count == 2
    assert index.get_metadata("a").title == "Last"


@pytest.mark.asyncio
async def test_failed_write_leaves_index_unchanged(index, tmp_path):
    await index.upsert([make_record("a", [1.0, 0.0, 0.0, 0.0], title="Original")])

    with patch.object(faiss_index_module.faiss, "write_index", side_effect=RuntimeError("disk full")):
        with pytest.raises(FaissPersistenceError):
            await index.upsert([
                make_record("a", [0.0, 1.0, 0.0, 0.0], title="Replacement"),
                make_record("b", [0.0, 0.0, 1.0, 0.0], title="New"),
            ])

    assert (await index.describe_stats()).total_record_count == 1
    assert index.get_metadata("a").title == "Original"
    assert index.get_metadata("b") is None

    reloaded = FaissIndex(
        index_path=str(tmp_path / "index.bin"),
        meta_path=str(tmp_path / "meta.json"),
    )
    reloaded.load()
    assert (await reloaded.describe_stats()).total_record_count == 1
    assert reloaded.get_metadata("a").title == "Original"

    # The live index still accepts writes after the failure
    await index.upsert([make_record("b", [0.0, 0.0, 1.0, 0.0], title="New")])
    assert (await index.describe_stats()).total_record_count == 2
