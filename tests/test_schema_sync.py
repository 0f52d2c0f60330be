import json

import pytest

from text2sql_rag.models import TableDescriptor
from text2sql_rag.offline.schema_sync import SchemaSync, load_table_metadata, merge_table_metadata


COLUMN_ROWS = [
    {"table_name": "account", "column_name": "id", "data_type": "integer"},
    {"table_name": "account", "column_name": "name", "data_type": "text"},
    {"table_name": "lead", "column_name": "id", "data_type": "integer"},
    {"table_name": "lead", "column_name": "createdAt", "data_type": "timestamp without time zone"},
    {"table_name": "lead", "column_name": "status", "data_type": "text"},
]


def summarize(prompt: str) -> str:
    name = prompt.split('"')[1]
    return f"  Stores {name} records.  "


@pytest.fixture
def metadata_file(tmp_path):
    path = tmp_path / "table-standard.json"
    path.write_text(json.dumps({"lead": {"tier": "GOLD", "domain": "Sales"}}), encoding="utf-8")
    return str(path)


@pytest.fixture
def schema_sync(mock_database, make_llm, embedding_manager, table_index, metadata_file):
    mock_database.fetch_all.return_value = COLUMN_ROWS
    return SchemaSync(
        mock_database, make_llm(summarize), embedding_manager, table_index,
        metadata_path=metadata_file
    )


@pytest.mark.asyncio
async def test_introspect_groups_columns_in_order(schema_sync):
    tables = await schema_sync.introspect_tables()

    assert [t.name for t in tables] == ["account", "lead"]
    assert tables[1].schema_text == "id integer, createdAt timestamp without time zone, status text"


@pytest.mark.asyncio
async def test_run_upserts_enriched_tables(schema_sync, table_index):
    result = await schema_sync.run()

    assert result.success is True
    assert result.processed == 2
    assert result.upserted == 2
    assert result.finished_at is not None

    lead = table_index.get_record("lead")["metadata"]
    assert lead == {
        "name": "lead",
        "summary": "Stores lead records.",
        "schema": "id integer, createdAt timestamp without time zone, status text",
        "tier": "GOLD",
        "domain": "Sales",
    }
    account = table_index.get_record("account")["metadata"]
    assert account["tier"] == "IRON"
    assert account["domain"] == "IRON"


@pytest.mark.asyncio
async def test_run_twice_is_idempotent(schema_sync, table_index):
    await schema_sync.run()
    first = sorted((r["id"], tuple(sorted(r["metadata"].items()))) for r in table_index.list_records())

    await schema_sync.run()
    second = sorted((r["id"], tuple(sorted(r["metadata"].items()))) for r in table_index.list_records())

    assert first == second
    assert table_index.count() == 2


@pytest.mark.asyncio
async def test_metadata_override_applies_to_one_run_only(schema_sync, table_index, metadata_file, tmp_path):
    override = tmp_path / "override.json"
    override.write_text(json.dumps({"lead": {"tier": "SILVER"}}), encoding="utf-8")

    await schema_sync.run(str(override))
    assert table_index.get_record("lead")["metadata"]["tier"] == "SILVER"

    await schema_sync.run()
    assert table_index.get_record("lead")["metadata"]["tier"] == "GOLD"
    assert schema_sync.metadata_path == metadata_file


def test_curated_metadata_overrides_defaults():
    table = TableDescriptor(name="lead", schema_text="id integer", summary="LLM text", tier="IRON")

    merged = merge_table_metadata(table, {"tier": "GOLD", "summary": "Curated text"})

    assert merged.tier == "GOLD"
    assert merged.summary == "Curated text"
    assert merged.domain == "IRON"


def test_merge_without_curated_metadata_defaults_to_iron():
    merged = merge_table_metadata(TableDescriptor(name="lead", schema_text="id integer"), None)

    assert merged.tier == "IRON"
    assert merged.domain == "IRON"


def test_merge_never_renames_table():
    merged = merge_table_metadata(
        TableDescriptor(name="lead", schema_text="id integer"), {"name": "other", "schema": "x text"}
    )

    assert merged.name == "lead"
    assert merged.schema_text == "x text"


def test_load_missing_metadata_file(tmp_path):
    assert load_table_metadata(str(tmp_path / "missing.json")) == {}


@pytest.mark.asyncio
async def test_failure_is_contained_and_keeps_partial_upserts(schema_sync, table_index):
    calls = {"count": 0}
    original = schema_sync.table_index.upsert

    async def flaky_upsert(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 2:
            raise ConnectionError("vector store unavailable")
        await original(*args, **kwargs)

    schema_sync.table_index.upsert = flaky_upsert

    result = await schema_sync.run()

    assert result.success is False
    assert "vector store unavailable" in result.error
    assert result.upserted == 1
    assert table_index.count() == 1


@pytest.mark.asyncio
async def test_introspection_failure_is_contained(schema_sync, mock_database):
    mock_database.fetch_all.side_effect = OSError("connection refused")

    result = await schema_sync.run()

    assert result.success is False
    assert result.error == "connection refused"
    assert result.upserted == 0
