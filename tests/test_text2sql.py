import pytest

from text2sql_rag import Text2SQL
from text2sql_rag.exceptions import (
    GenerationFormatError,
    InsufficientContextError,
    SQLValidationError,
)


QUESTION = "Show me all leads created in the last 30 days"
LEAD_SQL = 'SELECT * FROM "lead" WHERE "createdAt" >= NOW() - INTERVAL \'30 days\''


def scripted(rerank: str, generation: str):
    def responder(prompt: str) -> str:
        if "comma-separated list" in prompt:
            return rerank
        if "RESPONSE FORMAT" in prompt:
            return generation
        raise AssertionError(f"unexpected prompt: {prompt[:80]}")
    return responder


@pytest.fixture
def build(mock_database, make_llm, embedding_manager, table_index, query_index):
    async def factory(rerank="lead", generation=f"<@query@>{LEAD_SQL}"):
        for name, schema, summary in [
            ("lead", "id integer, createdAt timestamp", "Sales leads and when they were created."),
            ("lead_archive", "id integer, createdAt timestamp", "Old leads kept for auditing."),
        ]:
            vector = await embedding_manager.embed_query(summary)
            await table_index.upsert(name, vector, {
                "name": name, "schema": schema, "summary": summary,
                "tier": "GOLD" if name == "lead" else "IRON", "domain": "Sales",
            })

        llm = make_llm(scripted(rerank, generation))
        text2sql = Text2SQL(
            database=mock_database,
            llm_manager=llm,
            embedding_manager=embedding_manager,
            table_index=table_index,
            query_index=query_index,
        )
        return text2sql, llm

    return factory


@pytest.mark.asyncio
async def test_question_to_validated_sql(build, mock_database):
    text2sql, llm = await build()

    result = await text2sql.generate_sql(QUESTION)

    assert result.sql == LEAD_SQL
    assert result.selected_tables == ["lead"]
    assert set(result.retrieved_tables) == {"lead", "lead_archive"}
    mock_database.explain.assert_awaited_once_with(LEAD_SQL)


@pytest.mark.asyncio
async def test_generation_prompt_only_contains_selected_tables(build):
    text2sql, llm = await build()

    await text2sql.generate_sql(QUESTION)

    rerank_prompt, generation_prompt = llm.prompts
    assert "lead_archive" in rerank_prompt
    assert "Table Name: lead\n" in generation_prompt
    assert "lead_archive" not in generation_prompt
    assert "<@query@>" in generation_prompt
    assert "<@explanation@>" in generation_prompt
    assert "double quotes" in generation_prompt


@pytest.mark.asyncio
async def test_explanation_raises_insufficient_context(build, mock_database):
    text2sql, _ = await build(generation="<@explanation@>No table stores lead creation dates.")

    with pytest.raises(InsufficientContextError) as exc_info:
        await text2sql.generate_sql(QUESTION)

    assert exc_info.value.explanation == "No table stores lead creation dates."
    mock_database.explain.assert_not_awaited()


@pytest.mark.asyncio
async def test_untagged_response_raises_format_error(build, mock_database):
    text2sql, _ = await build(generation=LEAD_SQL)

    with pytest.raises(GenerationFormatError) as exc_info:
        await text2sql.generate_sql(QUESTION)

    assert "<@query@>" in str(exc_info.value)
    assert "<@explanation@>" in str(exc_info.value)
    mock_database.explain.assert_not_awaited()


@pytest.mark.asyncio
async def test_write_query_is_never_returned(build, mock_database):
    text2sql, _ = await build(generation='<@query@>SELECT 1; DROP TABLE "lead"')

    with pytest.raises(SQLValidationError) as exc_info:
        await text2sql.generate_sql(QUESTION)

    assert exc_info.value.sql == 'SELECT 1; DROP TABLE "lead"'
    assert "forbidden" in str(exc_info.value)
    mock_database.explain.assert_not_awaited()


@pytest.mark.asyncio
async def test_dry_run_failure_is_reported(build, mock_database):
    mock_database.explain.side_effect = Exception('column "createdAt" does not exist')
    text2sql, _ = await build()

    with pytest.raises(SQLValidationError, match='column "createdAt" does not exist'):
        await text2sql.generate_sql(QUESTION)


@pytest.mark.asyncio
async def test_stats_and_table_listing(build):
    text2sql, _ = await build()

    stats = text2sql.get_stats()
    tables = text2sql.list_tables()

    assert stats["table_index_size"] == 2
    assert stats["query_index_size"] == 0
    assert [t["name"] for t in tables] == ["lead", "lead_archive"]


@pytest.mark.asyncio
async def test_table_info_lookup(build):
    text2sql, _ = await build()

    info = text2sql.get_table_info("lead")

    assert info["tier"] == "GOLD"
    assert info["schema"] == "id integer, createdAt timestamp"
    assert text2sql.get_table_info("invoice") is None
