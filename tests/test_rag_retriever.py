import pytest

from text2sql_rag.online.rag_retriever import RAGRetriever


TABLES = [
    ("lead", "Sales leads captured from marketing campaigns."),
    ("account", "Customer accounts and their billing owners."),
    ("ticket", "Support tickets raised by customers."),
    ("invoice", "Invoices issued to customer accounts."),
    ("product", "Products offered in the catalog."),
    ("campaign", "Marketing campaigns and their budgets."),
    ("employee", "Employees and their departments."),
]

INTENTS = [
    "Counts new sales leads per week.",
    "Lists open support tickets per priority.",
    "Sums invoice totals per account.",
    "Lists products with low stock.",
]


async def _fill(embedding_manager, table_index, query_index):
    for name, summary in TABLES:
        vector = await embedding_manager.embed_query(summary)
        await table_index.upsert(name, vector, {"name": name, "summary": summary})
    for i, summary in enumerate(INTENTS):
        vector = await embedding_manager.embed_query(summary)
        await query_index.upsert(f"intent-{i}", vector, {"summary": summary, "query": "SELECT 1"})


@pytest.mark.asyncio
async def test_retrieve_respects_top_k(embedding_manager, table_index, query_index):
    await _fill(embedding_manager, table_index, query_index)
    retriever = RAGRetriever(embedding_manager, table_index, query_index, table_top_k=5, query_top_k=3)

    result = await retriever.retrieve("Show me sales leads from marketing campaigns")

    assert len(result.tables) == 5
    assert len(result.intents) == 3
    assert len(result.embedding) > 0


@pytest.mark.asyncio
async def test_retrieve_orders_by_similarity(embedding_manager, table_index, query_index):
    await _fill(embedding_manager, table_index, query_index)
    retriever = RAGRetriever(embedding_manager, table_index, query_index)

    result = await retriever.retrieve("Sales leads captured from marketing campaigns.")

    scores = [m.score for m in result.tables]
    assert scores == sorted(scores, reverse=True)
    assert result.table_names[0] == "lead"


@pytest.mark.asyncio
async def test_retrieve_from_empty_indexes(embedding_manager, table_index, query_index):
    retriever = RAGRetriever(embedding_manager, table_index, query_index)

    result = await retriever.retrieve("anything")

    assert result.tables == []
    assert result.intents == []


@pytest.mark.asyncio
async def test_retrieve_propagates_embedding_errors(embedding_manager, table_index, query_index):
    def broken(*args, **kwargs):
        raise RuntimeError("embedding service down")

    embedding_manager.model.encode = broken
    retriever = RAGRetriever(embedding_manager, table_index, query_index)

    with pytest.raises(RuntimeError, match="embedding service down"):
        await retriever.retrieve("anything")
