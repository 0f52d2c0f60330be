"""
Example usage of Text2SQL system.
"""

import asyncio

from text2sql_rag import Text2SQL
from text2sql_rag.exceptions import Text2SQLError


async def main():
    """Demonstrate Text2SQL usage."""

    # Make sure to set up your database connection in .env file
    text2sql = Text2SQL()

    print("=== Text2SQL Example Usage ===\n")

    try:
        # 1. Sync the table index
        print("1. Syncing database schema...")
        result = await text2sql.sync_schema()
        if result.success:
            print(f"✓ {result.upserted} tables indexed\n")
        else:
            print(f"✗ Error: {result.error}\n")

        # 2. Sync the query-intent index
        print("2. Syncing query logs...")
        result = await text2sql.sync_query_logs()
        if result.success:
            print(f"✓ {result.upserted} query intents indexed\n")
        else:
            print(f"✗ Error: {result.error}")
            print("Note: query log sync needs the pg_stat_statements extension\n")

        # 3. Show indexed tables
        print("3. Indexed tables:")
        for table in text2sql.list_tables()[:5]:
            print(f"  - {table['name']} [{table['tier']}/{table['domain']}]: {table['summary']}")
        print()

        # 4. Question examples
        questions = [
            "Show me all leads created in the last 30 days",
            "How many support tickets are still open per priority?",
            "What was the total revenue per product last month?",
        ]

        print("4. Question examples:")
        for question in questions:
            print(f"\nQuestion: {question}")
            try:
                generated = await text2sql.generate_sql(question)
                print(f"Tables: {', '.join(generated.selected_tables)}")
                print(f"SQL: {generated.sql}")
            except Text2SQLError as e:
                print(f"✗ Error: {e}")
    finally:
        await text2sql.close()

    print("\n=== End of Examples ===")


if __name__ == "__main__":
    asyncio.run(main())
