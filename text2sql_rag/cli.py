"""
Command Line Interface for Text2SQL.
"""

import asyncio
import click
import logging
from rich.console import Console
from rich.table import Table
from rich.syntax import Syntax
from rich.panel import Panel

from .text2sql import Text2SQL
from .core import DatabaseManager
from .exceptions import Text2SQLError
from .models import SyncResult


# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Rich console
console = Console()


def _build(ctx) -> Text2SQL:
    return Text2SQL(database=DatabaseManager(database_url=ctx.obj['db_url']))


async def _run(text2sql: Text2SQL, coro):
    try:
        return await coro
    finally:
        await text2sql.close()


def _print_sync_result(result: SyncResult) -> None:
    if result.success:
        console.print(
            f"[bold green]✓[/bold green] {result.job}: "
            f"{result.upserted}/{result.processed} records upserted"
        )
    else:
        console.print(
            f"[bold red]✗[/bold red] {result.job} failed after "
            f"{result.upserted}/{result.processed} records: {result.error}"
        )


@click.group()
@click.option('--db-url', envvar='DATABASE_URL', help='Database connection URL')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, db_url, verbose):
    """Text2SQL: Convert natural language to validated SQL queries using RAG."""
    ctx.ensure_object(dict)
    ctx.obj['db_url'] = db_url
    ctx.obj['verbose'] = verbose
    
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument('question')
@click.option('--show-context', is_flag=True, help='Show retrieved and selected tables')
@click.pass_context
def query(ctx, question, show_context):
    """Convert a natural language question to SQL."""
    console.print(f"[bold blue]Question:[/bold blue] {question}")
    
    text2sql = _build(ctx)
    
    try:
        result = asyncio.run(_run(text2sql, text2sql.generate_sql(question)))
    except Text2SQLError as e:
        console.print(f"\n[bold red]✗[/bold red] Failed to generate valid SQL")
        console.print(f"[red]Error:[/red] {e}")
        raise click.ClickException(str(e))
    
    console.print("\n[bold green]✓[/bold green] Generated SQL:")
    console.print(Syntax(result.sql, "sql", theme="monokai", line_numbers=True))
    
    if show_context:
        console.print("\n[bold cyan]Context:[/bold cyan]")
        console.print(f"Retrieved tables: {', '.join(result.retrieved_tables) or '-'}")
        console.print(f"Selected tables: {', '.join(result.selected_tables) or '-'}")
        for summary in result.retrieved_intents:
            console.print(f"Similar query: {summary}")


@cli.command()
@click.argument('sql')
@click.pass_context
def validate(ctx, sql):
    """Validate a SQL query."""
    console.print("[bold blue]Validating SQL...[/bold blue]")
    
    text2sql = _build(ctx)
    outcome = asyncio.run(_run(text2sql, text2sql.validate_sql(sql)))
    
    if outcome.valid:
        console.print("[bold green]✓[/bold green] SQL is valid")
    else:
        console.print(f"[bold red]✗[/bold red] {outcome.error}")
        raise click.ClickException(outcome.error or "invalid SQL")


@cli.command('sync-schema')
@click.option('--metadata', type=click.Path(exists=True), help='JSON file with curated table metadata')
@click.pass_context
def sync_schema(ctx, metadata):
    """Sync table descriptions into the table index."""
    console.print("[bold green]Syncing database schema...[/bold green]")
    
    text2sql = _build(ctx)
    result = asyncio.run(_run(text2sql, text2sql.sync_schema(metadata_path=metadata)))
    _print_sync_result(result)
    if not result.success:
        ctx.exit(1)


@cli.command('sync-queries')
@click.option('--limit', type=int, default=None, help='Number of top queries to sync')
@click.pass_context
def sync_queries(ctx, limit):
    """Sync frequent historical queries into the query-intent index."""
    console.print("[bold green]Syncing query logs...[/bold green]")
    
    text2sql = _build(ctx)
    result = asyncio.run(_run(text2sql, text2sql.sync_query_logs(limit=limit)))
    _print_sync_result(result)
    if not result.success:
        ctx.exit(1)


@cli.command()
@click.option('--table-name', help='Specific table name')
@click.pass_context
def schema(ctx, table_name):
    """Show the tables stored in the table index."""
    text2sql = _build(ctx)
    
    if table_name:
        info = text2sql.get_table_info(table_name)
        if info:
            console.print(Panel(
                f"Tier: {info.get('tier', '')}\nDomain: {info.get('domain', '')}\n"
                f"Summary: {info.get('summary', '')}\n\nColumns: {info.get('schema', '')}",
                title=f"Table: {table_name}"
            ))
        else:
            console.print(f"[yellow]Table '{table_name}' not found in table index[/yellow]")
        return
    
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Table Name")
    table.add_column("Tier")
    table.add_column("Domain")
    table.add_column("Summary")
    
    for t in text2sql.list_tables():
        table.add_row(t.get('name', ''), t.get('tier', ''), t.get('domain', ''), t.get('summary', ''))
    
    console.print(table)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show system statistics."""
    text2sql = _build(ctx)
    stats = text2sql.get_stats()
    
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    
    table.add_row("Table Index Size", str(stats['table_index_size']))
    table.add_row("Query Index Size", str(stats['query_index_size']))
    table.add_row("SQL Dialect", stats['sql_dialect'])
    table.add_row("LLM Model", stats['llm_model'])
    table.add_row("Embedding Model", stats['embedding_model'])
    table.add_row("Last Updated", stats['last_updated'])
    
    console.print(table)


def main():
    """Entry point for the CLI."""
    cli()
