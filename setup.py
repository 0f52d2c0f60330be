from setuptools import setup, find_packages

setup(
    name="text2sql-rag",
    version="0.1.0",
    description="RAG-based Text-to-SQL with table and query-intent retrieval",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "langchain-community>=0.2.0",
        "langchain-core>=0.2.0",
        "chromadb>=0.5.0",
        "sqlglot>=18.0.0",
        "sentence-transformers>=2.2.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "asyncpg>=0.29.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "click>=8.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "text2sql=text2sql_rag.cli:main",
        ],
    },
)
