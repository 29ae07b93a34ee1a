"""Generate SQL CREATE TABLE statements from the SQLAlchemy models.

Outputs plain SQL to paste into the Supabase SQL editor.

Usage:
    python scripts/generate_sql.py > create_tables.sql
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.dialects import postgresql  # noqa: E402
from sqlalchemy.schema import CreateIndex, CreateTable  # noqa: E402

from pkg.db_util.sql_alchemy.declarative_base import Base  # noqa: E402
from app.chat.repository.sql_schema import chat as _chat  # noqa: E402,F401
from app.user.repository.sql_schema import user as _user  # noqa: E402,F401


def generate_sql() -> str:
    dialect = postgresql.dialect()
    lines = [
        "-- ============================================",
        "-- DoktorAi chat tables",
        "-- ============================================",
        "",
        "-- Drop existing tables (in reverse order for foreign keys)",
    ]
    for table in reversed(Base.metadata.sorted_tables):
        lines.append(f"DROP TABLE IF EXISTS {table.name} CASCADE;")
    lines.append("")

    for table in Base.metadata.sorted_tables:
        lines.append(f"-- Creating table: {table.name}")
        lines.append(str(CreateTable(table).compile(dialect=dialect)).strip() + ";")
        for index in table.indexes:
            lines.append(str(CreateIndex(index).compile(dialect=dialect)).strip() + ";")
        lines.append("")
    return "\n".join(lines)


if __name__ == "__main__":
    print(generate_sql())
