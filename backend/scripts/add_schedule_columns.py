"""Add scheduling columns to an existing projects/tasks/dependencies schema."""

import asyncio
from sqlalchemy import text
from app.database import engine

COLUMNS = [
    ("projects", "is_template", "BOOLEAN NOT NULL DEFAULT FALSE"),
    ("projects", "anchor_date", "DATE"),
    ("projects", "schedule_from", "VARCHAR(5) NOT NULL DEFAULT 'START'"),
    ("projects", "deadline", "DATE"),
    ("projects", "calculated_start_date", "DATE"),
    ("projects", "calculated_end_date", "DATE"),
    ("projects", "is_at_risk", "BOOLEAN NOT NULL DEFAULT FALSE"),
    ("projects", "risk_reason", "VARCHAR"),
    ("projects", "scheduled_at", "TIMESTAMP"),
    ("projects", "calc_version_id", "UUID NOT NULL DEFAULT gen_random_uuid()"),
    ("tasks", "order", "INTEGER NOT NULL DEFAULT 0"),
    ("tasks", "due_date", "DATE"),
    ("dependencies", "type", "VARCHAR(2) NOT NULL DEFAULT 'FS'"),
    ("dependencies", "lag_days", "INTEGER NOT NULL DEFAULT 0"),
]


async def add_schedule_columns():
    async with engine.begin() as conn:
        for table, column, ddl in COLUMNS:
            result = await conn.execute(text('''
                SELECT column_name FROM information_schema.columns
                WHERE table_name = :table AND column_name = :column
            '''), {"table": table, "column": column})
            if result.fetchone() is None:
                await conn.execute(text(f'ALTER TABLE {table} ADD COLUMN "{column}" {ddl}'))
                print(f'Added {table}.{column}')
            else:
                print(f'{table}.{column} already exists')


if __name__ == "__main__":
    asyncio.run(add_schedule_columns())
