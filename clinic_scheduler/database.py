from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_scheduler.core import config


engine = create_engine(config.DATABASE_URL, echo=config.DEBUG_SQL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

# Columns added after the first release; create_all() never alters existing tables.
_LATE_COLUMNS = {
    'time_blocks': [
        ('kind', "ALTER TABLE time_blocks ADD COLUMN kind VARCHAR(16) DEFAULT 'other'"),
    ],
    'appointments': [
        ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
        ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
    ],
}

_INDEX_STATEMENTS = [
    'CREATE INDEX IF NOT EXISTS idx_availability_provider_day ON availability_windows(provider_id, day_of_week)',
    'CREATE INDEX IF NOT EXISTS idx_time_blocks_provider_range ON time_blocks(provider_id, start_datetime, end_datetime)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_provider_start ON appointments(provider_id, scheduled_at)',
    (
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_provider_start_active '
        "ON appointments(provider_id, scheduled_at) WHERE status != 'cancelled'"
    ),
]


def ensure_scheduling_schema() -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        with engine.begin() as connection:
            for table_name, migration_steps in _LATE_COLUMNS.items():
                if table_name not in table_names:
                    continue

                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

            if {'availability_windows', 'time_blocks', 'appointments'} <= table_names:
                for statement in _INDEX_STATEMENTS:
                    connection.execute(text(statement))

        _scheduling_schema_checked = True
