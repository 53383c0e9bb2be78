"""
Storage handle for spending records.

A single SpendingStore wraps one SQLAlchemy engine bound to a SQLite file. The
web app and the console both construct one explicitly and pass it around;
nothing here lives in module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

DEFAULT_DB_PATH = "./mydb.db"
TABLE_SPENDING = "spending"


class StoreError(Exception):
    """Raised when the database cannot be opened, read or written."""


@dataclass
class SpendingRecord:
    """Represents a spending record."""

    id: int
    date: str
    amount: float
    type: str
    description: str

    @classmethod
    def from_row(cls, row) -> "SpendingRecord":
        return cls(
            id=row["id"],
            date=row["date"],
            amount=row["amount"],
            type=row["type"],
            description=row["description"],
        )


class SpendingStore:
    def __init__(self, engine: Engine, table_name: str = TABLE_SPENDING):
        self.engine = engine
        self.table_name = table_name

    @classmethod
    def from_path(cls, db_path: str | None = None) -> "SpendingStore":
        """Build a store for a SQLite file, creating the file on first use."""
        engine = create_engine(
            f"sqlite:///{db_path or DEFAULT_DB_PATH}",
            connect_args={"check_same_thread": False},
        )
        return cls(engine)

    def init_schema(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"""
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        date TEXT,
                        amount REAL,
                        type TEXT,
                        description TEXT
                    )
                """))
        except SQLAlchemyError as exc:
            raise StoreError(f"could not initialize table {self.table_name!r}") from exc

    def _insert_sql(self):
        return text(f"""
            INSERT INTO {self.table_name} (date, amount, type, description)
            VALUES (:date, :amount, :type, :description)
        """)

    def insert(self, date: str, amount: float, type: str, description: str) -> int:
        return self.insert_many([(date, amount, type, description)])[0]

    def insert_many(self, rows) -> list[int]:
        """Insert (date, amount, type, description) tuples in one transaction.

        Either every row is committed or none is. Returns the new ids in the
        order the rows were given.
        """
        ids = []
        try:
            with self.engine.begin() as conn:
                stmt = self._insert_sql()
                for date, amount, type_, description in rows:
                    result = conn.execute(
                        stmt,
                        {"date": date, "amount": amount, "type": type_, "description": description},
                    )
                    ids.append(result.lastrowid)
        except SQLAlchemyError as exc:
            raise StoreError("could not write spending records") from exc
        return ids

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(f"SELECT COUNT(*) FROM {self.table_name}")).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError("could not count spending records") from exc

    def list_all(self) -> list[SpendingRecord]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(f"""
                    SELECT id, date, amount, type, description
                    FROM {self.table_name}
                    ORDER BY id
                """)).mappings().all()
        except SQLAlchemyError as exc:
            raise StoreError("could not read spending records") from exc
        return [SpendingRecord.from_row(r) for r in rows]

    def dispose(self) -> None:
        self.engine.dispose()
