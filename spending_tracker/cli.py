# Terminal companion to the web app
# Lets a user log spending from a console. It will ask for:
# date
# amount
# type
# description

from __future__ import annotations

import argparse
import math
import os
from datetime import date as date_cls

import pandas as pd

from spending_tracker.store import DEFAULT_DB_PATH, SpendingStore, StoreError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Log and show spending from the terminal.")
    parser.add_argument(
        "--database",
        help="Path of the SQLite database file. Defaults to DB_PATH env var or ./mydb.db.",
    )
    args = parser.parse_args(argv)

    store = SpendingStore.from_path(args.database or os.environ.get("DB_PATH") or DEFAULT_DB_PATH)
    try:
        store.init_schema()
    except StoreError as exc:
        print(f"Could not open the spending database: {exc}")
        raise SystemExit(1)

    # User input loop
    while True:
        print("\nChoose an input:")
        print("1. Add entry")
        print("2. Show entries")
        print("3. Quit")
        choice = input("> ")

        if choice == "1":
            day = input("Date (YYYY-MM-DD, blank for today): ")
            amount = input("Amount: ")
            type_ = input("Type: ")
            description = input("Description: ")
            add_entry(store, day, amount, type_, description)
        elif choice == "2":
            show_entries(store)
        elif choice == "3":
            print("Goodbye :)")
            break
        else:
            print("Unknown command")

    store.dispose()


def show_entries(store):
    try:
        records = store.list_all()
    except StoreError as exc:
        print(f"Could not read entries: {exc}")
        return
    if not records:
        print("No entries recorded yet.")
        return

    df = pd.DataFrame([vars(r) for r in records], columns=["id", "date", "amount", "type", "description"])
    print("\nAll entries:")
    print(df.to_string(index=False))


def add_entry(store, day, amount, type_, description):
    day = (day or "").strip() or date_cls.today().strftime("%Y-%m-%d")
    try:
        amount = float(amount)
    except ValueError:
        print(f"Amount must be a number, got {amount!r}. Nothing was saved.")
        return None
    if not math.isfinite(amount):
        print(f"Amount must be a finite number, got {amount}. Nothing was saved.")
        return None

    try:
        record_id = store.insert(day, amount, type_, description)
    except StoreError as exc:
        print(f"Could not save the entry: {exc}")
        return None
    print(f"Added entry #{record_id}: {description} ({amount:.2f}, {type_}) on {day}")
    return record_id


if __name__ == "__main__":
    main()
