"""
Spending tracker web app.
- POST /submit takes parallel form arrays (date[], amount[], type[], description[]) and stores one row per index.
- GET / lists every stored entry, or serves the blank entry form while the database is empty.
- GET /add always serves the blank entry form.
- The whole submission is written in one transaction: all rows or none.
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import sys

from flask import Flask, abort, flash, redirect, render_template, request, send_file, url_for
from jinja2 import TemplateError

from spending_tracker.store import DEFAULT_DB_PATH, SpendingStore, StoreError

FORM_FILE = "form.html"
DEFAULT_PORT = 8080
FORM_MIMETYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class MalformedSubmission(ValueError):
    """Raised when the submitted form arrays cannot be turned into rows."""


def parse_submission(form) -> list[tuple[str, float, str, str]]:
    """Zip the parallel form arrays into (date, amount, type, description) rows."""

    dates = form.getlist("date[]")
    amounts = form.getlist("amount[]")
    types = form.getlist("type[]")
    # Older forms named the note field purpose[]
    key = "description[]" if "description[]" in form else "purpose[]"
    descriptions = form.getlist(key)

    lengths = {len(dates), len(amounts), len(types), len(descriptions)}
    if len(lengths) != 1:
        raise MalformedSubmission(
            f"field arrays differ in length: date={len(dates)} amount={len(amounts)} "
            f"type={len(types)} description={len(descriptions)}"
        )

    rows = []
    for i, (d, amount_raw, t, desc) in enumerate(zip(dates, amounts, types, descriptions)):
        try:
            amount = float(amount_raw.strip())
        except ValueError:
            raise MalformedSubmission(f"amount #{i + 1} is not a number: {amount_raw!r}") from None
        if not math.isfinite(amount):
            raise MalformedSubmission(f"amount #{i + 1} must be a finite number: {amount_raw!r}")
        rows.append((d, amount, t, desc))
    return rows


# -----------------------------
# App factory (allows testing)
# -----------------------------

def create_app(db_path: str | None = None, *, store_override: SpendingStore | None = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-key-change-me")

    if store_override is not None:
        store = store_override
    else:
        store = SpendingStore.from_path(db_path or os.environ.get("DB_PATH") or DEFAULT_DB_PATH)

    # Fatal at startup: never serve against a store without its table
    store.init_schema()

    form_path = os.path.join(app.static_folder, FORM_FILE)

    def _serve_form():
        try:
            return send_file(form_path, mimetype="text/html")
        except OSError:
            app.logger.exception("Failed to read form page %s", form_path)
            abort(500, description="The entry form is unavailable.")

    @app.get("/")
    def index():
        try:
            if store.count() == 0:
                return _serve_form()
            records = store.list_all()
        except StoreError:
            app.logger.exception("Failed to load spending records")
            abort(500, description="Could not load spending records.")

        try:
            return render_template("index.html", records=records)
        except TemplateError:
            app.logger.exception("Failed to render the listing page")
            abort(500, description="Could not render spending records.")

    @app.get("/add")
    def add():
        return _serve_form()

    @app.post("/submit")
    def submit():
        if request.mimetype not in FORM_MIMETYPES:
            app.logger.warning("Rejected submission with content type %r", request.mimetype)
            abort(400, description="Expected a form-encoded submission.")

        try:
            rows = parse_submission(request.form)
        except MalformedSubmission as exc:
            app.logger.warning("Rejected malformed submission: %s", exc)
            abort(400, description=str(exc))

        if not rows:
            # An empty store redirects to the static form, which never drains flashes
            try:
                if store.count() > 0:
                    flash("No entries submitted.")
            except StoreError:
                app.logger.exception("Failed to count spending records")
            return redirect(url_for("index"))

        try:
            store.insert_many(rows)
        except StoreError:
            app.logger.exception("Failed to write %d submitted entries", len(rows))
            abort(500, description="Could not save the submission.")

        app.logger.info("Form submission received and written to database (%d rows).", len(rows))
        flash("Form submission received and written to database!")
        return redirect(url_for("index"))

    # Expose the store for tests and the CLI
    app.config["_STORE"] = store

    return app


# -----------------------------
# Dev server (debugger & reloader disabled)
# -----------------------------

def _port_from_env() -> int:
    env_port = os.environ.get("PORT")
    if env_port:
        try:
            port = int(env_port)
            if 0 <= port <= 65535:
                return port
        except ValueError:
            pass
    return DEFAULT_PORT


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Spending tracker web application.")
    parser.add_argument(
        "--database",
        help="Path of the SQLite database file. Defaults to DB_PATH env var or ./mydb.db.",
    )
    parser.add_argument(
        "--host",
        help="Host interface for the server. Defaults to HOST env var or 127.0.0.1.",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port for the server. Defaults to PORT env var or 8080.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        app = create_app(db_path=args.database)
    except StoreError as exc:
        print(f"[!] Could not open the spending database: {exc}")
        sys.exit(1)

    host = args.host or os.environ.get("HOST", "127.0.0.1")
    port = args.port if args.port is not None else _port_from_env()

    print(f"Server listening on http://{host}:{port}")
    app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)


if __name__ == "__main__":
    main()
