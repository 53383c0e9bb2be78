"""Personal spending tracker: Flask web app, SQLite store and terminal companion."""
