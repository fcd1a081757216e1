"""Service layer used by the routes and the archive exporter."""
