"""devdb: управление локальной PostgreSQL базой для разработки rust-axum-rest-api."""

__version__ = "0.1.0"
