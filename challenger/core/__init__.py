"""Settings, logging, exceptions and catalogs."""
