# ABOUTME: Maibuk - book writing core with dual storage backends and a publishing pipeline.
# ABOUTME: Exposes the package version; see maibuk.db, maibuk.core and maibuk.export.

__version__ = "0.1.0"
