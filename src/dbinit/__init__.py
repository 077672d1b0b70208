"""Startup database bootstrap and forward-only SQL migrations.

Run `dbinit migrate` before the application starts: it places a fresh
database under version control, applies pending `<version>.sql` files in
version order, and exits non-zero on any failure.
"""

__version__ = "0.1.0"
