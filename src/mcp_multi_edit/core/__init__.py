"""Edit engine, transaction coordinator and diagnostics."""
