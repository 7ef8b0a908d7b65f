"""Cross-cutting layer: errors, logging, HTTP pool, timing, models, contracts."""
