"""utils/ - Cross-cutting helpers."""
