"""HTTP intake server."""
