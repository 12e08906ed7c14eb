"""Portal automation modules."""
