"""Palate model, profile updater, similarity engine and recommendation scorer."""
