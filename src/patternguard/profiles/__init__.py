"""Built-in profile bundles shipped as package data."""
