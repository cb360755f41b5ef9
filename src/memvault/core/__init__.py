"""Core building blocks for the memory vault."""
