"""Export and import of auction results."""
