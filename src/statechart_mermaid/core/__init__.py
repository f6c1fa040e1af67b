"""Graph model, field extractors and label formatters."""
