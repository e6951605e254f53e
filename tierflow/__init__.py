"""tierflow -- route completions between a local model and a cloud LLM."""

__version__ = "0.1.0"
