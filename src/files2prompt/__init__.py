"""Turn files and directories into a single prompt document for an LLM."""

__version__ = "1.0.0"
