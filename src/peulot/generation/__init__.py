"""Generation — prompt assembly, the LLM client boundary, and insights."""
