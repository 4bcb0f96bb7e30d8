"""Chat services: FAQ matching, query rewriting, compaction and the LLM gateway."""
