"""HTTP API for the GraphRAG engine."""
