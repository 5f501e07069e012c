"""Configuration for the RAG service."""
