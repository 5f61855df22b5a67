"""
Environment configuration for the FAQ clustering service
"""

import os

# Embedding
EMBED_BACKEND = os.getenv("EMBED_BACKEND", "ollama")
EMBED_URL = os.getenv("EMBED_URL", os.getenv("OLLAMA_URL", "http://localhost:11434"))
EMBED_MODEL = os.getenv("EMBED_MODEL", "nomic-embed-text")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
EMBED_MAX_WORKERS = int(os.getenv("EMBED_MAX_WORKERS", "4"))
# Seconds for the whole embedding batch; unset means no deadline
EMBED_TIMEOUT = float(os.getenv("EMBED_TIMEOUT")) if os.getenv("EMBED_TIMEOUT") else None

# Inquiry store
ARANGODB_HOST = os.getenv("ARANGODB_HOST", "localhost")
ARANGODB_PORT = int(os.getenv("ARANGODB_PORT", "8529"))
ARANGODB_DB = os.getenv("ARANGODB_DB", "support")
ARANGODB_USER = os.getenv("ARANGODB_USER", "root")
ARANGODB_PASSWORD = os.getenv("ARANGODB_PASSWORD", "")
