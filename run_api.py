"""
Run the CareScan Assistant REST API.

Usage:
    python run_api.py

Environment variables:
    APP_ENV                     "development" (default) or "production"
    SESSION_SECRET              Secret for signing session tokens (REQUIRED in production)
    SESSION_TTL_HOURS           Session lifetime in hours (default: 720)
    DB_PATH                     SQLite database file path (default: carescan.db)
    LLM_PROVIDER                "openai", "groq", or "ollama" (default: ollama)
    LLM_MODEL_OPENAI            Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ              Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA            Model name when LLM_PROVIDER=ollama (default: llama3.2)
    OPENAI_API_KEY              Required when LLM_PROVIDER=openai
    GROQ_API_KEY                Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL             Ollama server URL (default: http://localhost:11434/)
    INFERENCE_TIMEOUT_SECONDS   Upper bound for one LLM call (default: 60)
    LOG_LEVEL                   Logging level (default: INFO)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "adapters.rest.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
