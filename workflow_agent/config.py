"""Configuration settings for the application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file (optional, for local development convenience)
# Environment variables set in the shell take precedence over .env file
load_dotenv()


# Workflow backend (orders, stages, users)
WORKFLOW_API_BASE_URL = os.getenv("WORKFLOW_API_BASE_URL", "http://localhost:8080").rstrip("/")
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "10"))

# LLM Configuration
# Provider is one of: google, openai, ollama
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "google")
LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-flash")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "https://ollama.com").rstrip("/")
OLLAMA_API_KEY = os.getenv("OLLAMA_API_KEY", "")

# Request limits
MAX_QUESTION_CHARS = 4000
MAX_CONTEXT_ORDERS = 10

# HTTP surface
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "8000"))


def validate_config():
    """Validate configuration on startup. Fail fast if the provider's API key is missing."""
    provider = LLM_PROVIDER.lower()
    if provider == "google" and not GEMINI_API_KEY:
        raise RuntimeError(
            "GEMINI_API_KEY is not set. "
            "Set it as an environment variable: export GEMINI_API_KEY=your_key_here\n"
            "Or create a .env file (for local development only): GEMINI_API_KEY=your_key_here"
        )
    if provider == "openai" and not OPENAI_API_KEY:
        raise RuntimeError(
            "OPENAI_API_KEY is not set. "
            "Set it as an environment variable: export OPENAI_API_KEY=your_key_here"
        )
    if provider not in {"google", "openai", "ollama"}:
        raise RuntimeError(f"Unsupported LLM_PROVIDER '{LLM_PROVIDER}'. Use google, openai or ollama.")
