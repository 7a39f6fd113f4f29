"""
Run the CareScan Assistant CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    register        Create a new account
    login           Sign in with username, email or phone (~/.carescan/session.json)
    logout          Clear stored credentials
    whoami          Show the currently logged-in user
    profile         Display your profile and the assistant's view of it
    update-profile  Set age and medical history
    history         List your stored medication records
    ask             One-shot medication question
    chat            Interactive consultation session

Examples:
    python run_cli.py login
    python run_cli.py update-profile --age 54 --medical-history "type 2 diabetes"
    python run_cli.py ask "What is Metformin for?"

Environment variables: see run_api.py (same Settings are used).
"""

import os
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app
from infrastructure.config import configure_logging

if __name__ == "__main__":
    # Warnings only unless LOG_LEVEL is set.
    configure_logging(os.getenv("LOG_LEVEL", "WARNING"))
    app()
