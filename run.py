"""
RUN SCRIPT - Start the Companion server
=======================================

PURPOSE:
  Single entry point to start the backend.

WHAT IT DOES:
  - Imports the FastAPI app from companion.main.
  - Runs it with uvicorn on HOST/PORT from config (default 0.0.0.0:5000).
  - reload=True means any change to Python files will restart the server (handy for development).

USAGE:
  python run.py

  API docs: http://localhost:5000/docs

NOTE:
  Before running, set GROQ_API_KEY in .env (and optionally API_AUTH_TOKEN).
"""

import uvicorn

from config import HOST, PORT

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "companion.main:app",   # String path to the FastAPI app instance (module:variable).
        host=HOST,
        port=PORT,
        reload=True             # Auto-restart when .py files change (useful during development).
    )
