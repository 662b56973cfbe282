"""
COMPANION CHAT CLIENT - Terminal client for the Companion API
=============================================================

PURPOSE:
A command-line interface for talking to the Companion backend without a
frontend. Pick a persona, chat, clear the conversation, inspect history.

USAGE:
    python chat_client.py

    Make sure the server is running first: python run.py

COMMANDS:
    /personas        - List available personas
    /persona <id>    - Switch persona (history is kept; the new persona sees it)
    /temp <value>    - Set temperature for following messages (/temp off to use the server default)
    /history         - View stored history for the current session
    /clear           - Clear the conversation on the server
    /quit or /exit   - Exit
"""

import os

import requests


# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
BASE_URL = os.getenv("COMPANION_URL", "http://localhost:5000")
AUTH_TOKEN = os.getenv("API_AUTH_TOKEN", "")
SESSION_ID = None
CURRENT_PERSONA = "aiko"
TEMPERATURE = None


def _headers():
    return {"Authorization": f"Bearer {AUTH_TOKEN}"} if AUTH_TOKEN else {}


def _error_text(response):
    """Prefer the server's 'detail' message; fall back to status + body."""
    try:
        err = response.json()
        if isinstance(err.get("detail"), str):
            return f"❌ {err['detail']}"
    except ValueError:
        pass
    return f"❌ Error: {response.status_code} - {response.text}"


# -----------------------------------------------------------------------------
# API CALLS
# -----------------------------------------------------------------------------

def list_personas():
    try:
        response = requests.get(f"{BASE_URL}/api/personas", timeout=10)
    except requests.exceptions.RequestException as e:
        return f"❌ Error: {e}"
    if response.status_code != 200:
        return _error_text(response)
    return "\n".join(f"  {p['id']:<10} {p['name']}" for p in response.json())


def send_message(message):
    """
    Send one message to POST /api/chat with the current persona.

    Keeps the session_id the server returns so the next message continues the
    same conversation.
    """
    global SESSION_ID

    body = {"message": message, "persona_id": CURRENT_PERSONA}
    if SESSION_ID:
        body["session_id"] = SESSION_ID
    if TEMPERATURE is not None:
        body["temperature"] = TEMPERATURE

    try:
        response = requests.post(f"{BASE_URL}/api/chat", json=body, headers=_headers(), timeout=60)
    except requests.exceptions.ConnectionError:
        return "❌ Cannot connect to backend. Start it with: python run.py"
    except requests.exceptions.Timeout:
        return "❌ Request timed out. Try again."

    if response.status_code != 200:
        return _error_text(response)
    data = response.json()
    SESSION_ID = data.get("session_id", SESSION_ID)
    return data.get("response", "No response")


def clear_history():
    if not SESSION_ID:
        return "No active session"
    try:
        response = requests.post(
            f"{BASE_URL}/api/chat/clear",
            json={"session_id": SESSION_ID},
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        return f"❌ Error: {e}"
    if response.status_code != 200:
        return _error_text(response)
    return "🔄 " + response.json().get("message", "Cleared")


def get_chat_history():
    if not SESSION_ID:
        return "No active session"
    try:
        response = requests.get(
            f"{BASE_URL}/api/chat/history/{SESSION_ID}",
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        return f"❌ Error: {e}"
    if response.status_code != 200:
        return _error_text(response)

    messages = response.json().get("messages", [])
    if not messages:
        return "No messages in this session"

    output = f"\n📜 Chat History ({len(messages)} messages):\n"
    output += "-" * 60 + "\n"
    for i, msg in enumerate(messages, 1):
        role = "You" if msg.get("role") == "user" else CURRENT_PERSONA.capitalize()
        output += f"{i}. {role}: {msg.get('content', '')}\n"
    output += "-" * 60 + "\n"
    return output


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    global CURRENT_PERSONA, TEMPERATURE

    print("\n" + "=" * 60)
    print("💬 Companion - Persona Chat")
    print("=" * 60)
    print(__doc__.split("COMMANDS:")[1])
    print(f"Current persona: {CURRENT_PERSONA}\n")

    while True:
        try:
            user_input = input("\nYou: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue
        if user_input in ("/quit", "/exit"):
            print("\n👋 Goodbye!")
            break
        if user_input == "/personas":
            print(list_personas())
            continue
        if user_input.startswith("/persona "):
            CURRENT_PERSONA = user_input.split(maxsplit=1)[1].strip()
            print(f"✅ Persona set to {CURRENT_PERSONA}")
            continue
        if user_input.startswith("/temp "):
            value = user_input.split(maxsplit=1)[1].strip()
            if value == "off":
                TEMPERATURE = None
            else:
                try:
                    TEMPERATURE = float(value)
                except ValueError:
                    print("❌ Temperature must be a number or 'off'")
                    continue
            print(f"✅ Temperature: {TEMPERATURE if TEMPERATURE is not None else 'server default'}")
            continue
        if user_input == "/history":
            print(get_chat_history())
            continue
        if user_input == "/clear":
            print(clear_history())
            continue
        if user_input.startswith("/"):
            print(f"❌ Unknown command: {user_input}")
            continue

        print(f"🌸 {CURRENT_PERSONA.capitalize()}: ", end="", flush=True)
        print(send_message(user_input))


if __name__ == "__main__":
    main()
