"""
Check the configured OpenAI-compatible endpoint with one short chat completion.
Run: python -m scripts.check_llm_connection (from the repo root, OPENAI_API_KEY in env or .env).
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from config import settings
from services.errors import CollaboratorError
from services.llm import generate_chat_reply


async def check_connection() -> bool:
    if not settings.llm_enabled:
        print("OPENAI_API_KEY not found in environment")
        return False
    key = settings.openai_api_key
    print(f"API key found: {key[:8]}...{key[-4:]}")
    print(f"Model: {settings.openai_model}  Base URL: {settings.openai_base_url or 'default'}")
    try:
        reply = await generate_chat_reply("Say 'Connection successful!' if you can read this.", [])
    except CollaboratorError as e:
        print(f"Error connecting to the LLM ({type(e).__name__}): {e}")
        return False
    print(f"Response: {reply}")
    return True


if __name__ == "__main__":
    print("=" * 60)
    print("Testing LLM connection")
    print("=" * 60)
    ok = asyncio.run(check_connection())
    print("=" * 60)
    print("LLM is properly configured." if ok else "Connection test failed. Check your API key and base URL.")
    print("=" * 60)
    sys.exit(0 if ok else 1)
