"""
Cooking Assistant Chat (chat_app.py)

Interactive console chat against an Azure OpenAI chat deployment. Replies are
streamed token by token and the full conversation is sent on every turn.

Usage:
    python chat_app.py

Type 'exit' or 'quit' to stop.
"""

import sys

from recipe_search.chat import ChatSession, run_chat
from recipe_search.config import ConfigurationError, OpenAIConfig
from recipe_search.openai_client import create_openai_client


def main():
    try:
        config = OpenAIConfig.from_env()
    except ConfigurationError as e:
        print(f"❌ Error: {e}")
        print("Please ensure the variables are set in your .env file.")
        sys.exit(1)

    print("=== Cooking Assistant (Azure OpenAI) ===")
    print(f"Deployment: {config.chat_deployment}")
    print("Type your message or 'exit' to quit\n")

    session = ChatSession(create_openai_client(config), config.chat_deployment)
    run_chat(session)


if __name__ == "__main__":
    main()
