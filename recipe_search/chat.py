"""
Console chat loop for an Azure OpenAI chat deployment

The loop is strictly sequential: read one line from the user, send the whole
conversation to the model, stream the reply to the console, append it to the
history and repeat. A failed turn is printed and the session continues.
"""

from typing import Any, Callable, Dict, Iterator, List

DEFAULT_SYSTEM_PROMPT = """
You are a friendly cooking assistant. You help users find recipes, suggest
substitutions for missing ingredients and explain cooking steps.
If the user doesn't provide enough information, ask follow-up questions.
""".strip()

EXIT_COMMANDS = ("exit", "quit", "q")


class ChatSession:
    """Conversation history plus the client used to continue it."""

    def __init__(self, client: Any, deployment: str, system_prompt: str = DEFAULT_SYSTEM_PROMPT):
        self._client = client
        self._deployment = deployment
        self.history: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]

    def prune_history(self) -> None:
        """Remove tool messages left over from earlier turns."""
        self.history = [m for m in self.history if m.get("role") != "tool"]

    def stream_reply(self, user_message: str) -> Iterator[str]:
        """
        Send the user message and yield the reply as it streams in.

        The assembled reply is appended to the history once the stream ends.
        """
        self.prune_history()
        self.history.append({"role": "user", "content": user_message})

        stream = self._client.chat.completions.create(
            model=self._deployment,
            messages=list(self.history),
            stream=True,
        )

        parts = []
        for chunk in stream:
            # Azure sends a first chunk with prompt filter results and no choices
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                parts.append(content)
                yield content

        self.history.append({"role": "assistant", "content": "".join(parts)})


def run_chat(
    session: ChatSession,
    read_input: Callable[[str], str] = input,
    write: Callable[..., None] = print,
) -> None:
    """Run the interactive loop until the user exits."""
    while True:
        try:
            user_message = read_input("User > ").strip()
        except (EOFError, KeyboardInterrupt):
            write("\n\nExiting...")
            break

        if user_message.lower() in EXIT_COMMANDS:
            write("Exiting...")
            break

        if not user_message:
            continue

        try:
            write("Assistant > ", end="")
            for fragment in session.stream_reply(user_message):
                write(fragment, end="", flush=True)
            write()
        except KeyboardInterrupt:
            write("\n\nInterrupted by user. Goodbye!")
            break
        except Exception as e:
            write(f"\n✗ Error: {e}\n")
