import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from api.ollama_client import OllamaClient
from config.config import Config
from models.conversation import ConversationTurn
from models.errors import OrchestrationError, user_message
from models.stream_events import ContentEvent, ErrorEvent, Phase, ProgressEvent, StreamEvent
from orchestrator.core import OrchestratorPolicy, SearchOrchestrator
from orchestrator.sinks import EventSink
from server.utils import MAX_HISTORY_TURNS
from tools.web import create_search_provider


class ConsoleSink(EventSink):
    """
    Print events to the terminal as they arrive.

    Progress lines are shown dimmed on their own line; content is written
    inline so the answer appears as it streams.
    """

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self.text_parts: list[str] = []
        self._in_answer = False

    def push(self, event: StreamEvent) -> None:
        if isinstance(event, ProgressEvent):
            color = "\033[91m" if event.phase == Phase.ERROR else "\033[93m"
            self.out.write(f"\r{color}[{Phase(event.phase).value}] {event.message}\033[0m\n")
        elif isinstance(event, ContentEvent):
            if not self._in_answer:
                self.out.write("\nAI: ")
                self._in_answer = True
            self.text_parts.append(event.text)
            self.out.write(event.text)
        elif isinstance(event, ErrorEvent):
            self.out.write(f"\n\033[91mError: {event.message}\033[0m")
        self.out.flush()

    def close(self) -> None:
        self.out.write("\n\n")
        self.out.flush()

    @property
    def text(self) -> str:
        return "".join(self.text_parts)


def build_orchestrator(config: Config) -> SearchOrchestrator:
    return SearchOrchestrator(
        completion_client=OllamaClient(config),
        search_provider=create_search_provider(config),
        policy=OrchestratorPolicy(
            draft_chunk_size=config.draft_chunk_size,
            max_retries=config.max_adequacy_retries,
        ),
    )


def main():
    config = Config.from_env()
    if not config.validate():
        print("Error initializing client: OLLAMA_API_KEY is missing or invalid for Ollama Cloud")
        return

    model = sys.argv[1] if len(sys.argv) > 1 else None
    if not model and config.is_cloud:
        model = config.cloud_default_model

    orchestrator = build_orchestrator(config)
    if not model:
        try:
            models = orchestrator.completion_client.list_models()
        except OrchestrationError as e:
            print(f"Error initializing client: {e.message}")
            return
        if not models:
            print("No models available. Pull one with `ollama pull <model>` and try again.")
            return
        model = models[0].name

    print("\n=== Search-Gated Chat ===")
    for line in config.describe():
        print(line)
    print(f"Model: {model}")
    print("Type 'exit' to quit, 'clear' to reset the conversation, or 'help' for commands\n")

    history: list[ConversationTurn] = []

    while True:
        try:
            user_input = input("You: ").strip()

            if not user_input:
                continue

            if user_input.lower() in ("exit", "quit"):
                print("\nGoodbye!")
                break

            if user_input.lower() == "clear":
                history.clear()
                print("\nConversation cleared.\n")
                continue

            if user_input.lower() == "help":
                print("\n=== Available Commands ===")
                print("help      - Show this help message")
                print("clear     - Forget the conversation so far")
                print("exit/quit - Exit the program\n")
                continue

            sink = ConsoleSink()
            orchestrator.handle(user_input, model, history, sink)

            if sink.text:
                history.append(ConversationTurn(role="user", content=user_input))
                history.append(ConversationTurn(role="assistant", content=sink.text))
                del history[:-MAX_HISTORY_TURNS]

        except KeyboardInterrupt:
            print("\nExiting...")
            break
        except OrchestrationError as e:
            print(f"\nError: {user_message(e)}\n")
            continue


if __name__ == "__main__":
    main()
