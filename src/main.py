"""Companion entry point: console chat plus the recurring task scheduler."""

import asyncio
import base64
import logging
from pathlib import Path

from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  /memories        list stored memories
  /extract         run memory extraction now
  /model [name]    show models, or switch chat model (haiku, sonnet, opus)
  /photo <path> [caption]  share a photo
  /gallery         list photos in the conversation
  /mood            show current mood and energy
  /quit            exit"""


def _print_turn(result) -> None:
    for part in result.parts:
        print(f"{settings.companion_name.lower()}> {part}")
    if result.image_url:
        print(f"  [photo] {result.image_url}")


async def _handle_command(companion, line: str) -> bool:
    """Run a slash command. Returns False when the loop should stop."""
    from src.errors import ValidationError
    from src.llm.models import ModelManager

    command, _, arg = line.partition(" ")
    if command in ("/quit", "/exit"):
        return False
    if command == "/memories":
        for memory in await companion.memories.list_all():
            print(f"  [{memory.category}/{memory.importance}] {memory.content}  ({memory.id})")
    elif command == "/extract":
        report = await companion.run_extraction()
        print(f"  stored={report.stored} skipped={report.skipped} rejected={report.rejected}")
    elif command == "/model":
        models = ModelManager.get()
        if not arg.strip():
            print(f"  {models.describe()}")
        else:
            model_id = models.set_chat_model(arg.strip())
            print(f"  chat model → {model_id}" if model_id else f"  unknown model: {arg.strip()}")
    elif command == "/photo":
        path, _, caption = arg.strip().partition(" ")
        if not path:
            print("  usage: /photo <path> [caption]")
            return True
        try:
            data = await asyncio.to_thread(Path(path).expanduser().read_bytes)
        except OSError as exc:
            print(f"  ! {exc}")
            return True
        try:
            result = await companion.handle_image(base64.b64encode(data).decode(), caption or None)
        except ValidationError as exc:
            print(f"  ! {exc}")
            return True
        _print_turn(result)
    elif command == "/gallery":
        for message in await companion.gallery():
            print(f"  {message.timestamp} [{message.role}] {message.image_url}")
    elif command == "/mood":
        state = await companion.state.get_state()
        print(f"  {state.mood.value} ({state.energy}/100)")
    else:
        print(HELP_TEXT)
    return True


async def run() -> None:
    """Start the scheduler and chat on stdin until EOF or /quit."""
    from src.chat.orchestrator import Companion
    from src.errors import ValidationError
    from src.notifications.push import ExpoPushSender
    from src.scheduler import SchedulerEngine, build_default_tasks

    companion = Companion()
    engine = SchedulerEngine(build_default_tasks(companion, ExpoPushSender()))
    await engine.start()
    logger.info("%s is online", settings.companion_name)

    try:
        while True:
            try:
                line = (await asyncio.to_thread(input, "you> ")).strip()
            except EOFError:
                break
            if not line:
                continue
            if line.startswith("/"):
                if not await _handle_command(companion, line):
                    break
                continue
            try:
                result = await companion.handle_message(line)
            except ValidationError as exc:
                print(f"  ! {exc}")
                continue
            _print_turn(result)
    finally:
        await companion.wait_for_background()
        await engine.stop()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
