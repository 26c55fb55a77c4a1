"""Entry point for `python -m chatstream`."""

import argparse
import asyncio
import sys

import uvicorn

from .client import ChatClient
from .config import Settings
from .logging_config import configure_logging
from .printer import RichStreamPrinter, console
from .types import PROVIDERS


async def ask(args) -> int:
    async with ChatClient(args.url) as client:
        with RichStreamPrinter(title=args.provider or "Assistant") as printer:
            result = await client.send(
                args.message,
                chat_id=args.chat_id,
                provider=args.provider,
                on_metadata=printer.on_metadata,
                on_content=printer.on_content,
            )
            printer.finish(failed=result.failed, error=result.error)

    if result.chat_id:
        console.print(f"[dim]chat id: {result.chat_id}[/dim]")
    return 1 if result.failed else 0


async def show_providers(args) -> int:
    async with ChatClient(args.url) as client:
        data = await client.providers()
    console.print(f"active: [bold]{data['active']}[/bold]")
    console.print(f"available: {', '.join(data['available']) or '(none)'}")
    return 0


def main(argv=None) -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    parser = argparse.ArgumentParser(prog="chatstream")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_p = sub.add_parser("serve", help="run the chat API server")
    serve_p.add_argument("--host", default=settings.host)
    serve_p.add_argument("--port", type=int, default=settings.port)

    default_url = f"http://{settings.host}:{settings.port}"

    ask_p = sub.add_parser("ask", help="send one message and stream the reply")
    ask_p.add_argument("message")
    ask_p.add_argument("--provider", choices=PROVIDERS)
    ask_p.add_argument("--chat-id")
    ask_p.add_argument("--url", default=default_url)

    prov_p = sub.add_parser("providers", help="list configured providers")
    prov_p.add_argument("--url", default=default_url)

    args = parser.parse_args(argv)

    if args.command == "serve":
        uvicorn.run(
            "chatstream.server:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_config=None,
        )
        return 0
    if args.command == "ask":
        return asyncio.run(ask(args))
    return asyncio.run(show_providers(args))


if __name__ == "__main__":
    sys.exit(main())
