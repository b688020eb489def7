"""Command-line interface for trying flows in the terminal."""

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .channels.console import ConsoleSink, StaticProfileProvider, StaticResponder
from .dispatcher import MessageDispatcher
from .exceptions import FlowDefinitionError
from .flows import FlowEngine, FlowRegistry, build_registry
from .infrastructure.session_store import SessionStore
from .models import InboundEvent, Settings, UserProfile, get_settings

app = typer.Typer(
    name="chatflow",
    help="Conversational flow engine CLI",
    add_completion=False,
)
console = Console()


def print_welcome():
    """Print welcome message."""
    console.print(
        Panel.fit(
            "[bold blue]Chatflow Console[/bold blue]\n"
            "[dim]Talk to your flows without a messaging channel[/dim]\n\n"
            "Commands:\n"
            "  [green]exit[/green] or [green]quit[/green] - Leave the console\n"
            "  [green]/reset[/green] - Forget the current conversation\n"
            "  [green]/state[/green] - Show flow pointer and variables\n"
            "  [green]/start[/green] - Send the Get Started postback\n"
            "  [green]1, 2, ...[/green] - Pick a quick reply or button",
            title="Welcome",
            border_style="blue",
        )
    )


def print_error(message: str):
    """Print an error message."""
    console.print(
        Panel(
            f"[red]{message}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
        )
    )


def print_state(store: SessionStore, user_id: str):
    """Print the user's flow pointer, profile and variables."""
    session = store.get(user_id)

    table = Table(title="Session", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("active", str(session.is_active))
    table.add_row("flow", str(session.current_flow))
    table.add_row("step", str(session.current_step))
    table.add_row("started", session.started_at.isoformat(timespec="seconds"))

    profile = store.get_profile(user_id)
    if profile:
        for key, value in profile.model_dump(exclude_none=True).items():
            table.add_row(f"profile:{key}", value)

    for key, value in store.all_variables(user_id).items():
        table.add_row(f"var:{key}", str(value))

    console.print(table)


def load_registry(settings: Settings) -> FlowRegistry:
    """Build the flow registry, exiting with an error message on bad definitions."""
    try:
        return build_registry(settings)
    except FlowDefinitionError as e:
        print_error(str(e))
        raise typer.Exit(1)


async def run_chat_loop(settings: Settings, user_id: str, first_name: str | None):
    """Run the interactive console conversation."""
    registry = load_registry(settings)
    store = SessionStore.from_settings(settings)
    sink = ConsoleSink(console, bot_name=settings.bot_name)
    responder = StaticResponder(settings.default_response)
    engine = FlowEngine(registry, store, sink, responder, settings=settings)
    dispatcher = MessageDispatcher(
        engine,
        store,
        sink,
        responder,
        profiles=StaticProfileProvider(UserProfile(first_name=first_name)),
        settings=settings,
    )

    print_welcome()
    console.print(f"\n[dim]{len(registry)} flows loaded. User ID: {user_id}[/dim]\n")

    while True:
        try:
            user_input = Prompt.ask("[bold blue]You[/bold blue]")

            if user_input.lower() in ("exit", "quit"):
                console.print("[dim]Goodbye![/dim]")
                break

            if user_input == "/reset":
                store.reset(user_id)
                console.print("[dim]Conversation reset.[/dim]")
                continue

            if user_input == "/state":
                print_state(store, user_id)
                continue

            if user_input == "/start":
                await dispatcher.handle(InboundEvent(user_id=user_id, postback_payload="GET_STARTED"))
                continue

            if not user_input.strip():
                continue

            text, payload, is_postback = sink.resolve_choice(user_input)
            if is_postback:
                event = InboundEvent(user_id=user_id, postback_payload=payload)
            else:
                event = InboundEvent(user_id=user_id, text=text, quick_reply_payload=payload)

            route = await dispatcher.handle(event)
            console.print(f"[dim]route: {route}[/dim]")

        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted. Type 'exit' to quit.[/dim]")
            continue


@app.command()
def chat(
    user_id: str = typer.Option("console-user", "--user-id", "-u", help="User identifier"),
    first_name: str | None = typer.Option(None, "--first-name", help="Profile first name"),
    flows_path: str | None = typer.Option(None, "--flows", "-f", help="YAML flow file"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Show engine logs"),
):
    """Start an interactive console conversation."""
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.WARNING)

    settings = get_settings()
    if flows_path:
        settings = settings.model_copy(update={"flows_path": flows_path})

    asyncio.run(run_chat_loop(settings, user_id, first_name))


@app.command()
def flows(
    flows_path: str | None = typer.Option(None, "--flows", "-f", help="YAML flow file"),
):
    """List registered flows and their triggers."""
    logging.getLogger().setLevel(logging.WARNING)

    settings = get_settings()
    if flows_path:
        settings = settings.model_copy(update={"flows_path": flows_path})
    registry = load_registry(settings)

    table = Table(title="Flows", show_header=True)
    table.add_column("Flow", style="cyan")
    table.add_column("Steps", style="white")
    table.add_column("Triggers", style="white")

    for name in registry.list_flow_names():
        flow = registry.get_flow(name)
        triggers = []
        for trigger in registry.triggers.triggers_for(name):
            if trigger.type == "keyword":
                triggers.append(f"keyword: {', '.join(trigger.keywords)}")
            elif trigger.type == "exact":
                triggers.append(f"exact: {trigger.value}")
            else:
                triggers.append(f"regex: {trigger.pattern}")
        table.add_row(name, ", ".join(flow.steps), "\n".join(triggers))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"Chatflow v{__version__}")


@app.command()
def config():
    """Show current configuration."""
    settings = get_settings()

    table = Table(title="Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))

    console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
