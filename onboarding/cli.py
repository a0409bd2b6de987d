#!/usr/bin/env python3
"""
SDK Onboarding Command Line Interface

Main entry point for the `onboarding` command.

Usage:
    onboarding steps --platforms ios,android --framework flutter   # Preview an app's steps
    onboarding survey             # Answer the pre-setup survey
    onboarding chat               # Run the onboarding conversation in the terminal
    onboarding serve              # Start the API server
    onboarding --version          # Show version
"""

import argparse
import asyncio
import json
import sys


def cmd_steps(args):
    """Handle steps subcommand."""
    from onboarding.steps.graph import build_steps

    platforms = [x.strip() for x in args.platforms.split(",") if x.strip()]
    try:
        steps = build_steps(platforms, args.framework, args.environment)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps([s.to_dict() for s in steps], indent=2))
        return

    print(f"{len(steps)} steps for {', '.join(platforms)} ({args.environment}):\n")
    for i, step in enumerate(steps, 1):
        print(f"  {i:2}. [phase {step.phase}] {step.id:<22} {step.title}")


def cmd_survey(args):
    """Handle survey subcommand.

    Asks each visible question in turn. An empty answer (or Ctrl+D) skips
    the rest of the survey; what was answered so far is kept.
    """
    from onboarding.config_models import load_onboarding_config
    from onboarding.errors import ValidationError
    from onboarding.persistence import JsonFileStore, open_store
    from onboarding.survey.questions import SurveyRun

    config = load_onboarding_config()
    store = JsonFileStore(args.store) if args.store else open_store(config.persistence.store_path)
    run = SurveyRun(store)

    print("A few questions before we start (press Enter to skip the rest).\n")
    while (question := run.current) is not None:
        answered, total = run.progress
        print(f"[{answered + 1}/{total}] {question.question}")
        print(f"  {question.subtitle}")
        for option in question.options:
            print(f"    {option.value:<18} {option.label}")

        try:
            raw = input("> ").strip()
        except EOFError:
            raw = ""
        if not raw:
            run.skip()
            break

        value = [x.strip() for x in raw.split(",")] if question.type == "multi-select" else raw
        try:
            run.answer(value)
        except ValidationError as e:
            print(f"  [!!] {e}")
        print()

    print(f"Saved {len(run.answers)} answer(s) to {store.path}")


async def _chat(flow):
    from onboarding.flow.controller import UserAction
    from onboarding.protocol.render import render_message

    shown: dict[str, int] = {}

    def show_new():
        transcript = flow.transcript(flow.active)
        seen = shown.get(flow.active, 0)
        for message in transcript.messages[seen:]:
            print(render_message(message))
            print()
        shown[flow.active] = len(transcript.messages)

    await flow.start()
    await flow.settle()
    show_new()

    while True:
        try:
            raw = input(f"{flow.active[:8]}> ").strip()
        except EOFError:
            return
        if not raw:
            continue

        app_id = None if flow.active == "session" else flow.active
        if raw in ("/quit", "/exit"):
            return
        elif raw == "/skip":
            action = UserAction(kind="skip", app_id=app_id)
        elif raw == "/add":
            action = UserAction(kind="add-app")
        elif raw == "/apps":
            for app in flow.registry:
                marker = "*" if app.is_expanded else " "
                print(f" {marker} {app.id}  {app.name}  {flow.registry.progress(app.id):.0%}")
            continue
        elif raw.startswith("/expand "):
            action = UserAction(kind="expand", value=raw.split(maxsplit=1)[1])
        elif raw.startswith("/step "):
            action = UserAction(kind="step-click", app_id=app_id, step_id=raw.split(maxsplit=1)[1])
        elif raw.startswith("/say "):
            action = UserAction(kind="text", app_id=app_id, text=raw.split(maxsplit=1)[1])
        else:
            pending = flow.transcript(flow.active).pending_kind
            try:
                value = json.loads(raw)
            except json.JSONDecodeError:
                value = raw
            if pending is None:
                action = UserAction(kind="text", app_id=app_id, text=raw)
            else:
                action = UserAction.answer(pending, value, app_id=app_id)

        result = await flow.dispatch(action)
        if not result["success"]:
            print(f"  [!!] {result['error']}")
        await flow.settle()
        show_new()


def cmd_chat(args):
    """Handle chat subcommand.

    Answers are typed as the prompt's value: a plain word ("production"),
    or JSON for lists and forms (["ios","android"], {"mode": "search",
    "query": "shop"}). Lines starting with "/" are commands: /skip, /add,
    /apps, /expand <id>, /step <id>, /say <text>, /quit.
    """
    from onboarding.config_models import OnboardingConfig, load_onboarding_config
    from onboarding.flow.controller import FlowController
    from onboarding.logging_config import setup_logging
    from onboarding.persistence import SessionSeed, open_store

    setup_logging(level="WARNING")
    config = OnboardingConfig.instant() if args.instant else load_onboarding_config()
    seed = SessionSeed.from_store(open_store(config.persistence.store_path))
    flow = FlowController(config=config, seed=seed)

    try:
        asyncio.run(_chat(flow))
    except KeyboardInterrupt:
        print()


def cmd_serve(args):
    """Handle serve subcommand."""
    import uvicorn

    from onboarding.config_models import load_onboarding_config

    api = load_onboarding_config().api
    host = args.host or api.host
    port = args.port or api.port

    print(f"Starting onboarding API at http://{host}:{port}/api/docs")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "onboarding.api.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_version(args):
    """Show version information."""
    from onboarding import __version__

    print(f"sdk-onboarding version {__version__}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="onboarding",
        description="Conversational setup wizard for measurement SDK onboarding",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Steps subcommand
    steps_parser = subparsers.add_parser(
        "steps", help="Show the setup steps an app would get"
    )
    steps_parser.add_argument(
        "--platforms", required=True, help="Comma separated platforms (ios,android,web)"
    )
    steps_parser.add_argument(
        "--framework", default=None, help="Framework (e.g. flutter, ios-native)"
    )
    steps_parser.add_argument(
        "--environment", default="production", choices=["dev", "production"],
        help="Environment (default: production)",
    )
    steps_parser.add_argument(
        "--json", action="store_true", help="Print the steps as JSON"
    )
    steps_parser.set_defaults(func=cmd_steps)

    # Survey subcommand
    survey_parser = subparsers.add_parser(
        "survey", help="Answer the pre-setup survey"
    )
    survey_parser.add_argument(
        "--store", default=None, help="Session store file (default from config)"
    )
    survey_parser.set_defaults(func=cmd_survey)

    # Chat subcommand
    chat_parser = subparsers.add_parser(
        "chat", help="Run the onboarding conversation in the terminal"
    )
    chat_parser.add_argument(
        "--instant", action="store_true", help="No simulated typing or provider delays"
    )
    chat_parser.set_defaults(func=cmd_chat)

    # Serve subcommand
    serve_parser = subparsers.add_parser(
        "serve", help="Start the API server"
    )
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    # Handle --version at top level
    if args.version:
        cmd_version(args)
        return

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return

    result = args.func(args)

    # Commands may return an exit code
    if isinstance(result, int) and result != 0:
        sys.exit(result)


if __name__ == "__main__":
    main()
