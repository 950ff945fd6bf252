from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv(usecwd=True))

import argparse
import asyncio
import json
import logging
import sys

from .api import AdhdoneAI
from .config import load_settings
from .errors import InvalidArgument


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='ADHDone - adaptive reminders and brain dump organization')
    parser.add_argument('--db-path', type=str, help='SQLite file holding the local state')
    parser.add_argument('--model', '-m', type=str, help='Model to use (e.g., gpt-4o-mini, gemini-1.5-flash)')
    parser.add_argument('--offline', action='store_true', help='Never call the completion service')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    record = subparsers.add_parser('record', help='Record a reminder interaction')
    record.add_argument('task_id', help='Task identifier')
    record.add_argument('action', help='skip, complete, snooze or any other label')
    record.add_argument('--timestamp', help='ISO-8601 time of the interaction')
    record.add_argument('--description', help='Task description passed to the model')
    record.add_argument('--interval', type=float, help='Current reminder interval in minutes')
    record.add_argument('--baseline-step', help='Preferred first step for the heuristic suggestion')
    record.add_argument('--force-fallback', action='store_true', help='Use the heuristic suggestion path')

    suggestion = subparsers.add_parser('suggestion', help='Show the last suggestion for a task')
    suggestion.add_argument('task_id', help='Task identifier')

    reset = subparsers.add_parser('reset', help='Forget a task and its last suggestion')
    reset.add_argument('task_id', help='Task identifier')

    brain_dump = subparsers.add_parser('brain-dump', help='Organize brain dump items')
    brain_dump.add_argument('items', nargs='*', help='Items to organize (reads lines from stdin if omitted)')
    brain_dump.add_argument('--force-fallback', action='store_true', help='Use the keyword categorizer')

    subparsers.add_parser('state', help='Print the stored state')

    set_key = subparsers.add_parser('set-key', help='Store the completion service API key (empty clears it)')
    set_key.add_argument('key', nargs='?', default='', help='API key')

    return parser.parse_args(argv)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


async def main(args, api: AdhdoneAI) -> int:
    if args.command == 'record':
        context = {}
        if args.description:
            context['description'] = args.description
        if args.interval is not None:
            context['reminder_interval_minutes'] = args.interval
        if args.baseline_step:
            context['baseline_step'] = args.baseline_step

        suggestion = await api.record_reminder_interaction(
            args.task_id,
            args.action,
            timestamp=args.timestamp,
            context=context,
            force_fallback=args.force_fallback,
        )
        _print_json(suggestion.to_dict() if suggestion else None)

    elif args.command == 'suggestion':
        suggestion = api.get_last_suggestion(args.task_id)
        _print_json(suggestion.to_dict() if suggestion else None)

    elif args.command == 'reset':
        api.reset_task_history(args.task_id)
        print(f"Reset task {args.task_id}")

    elif args.command == 'brain-dump':
        items = args.items or [line.rstrip('\n') for line in sys.stdin]
        result = await api.organize_brain_dump(items, force_fallback=args.force_fallback)
        _print_json(result.to_dict())

    elif args.command == 'state':
        _print_json(api.get_state().to_dict())

    elif args.command == 'set-key':
        api.set_api_key(args.key)
        print("API key stored" if args.key else "API key cleared")

    return 0


def cli(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    settings = load_settings(
        dotenv=False,
        db_path=args.db_path,
        model=args.model,
        offline=True if args.offline else None,
    )
    api = AdhdoneAI(settings)

    try:
        return asyncio.run(main(args, api))
    except InvalidArgument as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExiting...")
        return 130


if __name__ == '__main__':
    sys.exit(cli())
