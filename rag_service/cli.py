"""
Command line entry point.

    rag-service ingest            # index changed documents
    rag-service reingest          # clear the store and index everything
    rag-service ask "pergunta"    # answer a question (JSON on stdout)
    rag-service check "pergunta"  # run the question guardrails only
    rag-service stats             # vector store statistics
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from config.settings import RAGConfig

from .context import build_context, build_guardrails
from .exceptions import ConfigurationError, RAGServiceError, public_error_payload
from .log_utils import configure_logging

logger = logging.getLogger(__name__)


def _print_json(data: dict) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Grounded question answering over a document corpus')
    parser.add_argument('--env-file', type=str, default=None, help='Path to a .env file')
    parser.add_argument('--data-dir', type=str, default=None, help='Override DATA_DIR')

    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('ingest', help='Ingest new or changed documents')
    sub.add_parser('reingest', help='Clear the vector store and ingest all documents')
    ask = sub.add_parser('ask', help='Answer a question')
    ask.add_argument('question', type=str)
    check = sub.add_parser('check', help='Run the question guardrails only')
    check.add_argument('question', type=str)
    sub.add_parser('stats', help='Show vector store statistics')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = RAGConfig.from_env(args.env_file)
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    if args.data_dir:
        config.data_dir = args.data_dir
    configure_logging(config.log_level)

    if args.command == 'check':
        engine = build_guardrails(config)
        result = engine.check_question(args.question).to_dict()
        result['rules_version'] = engine.rules_version
        _print_json(result)
        return 0

    try:
        context = build_context(config)
        if args.command == 'ingest':
            report = context.ingestion_controller(show_progress=True).ingest_all(config.data_dir)
            _print_json(report.to_dict())
        elif args.command == 'reingest':
            report = context.ingestion_controller(show_progress=True).reingest_all(config.data_dir)
            _print_json(report.to_dict())
        elif args.command == 'ask':
            context.ingestion_controller().ingest_on_startup(config.data_dir)
            outcome = context.orchestrator().ask(args.question)
            _print_json(outcome.to_dict())
            return 2 if outcome.blocked else 0
        elif args.command == 'stats':
            _print_json(context.vector_store.get_statistics())
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    except RAGServiceError:
        logger.exception("Command %s failed", args.command)
        _print_json(public_error_payload())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
