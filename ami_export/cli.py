"""
Command-line entry point for ami-export.

Exit codes: 0 success, 1 configuration/session/submission/remote failure,
2 status checks exhausted, 130 cancelled or timed out.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Optional, Sequence

from .args_parser import build_raw_config, parse_args
from .artifact import ExportArtifact
from .exceptions import (
    ExportCancelledError,
    ExportError,
    PollExhaustedError,
    ValidationErrors,
)
from .monitoring import CancelContext
from .orchestrator import ExportOrchestrator
from .secret_filter import SecretFilter
from .session import SessionProvider
from .validation import validate_settings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_POLL_EXHAUSTED = 2
EXIT_CANCELLED = 130


def _print_validation_errors(errors: ValidationErrors) -> None:
    print(f"❌ Invalid export configuration ({len(errors)} problem(s)):")
    for error in errors:
        print(f"   - {error}")


def _build_context(timeout: Optional[float]) -> CancelContext:
    return CancelContext.with_timeout(timeout) if timeout is not None else CancelContext()


def _install_interrupt_handler():
    """
    Turn Ctrl+C into KeyboardInterrupt; returns the previous SIGINT handler.

    The handler only raises; the orchestrator turns the interrupt into
    cancellation of the context.
    """

    def _signal_handler(_signum, _frame):
        raise KeyboardInterrupt

    return signal.signal(signal.SIGINT, _signal_handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the ami-export CLI."""
    args = parse_args(argv if argv is not None else sys.argv[1:])
    secret_filter = SecretFilter()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(secret_filter)

    try:
        settings = validate_settings(build_raw_config(args))
    except ValidationErrors as errors:
        _print_validation_errors(errors)
        return EXIT_FAILED

    secret_filter.add(*settings.access.secrets())
    orchestrator = ExportOrchestrator(
        SessionProvider(settings.access, env_path=args.env_file, polling=settings.polling),
        secret_filter=secret_filter,
        polling=settings.polling,
    )

    context = _build_context(args.timeout)
    previous_handler = _install_interrupt_handler()
    try:
        result = orchestrator.export(settings.request, context)
    except ExportCancelledError as e:
        print(f"⚠️  {e}")
        return EXIT_CANCELLED
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted before the export task was submitted")
        return EXIT_CANCELLED
    except PollExhaustedError as e:
        print(f"❌ {e}")
        return EXIT_POLL_EXHAUSTED
    except ExportError as e:
        print(f"❌ {e}")
        return EXIT_FAILED
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(f"✅ {ExportArtifact.from_result(result)}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
