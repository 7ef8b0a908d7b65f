"""Latency probe CLI (package entrypoint).

Wires argument parsing, configuration resolution and logging setup to the
application bootstrap, then hands control to the interactive or scripted
runner. Performs no measurement logic directly.

Exit codes: 0 success, 1 initialization or trial failure, 2 invalid settings.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from ...base.errors import ConfigurationError, InitializationError
from ...base.logging import configure_logger, get_logger, log_event
from ...base.timeouts import get_timeout_config
from ...config import resolve_settings
from ..app import ProbeApp
from .cli_parser import build_parser, settings_overrides
from .cli_shell import ConsoleObserver, run_interactive, run_series


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code.
    """
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    try:
        settings = resolve_settings(settings_overrides(args))
    except ConfigurationError as exc:
        print(f"flag-latency: {exc.message}", file=sys.stderr)
        return 2

    configure_logger(level=settings.log_level, file_path=args.log_file, json_mode=args.json_logs)
    logger = get_logger("flag_latency.cli")
    observer = ConsoleObserver(prompt=args.runs is None)
    app = ProbeApp(
        settings,
        observer=observer,
        settle_delay_seconds=args.settle_delay,
        max_wait_seconds=args.max_wait,
    )
    try:
        try:
            coordinator = app.start()
        except InitializationError as exc:
            log_event(logger, "app.init_failed", None, level=logging.ERROR, message=f"Error initializing app: {exc}")
            log_event(logger, "app.exit", None, message="Exiting app...")
            return 1
        if args.runs is not None:
            cfg = get_timeout_config()
            settle = args.settle_delay or cfg.settle_delay_seconds
            max_wait = args.max_wait or cfg.max_wait_seconds
            # http + wait + settle bounds one trial; one extra second of slack
            trial_timeout = cfg.http_timeout_seconds + max_wait + settle + 1.0
            return run_series(coordinator, observer, args.runs, trial_timeout=trial_timeout)
        return run_interactive(coordinator, observer)
    except KeyboardInterrupt:
        log_event(logger, "app.exit", None, message="Exiting app...")
        return 0
    finally:
        app.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
