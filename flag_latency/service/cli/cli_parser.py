"""CLI parser construction for the ``flag-latency`` command.

Option names mirror the environment-backed settings (``--sdkKey`` etc.);
omitted options stay ``None`` so the configuration layer can fall back to the
environment and ``.env``. No I/O happens here.
"""

from __future__ import annotations

import argparse

ABOUT = (
    "Measure the time it takes a flag change to reach a streaming SDK client.\n"
    "Options fall back to LD_* environment variables and a .env file.\n"
    "In interactive mode type 't' + Enter to run a test, 's' for stats, 'q' to quit."
)

LOG_LEVELS = ("debug", "info", "warn", "error", "none")


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def _positive_float(value: str) -> float:
    f = float(value)
    if f <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return f


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser.

    Returns
    -------
    argparse.ArgumentParser
        Parser whose settings options map onto ``ProbeSettings`` fields via
        their ``dest`` names.
    """
    p = argparse.ArgumentParser(
        prog="flag-latency",
        description=ABOUT,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    settings = p.add_argument_group("settings")
    settings.add_argument("--sdkKey", dest="sdk_key", default=None, help="SDK key for the target environment")
    settings.add_argument("--apiToken", dest="api_token", default=None, help="LaunchDarkly API access token")
    settings.add_argument(
        "--logLevel",
        dest="log_level",
        default=None,
        choices=LOG_LEVELS,
        help="Probe and SDK logging level (default: info)",
    )
    settings.add_argument("--projectKey", dest="project_key", default=None, help="Project key")
    settings.add_argument("--environmentKey", dest="environment_key", default=None, help="Environment key")
    settings.add_argument("--flagKey", dest="flag_key", default=None, help="Boolean flag to toggle")
    settings.add_argument("--context", dest="context", default=None, help="Evaluation context as JSON")
    settings.add_argument("--apiBaseUrl", dest="api_base_url", default=None, help=argparse.SUPPRESS)

    run = p.add_argument_group("run")
    run.add_argument(
        "--runs",
        type=_positive_int,
        default=None,
        help="Run N trials back to back and exit instead of prompting",
    )
    run.add_argument("--settle-delay", type=_positive_float, default=None, help="Seconds to wait after an update")
    run.add_argument("--max-wait", type=_positive_float, default=None, help="Seconds to wait for an update")

    output = p.add_argument_group("output")
    output.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    output.add_argument("--log-file", default=None, help="Also write logs to this file")
    return p


SETTING_DESTS = (
    "sdk_key",
    "api_token",
    "log_level",
    "project_key",
    "environment_key",
    "flag_key",
    "context",
    "api_base_url",
)


def settings_overrides(args: argparse.Namespace) -> dict:
    """Return the settings-related options that were actually given."""
    return {name: getattr(args, name) for name in SETTING_DESTS if getattr(args, name, None) is not None}


__all__ = ["build_parser", "settings_overrides", "LOG_LEVELS", "SETTING_DESTS"]
