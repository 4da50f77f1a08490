# service/cli.py
"""
Command-line entrypoints.

Subcommands
-----------
serve
    - Starts the periodic refresh via service.scheduler.start()
    - Registers signal handlers for graceful shutdown

run [--kwargs k=v ...] [--json]
    - Runs one aggregation cycle in the foreground
    - Prints a per-source summary (or the whole generation as JSON)

list-sources
    - Prints the configured sources with their effective settings

validate-config
    - Loads/validates the service config and the aggregator settings;
      returns nonzero on error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Iterable
from types import SimpleNamespace
from typing import Any

from modules.entry_jobs import main as _entry_jobs
from modules.entry_jobs.lib.config import ConfigError as SettingsError
from modules.entry_jobs.lib.config import Settings
from modules.entry_jobs.lib.models import ScrapeCycleResult
from service import config_schema as _config_schema
from service import logging_utils as L
from service import scheduler as _scheduler

LOG = logging.getLogger("service.cli")


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_kv_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """
    Parse key=value strings into a dict. JSON-looking values
    (true/false/null/number/object/array) are decoded; the rest stay strings.
    """
    out: dict[str, Any] = {}
    for raw in pairs:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"--kwargs item must be key=value (got {raw!r})")
        k, v = raw.split("=", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            raise argparse.ArgumentTypeError(f"Invalid key in --kwargs item {raw!r}")
        try:
            out[k] = json.loads(v)
        except json.JSONDecodeError:
            out[k] = v
    return out


def _print_table(rows: Iterable[tuple[str, str]], headers: tuple[str, str] = ("ID", "DETAILS")) -> None:
    """Very simple two-column table printer."""
    rows = list(rows)
    w0 = max(len(headers[0]), *(len(r[0]) for r in rows)) if rows else len(headers[0])
    w1 = max(len(headers[1]), *(len(r[1]) for r in rows)) if rows else len(headers[1])
    sep = f"+-{'-' * w0}-+-{'-' * w1}-+"
    print(sep)
    print(f"| {headers[0].ljust(w0)} | {headers[1].ljust(w1)} |")
    print(sep)
    for c0, c1 in rows:
        print(f"| {c0.ljust(w0)} | {c1.ljust(w1)} |")
    print(sep)


def _summary_rows(generation: ScrapeCycleResult) -> list[tuple[str, str]]:
    rows = []
    for label, st in sorted(generation.stats.items()):
        if not st.attempted:
            detail = "skipped"
        elif st.succeeded:
            detail = f"ok, {st.jobs_found} job(s)"
            if st.last_error:
                detail += f" (warning: {st.last_error})"
        else:
            detail = f"FAILED: {st.last_error}"
        rows.append((label, detail))
    return rows


def _aggregator_kwargs(cfg: dict[str, Any], extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {**dict(cfg.get("aggregator") or {}), **(extra or {})}


# ------------------------------ Subcommands ----------------------------------
def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        cfg = _config_schema.load_config(args.config)
        _config_schema.validate(cfg)
        settings = Settings.from_env_and_kwargs(_aggregator_kwargs(cfg))
        print(f"OK: configuration is valid ({len(settings.enabled_sources())} enabled source(s)).")
        return 0
    except KeyboardInterrupt:
        return 130
    except (_config_schema.ConfigError, SettingsError) as e:
        LOG.debug("Configuration validation failed", exc_info=True)
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1


def cmd_list_sources(args: argparse.Namespace) -> int:
    try:
        cfg = _config_schema.load_config(args.config)
        settings = Settings.from_env_and_kwargs(_aggregator_kwargs(cfg))
    except KeyboardInterrupt:
        return 130
    except (_config_schema.ConfigError, SettingsError) as e:
        print(f"ERROR: failed to list sources: {e}", file=sys.stderr)
        return 1

    rows = []
    for sc in settings.selected_sources():
        state = "enabled" if sc.enabled else "disabled"
        rows.append((
            sc.label,
            f"{state}; kind={sc.kind}; query={sc.search_query!r}; pages={sc.max_pages}; "
            f"delay={sc.request_delay_ms}ms; retries={sc.max_retries}",
        ))
    if not rows:
        print("No sources configured.")
        return 0
    _print_table(rows, headers=("SOURCE", "DETAILS"))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    start_time = time.monotonic()
    try:
        cfg = _config_schema.load_config(args.config)
        kwargs = _aggregator_kwargs(cfg, _parse_kv_pairs(args.kwargs or []))
    except (_config_schema.ConfigError, argparse.ArgumentTypeError) as e:
        print(f"FAILURE: {e}", file=sys.stderr)
        return 1
    LOG.debug("Run aggregator with kwargs=%s", kwargs)

    try:
        generation = _entry_jobs.run(**kwargs)
    except KeyboardInterrupt:
        return 130
    except SettingsError as e:
        print(f"FAILURE: {e}", file=sys.stderr)
        return 1

    duration_ms = int((time.monotonic() - start_time) * 1000)
    L.write_activity_log({
        "component": "service.cli",
        "op": "cli_run",
        "records": len(generation.records),
        "failed_sources": generation.failed_sources(),
        "duration_ms": duration_ms,
    })

    if args.json:
        print(json.dumps(generation.to_dict(), ensure_ascii=False, indent=2))
        return 0

    _print_table(_summary_rows(generation), headers=("SOURCE", "RESULT"))
    print(
        f"DONE: {len(generation.records)} listing(s) published; "
        f"{generation.duplicates_dropped} duplicate(s), {generation.stale_dropped} stale dropped "
        f"in {duration_ms} ms."
    )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """
    Run the refresh scheduler until a termination signal is received.
    """
    L.write_activity_log({"component": "service.cli", "op": "serve_start"})

    stop_event = threading.Event()
    running = SimpleNamespace(controller=None)

    def _graceful_shutdown(signum=None, frame=None):
        LOG.info("Signal %s received; initiating shutdown...", signum)
        stop_event.set()
        _safe_stop("scheduler", running.controller)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _graceful_shutdown)

    try:
        running.controller = _scheduler.start(config_path=args.config)
        LOG.info("Refresh scheduler started; next run at %s", running.controller.next_run_time())

        while not stop_event.is_set():
            time.sleep(0.3)

        _safe_stop("scheduler", running.controller)
        L.write_activity_log({"component": "service.cli", "op": "serve_stop"})
        return 0

    except KeyboardInterrupt:
        _graceful_shutdown("KeyboardInterrupt")
        return 130
    except (_config_schema.ConfigError, SettingsError) as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        LOG.exception("Fatal error in serve: %s", e)
        _graceful_shutdown("UnhandledException")
        return 1


def _safe_stop(name: str, handle: Any) -> None:
    """Best-effort stop + join."""
    if handle is None:
        return
    try:
        handle.stop()
        handle.join(timeout=10.0)
    except Exception:  # pragma: no cover
        LOG.exception("Error stopping %s", name)


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="entry-jobs",
        description="Entry-level job aggregator",
    )
    p.add_argument(
        "--config",
        help="Path to config file (fallbacks to CONFIG_PATH env or built-in default).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("serve", help="Run the periodic refresh loop.")
    sp.set_defaults(func=cmd_serve)

    sp = sub.add_parser("run", help="Run one aggregation cycle and print a summary.")
    sp.add_argument(
        "--kwargs",
        metavar="k=v",
        nargs="*",
        help="Aggregator settings overriding the config file (JSON values supported).",
    )
    sp.add_argument("--json", action="store_true", help="Print the published generation as JSON.")
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("list-sources", help="Print configured sources.")
    sp.set_defaults(func=cmd_list_sources)

    sp = sub.add_parser("validate-config", help="Verify configuration correctness.")
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
