#!/usr/bin/env python3
from __future__ import annotations

import argparse
import signal
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from dotenv import load_dotenv

from pipelinelens.config import Config, ConfigError, resolve_config
from pipelinelens.dashboard.loader import load_classified_runs
from pipelinelens.engine.module import format_pipeline_module_label
from pipelinelens.engine.phase import phase_label
from pipelinelens.engine.polling import PollingController, ThreadScheduler, executor_fetcher
from pipelinelens.engine.progress import resolve_effective_progress
from pipelinelens.engine.timeline import format_step_items, format_step_name
from pipelinelens.engine.view import RunView, build_run_view
from pipelinelens.runstore.client import BackendClient, BackendError
from pipelinelens.runstore.models import PipelineRun, ProgressSnapshot
from pipelinelens.runstore.status import format_status_label, is_active_status
from pipelinelens.util.logging import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(prog="lensctl", add_help=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--config", default="")
    parser.add_argument("--url", default="")
    subparsers = parser.add_subparsers(dest="command")

    parser_runs = subparsers.add_parser("runs")
    parser_runs.add_argument("project_id")

    parser_show = subparsers.add_parser("show")
    parser_show.add_argument("project_id")
    parser_show.add_argument("run_id")
    parser_show.add_argument("--focus", type=int, default=None)

    parser_watch = subparsers.add_parser("watch")
    parser_watch.add_argument("project_id")
    parser_watch.add_argument("run_id")

    args, _ = parser.parse_known_args()

    if args.help or not args.command:
        usage()
        sys.exit(2 if not args.command else 0)

    load_dotenv(".env.local")
    load_dotenv(".env")
    try:
        cfg = resolve_config(args.config)
    except ConfigError as err:
        die(str(err))
        return
    if args.url.strip():
        cfg.api_base_url = args.url.strip()
    setup_logging(cfg.log_level)

    client = BackendClient(cfg.api_base_url, cfg.auth_token, cfg.request_timeout_s)
    try:
        if args.command == "runs":
            cmd_runs(client, cfg, args.project_id)
            return
        if args.command == "show":
            cmd_show(client, args.project_id, args.run_id, args.focus)
            return
        if args.command == "watch":
            cmd_watch(client, cfg, args.project_id, args.run_id)
            return
    except BackendError as err:
        die(str(err))
    finally:
        client.close()
    print(f"unknown command: {args.command}")
    usage()
    sys.exit(2)


def usage() -> None:
    print(
        """lensctl - inspect pipeline runs from the terminal

Usage:
  lensctl runs <project_id> [--url <base>]
  lensctl show <project_id> <run_id> [--focus <step_number>] [--url <base>]
  lensctl watch <project_id> <run_id> [--url <base>]

Environment:
  PIPELINE_LENS_API_URL           Backend base URL (default http://127.0.0.1:8000/api/v1)
  PIPELINE_LENS_AUTH_TOKEN        Bearer token for the backend (optional)
  PIPELINE_LENS_POLL_INTERVAL_MS  Refresh interval for watch (default 5000)
"""
    )


def cmd_runs(client: BackendClient, cfg: Config, project_id: str) -> None:
    listing = load_classified_runs(client, project_id, cfg.run_list_limit)
    if listing.unauthorized:
        die("unauthorized")
    if listing.error_status is not None:
        die(f"failed to load runs: http {listing.error_status}")
    for entry in listing.runs:
        run = entry.run
        module = format_pipeline_module_label(run.pipeline_module)
        print(f"{run.id}  {format_status_label(run.status).ljust(12)}  {phase_label(entry.phase).ljust(10)}  {module}")


def cmd_show(client: BackendClient, project_id: str, run_id: str, focus: Optional[int]) -> None:
    run = _load_run(client, project_id, run_id)
    live: Optional[ProgressSnapshot] = None
    if is_active_status(run.status):
        result = client.get_progress(project_id, run_id)
        if result.unauthorized:
            die("unauthorized")
        live = result.data if result.ok else None
    if focus is not None and all(step.step_number != focus for step in resolve_effective_progress(run, live).steps):
        die(f"step {focus} was not found in run {run_id}")
    print_view(build_run_view(run, live, focus))


def cmd_watch(client: BackendClient, cfg: Config, project_id: str, run_id: str) -> None:
    run = _load_run(client, project_id, run_id)
    print_view(build_run_view(run))
    if not is_active_status(run.status):
        return

    done = threading.Event()

    def load_progress(target_run_id: str) -> Optional[ProgressSnapshot]:
        result = client.get_progress(project_id, target_run_id)
        if result.unauthorized:
            raise BackendError("unauthorized")
        return result.data if result.ok else None

    def on_update(snapshot: ProgressSnapshot) -> None:
        print_view(build_run_view(run, snapshot))
        if not is_active_status(snapshot.status):
            done.set()

    previous = signal.signal(signal.SIGINT, lambda *_: done.set())
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="lensctl-poll") as executor:
        controller = PollingController(
            run.id,
            run.status,
            executor_fetcher(executor, load_progress),
            ThreadScheduler(),
            cfg.poll_interval_ms,
            on_update,
        )
        controller.sync()
        try:
            done.wait()
        finally:
            controller.close()
            signal.signal(signal.SIGINT, previous)


def _load_run(client: BackendClient, project_id: str, run_id: str) -> PipelineRun:
    result = client.get_run(project_id, run_id)
    if result.unauthorized:
        die("unauthorized")
    if not result.ok or result.data is None:
        die(f"run not found: {run_id} (http {result.status})")
    return result.data


def print_view(view: RunView) -> None:
    live = " live" if view.is_live else ""
    print(f"run {view.run_id}  {format_status_label(view.status)}{live}  {view.overall_progress}%  phase={view.phase}")
    if view.current_step_name:
        print(f"  current: {format_step_name(view.current_step_name)}")
    for group in view.iterations:
        marker = " (active)" if group.is_active else (" (failed)" if group.is_failed else "")
        print(f"  iteration {group.iteration_index + 1}{marker}")
        for step in group.executions:
            focus = "*" if view.highlight is step else " "
            detail = format_step_items(step)
            print(
                f"   {focus} {str(step.step_number).rjust(2)}  {format_step_name(step.step_name).ljust(28)}"
                f"  {format_status_label(step.status).ljust(12)}  {step.progress_percent}%  {detail}"
            )
    summary = view.summary
    print(
        f"  steps: {summary.succeeded} done, {summary.active} running, "
        f"{summary.failed} failed, {summary.other} other"
    )


def die(message: str) -> None:
    print(f"error: {message}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
