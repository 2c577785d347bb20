# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/criboot/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from criboot.bootstrap.orchestrator import ensure_cri_proxy
from criboot.config.loader import load_config
from criboot.errors import BootstrapError
from criboot.kubelet.config_file import load_kubelet_config
from criboot.logging.log import init_logging
from criboot.observers.dispatcher import EventBus
from criboot.observers.jsonfile import JsonFileObserver
from criboot.observers.logger import LoggerObserver


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="CRI proxy node bootstrap")


@app.command()
def ensure(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Bootstrap config YAML"),
    configz_url: Optional[str] = typer.Option(None, "--configz-url", help="Kubelet base URL serving /configz"),
    stats_url: Optional[str] = typer.Option(None, "--stats-url", help="Kubelet base URL serving /stats/summary"),
    saved_config: Optional[str] = typer.Option(None, "--saved-config", help="Where to save the original kubelet config"),
    proxy_path: Optional[str] = typer.Option(None, "--proxy-path", help="Host path of the criproxy binary"),
    socket: Optional[str] = typer.Option(None, "--socket", help="Socket criproxy listens on"),
    proxy_arg: Optional[List[str]] = typer.Option(None, "--proxy-arg", help="Argument passed to criproxy (repeatable)"),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Use this kubeconfig instead of in-cluster credentials"),
    events: Optional[Path] = typer.Option(None, "--events", help="Append lifecycle events as JSON lines to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug output on the console"),
):
    """
    Point the kubelet at criproxy and make sure the proxy container is running.
    """
    logger, run_id, _ = init_logging(verbose=verbose)

    overrides = {
        "configz_base_url": configz_url,
        "stats_base_url": stats_url,
        "saved_config_path": saved_config,
        "proxy_path": proxy_path,
        "proxy_socket_path": socket,
        "proxy_args": proxy_arg or None,
        "kubeconfig": kubeconfig,
    }
    try:
        cfg = load_config(config, overrides=overrides)
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        typer.secho(f"invalid bootstrap config: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    bus = EventBus(observers=[LoggerObserver(logger)])
    event_log = JsonFileObserver(events) if events else None
    if event_log is not None:
        bus.subscribe(event_log)

    try:
        patched = ensure_cri_proxy(cfg, bus=bus, run_id=run_id)
    except BootstrapError as exc:
        typer.secho(
            f"bootstrap failed at stage {exc.stage or '-'}: {exc}"
            + (" (kubelet config already saved and patched)" if exc.config_patched else ""),
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    finally:
        if event_log is not None:
            event_log.close()

    if patched:
        typer.echo("kubelet patched, criproxy is running")
    else:
        typer.echo("kubelet already configured for criproxy, nothing to do")


@app.command("show-kubelet-config")
def show_kubelet_config(path: Path = typer.Argument(..., help="Kubelet config JSON file")):
    """
    Print the runtime settings of a saved kubelet configuration.
    """
    try:
        kcfg = load_kubelet_config(path)
    except (OSError, BootstrapError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    for field_name in (
        "container_runtime",
        "enable_cri",
        "remote_runtime_endpoint",
        "remote_image_endpoint",
        "docker_endpoint",
    ):
        typer.echo(f"{field_name}: {getattr(kcfg, field_name)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
