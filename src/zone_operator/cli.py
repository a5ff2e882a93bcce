"""
Command-line entry points.

    zone-operator run [--once]           start the controller loop
    zone-operator reconcile NS/NAME      single reconciliation pass
    zone-operator classify DOMAIN        show root-domain classification
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from .config import DEFAULT_CONFIG_PATH, ConfigError, OperatorConfig, load_config
from .controller import ZoneController
from .domains import classify
from .errors import ZoneOperatorError
from .logging_setup import setup_logging
from .reconciler import ZoneReconciler
from .route53 import Route53Provider, build_route53_client
from .store import KubeResourceStore

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="zone-operator",
        description="Reconcile DNSZone resources into Route 53 hosted zones.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--config",
            "-c",
            default=DEFAULT_CONFIG_PATH,
            help="Path to YAML config file (default: config/config.yaml)",
        )
        p.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable verbose (debug) logging",
        )

    run = sub.add_parser("run", help="Run the controller loop")
    add_common(run)
    run.add_argument(
        "--once",
        action="store_true",
        help="Reconcile every resource once and exit",
    )

    rec = sub.add_parser("reconcile", help="Reconcile a single resource")
    add_common(rec)
    rec.add_argument("key", help="Resource key: <namespace>/<name>")

    cls = sub.add_parser("classify", help="Show whether a domain is a root domain")
    cls.add_argument("domain", help="Domain name, e.g. app.example.com")

    return parser.parse_args(argv)


def _build(cfg: OperatorConfig) -> tuple[KubeResourceStore, ZoneReconciler]:
    kube = cfg.kubernetes
    store = KubeResourceStore(
        kube.api_url,
        token=kube.token,
        group=kube.group,
        version=kube.version,
        plural=kube.plural,
        namespace=kube.namespace,
        ca_file=kube.ca_file,
    )
    client = build_route53_client(cfg.aws.region, cfg.aws.profile, cfg.aws.max_attempts)
    provider = Route53Provider(client, vpc_id=cfg.aws.vpc_id, vpc_region=cfg.aws.vpc_region)
    reconciler = ZoneReconciler(
        store, provider, pass_timeout=cfg.controller.pass_timeout_seconds
    )
    return store, reconciler


def _cmd_classify(args: argparse.Namespace) -> int:
    result = classify(args.domain)
    kind = "root domain" if result.is_root else "subdomain"
    print(f"{args.domain}: {kind} (root: {result.root})")
    return 0


def _cmd_reconcile(args: argparse.Namespace, cfg: OperatorConfig) -> int:
    _, reconciler = _build(cfg)
    try:
        result = reconciler.reconcile(args.key)
        # A fresh resource only gets its finalizer on the first pass.
        if result.requeue:
            result = reconciler.reconcile(args.key)
    except ZoneOperatorError as exc:
        logger.error("Reconcile %s failed: %s", args.key, exc)
        return 1
    print(f"{args.key}: {result.state}")
    return 0


def _cmd_run(args: argparse.Namespace, cfg: OperatorConfig) -> int:
    store, reconciler = _build(cfg)
    controller = ZoneController(
        store,
        reconciler,
        resync_seconds=cfg.controller.resync_seconds,
        max_backoff_seconds=cfg.controller.max_backoff_seconds,
        pass_timeout_seconds=cfg.controller.pass_timeout_seconds,
    )

    if args.once:
        outcomes = controller.run_once()
        for key, outcome in sorted(outcomes.items()):
            print(f"  {key}: {outcome}")
        return 1 if any(o.startswith("error") for o in outcomes.values()) else 0

    stop = threading.Event()

    def _handle_signal(signum, _frame):
        logger.warning("Received signal %s — shutting down", signum)
        stop.set()
        controller.stop_current()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    controller.run_forever(stop)
    return 0


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    if args.command == "classify":
        sys.exit(_cmd_classify(args))

    log_path = setup_logging(verbose=args.verbose, log_prefix=args.command)
    logger.debug("Logging to %s", log_path)

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    if args.command == "reconcile":
        sys.exit(_cmd_reconcile(args, cfg))
    sys.exit(_cmd_run(args, cfg))
