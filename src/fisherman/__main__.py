"""Command-line entry point for Fisherman.

Usage:
    python -m fisherman check URL [URL ...] [--domains FILE] [--json]
    python -m fisherman content FACTS.json [--json]
    python -m fisherman init-config OUTPUT.yaml [--domains FILE] [--log-file FILE]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fisherman import __version__
from fisherman.core.config import FishermanConfig
from fisherman.core.errors import InvalidDomainListError
from fisherman.core.service import PhishingDetector, is_scannable_url

logger = logging.getLogger("fisherman")


def _setup_logging(level: str, log_file: str = "") -> None:
    """Configure logging with a console and optional rotating file handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated main() calls in one process replace, not stack, handlers
    for handler in [h for h in root_logger.handlers if getattr(h, "_fisherman", False)]:
        root_logger.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    console._fisherman = True
    root_logger.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        # 10 MB, keep 5
        file_handler = RotatingFileHandler(
            path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        file_handler._fisherman = True
        root_logger.addHandler(file_handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fisherman",
        description="Explainable phishing risk scoring for URLs and pages.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--log-level", help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Score one or more URLs")
    check.add_argument("urls", nargs="+")
    check.add_argument("--domains", type=Path, help="Known phishing domain list file")
    check.add_argument("--json", action="store_true", help="Emit JSON")

    content = sub.add_parser("content", help="Score extracted page facts (JSON)")
    content.add_argument("facts", type=Path)
    content.add_argument("--json", action="store_true", help="Emit JSON")

    init = sub.add_parser("init-config", help="Write a YAML configuration file")
    init.add_argument("output", type=Path)
    init.add_argument("--domains", type=Path, help="Known phishing domain list file")
    init.add_argument("--log-file", help="Rotating log file path")
    return parser


def _run_check(detector: PhishingDetector, args: argparse.Namespace) -> int:
    if args.domains:
        try:
            count = detector.update_known_domains(
                args.domains.read_text(encoding="utf-8", errors="replace"),
                source=str(args.domains),
            )
        except (OSError, InvalidDomainListError) as exc:
            print(f"error: cannot load {args.domains}: {exc}", file=sys.stderr)
            return 2
        logger.info("Loaded %s domains from %s", count, args.domains)

    worst = 0
    reports = []
    for url in args.urls:
        if not is_scannable_url(url):
            logger.warning("Skipping non-web URL: %s", url)
            continue
        result = detector.score_url(url)
        worst = max(worst, result.risk_level)
        reports.append({"url": url, **result.to_dict()})

    if args.json:
        print(json.dumps(reports, indent=2))
    else:
        for report in reports:
            verdict = (
                "PHISHING" if report["is_phishing"]
                else "SUSPICIOUS" if report["is_suspicious"]
                else "OK"
            )
            print(f"{verdict:<10} risk={report['risk_level']:<2} {report['url']}")
            for warning in report["warnings"]:
                print(f"           - {warning}")
            if "error" in report:
                print(f"           ! {report['error']}")
    return 1 if worst >= 4 else 0


def _run_content(detector: PhishingDetector, args: argparse.Namespace) -> int:
    try:
        facts = json.loads(args.facts.read_text(encoding="utf-8"))
        analysis = detector.analyze_content(facts)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        print(f"error: cannot analyse {args.facts}: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2))
    else:
        level = (
            "HIGH" if analysis.is_high_risk
            else "MEDIUM" if analysis.is_medium_risk
            else "LOW"
        )
        print(f"{level} risk score={analysis.risk_score} {analysis.url}")
        for name, points in analysis.breakdown.items():
            if points:
                print(f"  {name:<15} +{points}")
    return 1 if analysis.is_high_risk else 0


def _run_init_config(config: FishermanConfig, args: argparse.Namespace) -> int:
    if args.domains:
        config.set("database.domain_list_path", str(args.domains.expanduser().resolve()))
    if args.log_file:
        config.set("logging.file", args.log_file)
    try:
        config.save(args.output)
    except OSError as exc:
        print(f"error: cannot write {args.output}: {exc}", file=sys.stderr)
        return 2
    print(f"Wrote configuration to {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the Fisherman CLI."""
    args = _build_parser().parse_args(argv)

    config = FishermanConfig.load(args.config) if args.config else FishermanConfig()
    _setup_logging(
        args.log_level or config.get("logging.level", "INFO"),
        config.get("logging.file", ""),
    )
    logger.debug("Fisherman v%s", __version__)

    if args.command == "init-config":
        return _run_init_config(config, args)

    detector = PhishingDetector.from_config(config)
    if args.command == "check":
        return _run_check(detector, args)
    return _run_content(detector, args)


if __name__ == "__main__":
    sys.exit(main())
