"""
Main entry point invoked by the cluster resource manager.
"""

import sys
import logging
import argparse
from typing import List, Optional

from .agent import ResourceAgent
from .config import AgentConfig, ConfigurationError, StatusCode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="mdsha",
        description="Resource agent for a replicated metadata server (master/shadow)",
        usage="%(prog)s {" + "|".join(ResourceAgent.ACTIONS) + "}",
    )
    parser.add_argument(
        "action",
        nargs="*",
        help="Lifecycle action to run",
    )
    return parser


def configure_logging(level: str = "INFO"):
    """Log to stderr, which the cluster manager records."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s mdsha[%(process)d] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None, environ=None) -> int:
    """Main entry point. Returns the OCF status code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.action) != 1:
        parser.print_usage(sys.stderr)
        return StatusCode.ERR_ARGS

    action = args.action[0]
    if action in ("usage", "help"):
        parser.print_help()
        return StatusCode.SUCCESS

    try:
        config = AgentConfig.from_environ(environ)
    except (ConfigurationError, OSError) as e:
        configure_logging()
        logger.error("Configuration error: %s", e)
        return StatusCode.ERR_CONFIGURED

    configure_logging(config.log_level)

    try:
        return ResourceAgent(config).run(action)
    except Exception:
        logger.exception("Action %s failed", action)
        return StatusCode.ERR_GENERIC


if __name__ == "__main__":
    sys.exit(int(main()))
