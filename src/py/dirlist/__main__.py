import argparse
import os
import sys
from typing import Any

from extra.server import run
from extra.utils.logging import LogOrigin, error, info, setLevel

from . import config
from .app import build
from .errors import DirlistError


def parser() -> argparse.ArgumentParser:
	res = argparse.ArgumentParser(
		prog="dirlist",
		description="Serves a local directory over HTTP, rendering directories as listings.",
	)
	res.add_argument("basepath", nargs="?", help="The base directory to serve")
	res.add_argument(
		"-l",
		"--listen",
		dest="address",
		metavar="HOST:PORT",
		help="The socket address to bind to",
	)
	res.add_argument(
		"-c",
		"--config",
		default=os.getenv("DIRLIST_CONFIG"),
		help="A TOML configuration file, merged over the defaults",
	)
	res.add_argument(
		"-t", "--default-type", dest="default_type", help="The default listing type"
	)
	dotfiles = res.add_mutually_exclusive_group()
	dotfiles.add_argument(
		"--hide-dotfile", dest="hide_dotfile", action="store_true", default=None
	)
	dotfiles.add_argument("--show-dotfile", dest="hide_dotfile", action="store_false")
	return res


def main(args: list[str] | None = None) -> int:
	LogOrigin.set("dirlist")
	options = parser().parse_args(args)
	overrides: dict[str, Any] = {
		k: getattr(options, k)
		for k in ("basepath", "address", "default_type", "hide_dotfile")
	}
	try:
		setLevel(config.logLevel(config.LOG_LEVEL))
		cfg = config.load(options.config, overrides)
		app = build(cfg)
	except DirlistError as e:
		error(str(e), e.__class__.__name__)
		return 1
	info("Serving directory", Path=str(cfg.basepath), Address=cfg.address)
	try:
		run(app, host=cfg.host, port=cfg.port, logRequests=config.LOG_REQUESTS)
	except OSError as e:
		error(f"Could not listen on {cfg.address}: {e.strerror}", "HOSTPORTERR")
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
