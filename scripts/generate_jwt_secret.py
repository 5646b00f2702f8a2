#!/usr/bin/env python3
"""Generate a signing key for ChatLink access tokens and store it in an env file."""

from __future__ import annotations

import argparse
import os
import secrets
import sys
from pathlib import Path

DEFAULT_BYTE_LENGTH = 64
MIN_BYTE_LENGTH = 32
ENV_VAR_NAME = "JWT_SECRET_KEY"


def generate_secret(byte_length: int) -> str:
    """Return a URL-safe key built from ``byte_length`` random bytes."""
    if byte_length < MIN_BYTE_LENGTH:
        msg = f"HS256 keys need at least {MIN_BYTE_LENGTH} bytes (got {byte_length})"
        raise ValueError(msg)
    return secrets.token_urlsafe(byte_length)


def write_secret(path: Path, secret: str, *, overwrite: bool) -> bool:
    """Set ``JWT_SECRET_KEY`` in ``path``. Returns False if a key was kept."""
    lines = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    prefix = f"{ENV_VAR_NAME}="
    existing = next((index for index, line in enumerate(lines) if line.startswith(prefix)), None)

    if existing is None:
        lines.append(prefix + secret)
    elif overwrite:
        lines[existing] = prefix + secret
    else:
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--bytes",
        type=int,
        default=DEFAULT_BYTE_LENGTH,
        help=f"Random bytes per key (minimum {MIN_BYTE_LENGTH}).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        metavar="PATH",
        help="Env file to write the key into, e.g. the project's .env.",
    )
    parser.add_argument(
        "--rotate",
        action="store_true",
        help="Replace an existing key. Issued tokens stop validating.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        secret = generate_secret(args.bytes)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.env_file is None:
        print(secret)
        return 0

    if write_secret(args.env_file, secret, overwrite=args.rotate):
        print(f"Wrote {ENV_VAR_NAME} to {args.env_file}.", file=sys.stderr)
        return 0
    print(
        f"{args.env_file} already defines {ENV_VAR_NAME}; pass --rotate to replace it.",
        file=sys.stderr,
    )
    return 1


if __name__ == "__main__":
    sys.exit(main())
