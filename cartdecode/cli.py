from __future__ import annotations

import argparse
import base64
import binascii
import json as _json
import os
import sys
from typing import List, Optional

from cartdecode.config import CartConfig, load_config
from cartdecode.constants import KEY_SIZE
from cartdecode.errors import CartError, ConfigError
from cartdecode.logutil import configure_logging
from cartdecode.reader import ContainerParser, is_cart
from cartdecode.records import read_header


def _resolve_key(
    raw: bytes,
    cfg: CartConfig,
    *,
    key_text: Optional[str] = None,
    key_hex: Optional[str] = None,
    key_b64: Optional[str] = None,
    use_embedded_key: bool = False,
) -> bytes:
    """Pick the decode key: explicit flag, then embedded key, then config/default.

    Args:
        raw: Container bytes (read only when ``use_embedded_key`` is set).
        cfg: Loaded configuration supplying the fallback key.
        key_text: Literal 16-character key from ``--key``.
        key_hex: Hex-encoded key from ``--key-hex``.
        key_b64: Base64-encoded key from ``--key-b64``.
        use_embedded_key: Use the key stored in the container header.
    """
    if key_text is not None:
        key = key_text.encode("utf-8")
    elif key_hex is not None:
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as exc:
            raise ValueError("--key-hex must be hexadecimal") from exc
    elif key_b64 is not None:
        try:
            key = base64.b64decode(key_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("--key-b64 must be base64") from exc
    elif use_embedded_key:
        header = read_header(raw)
        if not header.has_embedded_key:
            raise ValueError("container carries no embedded key; supply one with --key, --key-hex or --key-b64")
        key = header.embedded_key
    else:
        key = cfg.key
    if len(key) != KEY_SIZE:
        raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def _default_output(path: str, name: Optional[str]) -> str:
    """Choose where to write a decoded payload.

    The embedded name is reduced to its basename so a container can never
    steer output outside the input's directory.
    """
    outdir = os.path.dirname(path)
    if isinstance(name, str):
        base = os.path.basename(name.replace("\\", "/"))
        if base not in ("", ".", ".."):
            return os.path.join(outdir, base)
    if path.lower().endswith(".cart") and len(path) > len(".cart"):
        return path[: -len(".cart")]
    return path + ".uncart"


def _read(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def cmd_unpack(
    path: str,
    *,
    output: Optional[str] = None,
    force: bool = False,
    ignore_name: bool = False,
    key_text: Optional[str] = None,
    key_hex: Optional[str] = None,
    key_b64: Optional[str] = None,
    use_embedded_key: bool = False,
    max_output_size: Optional[int] = None,
    cfg: Optional[CartConfig] = None,
) -> str:
    """Decode one container file and write its payload.

    Args:
        path: Container path.
        output: Destination path; derived from the container when None.
        force: Overwrite an existing destination.
        ignore_name: Do not use the ``name`` stored in the optional header.
        max_output_size: Decompressed size limit; None uses the config value,
            0 disables the limit.

    Returns:
        The path written.
    """
    cfg = cfg or load_config()
    raw = _read(path)
    key = _resolve_key(raw, cfg, key_text=key_text, key_hex=key_hex, key_b64=key_b64, use_embedded_key=use_embedded_key)
    if max_output_size is None:
        limit = cfg.max_output_size
    else:
        limit = max_output_size or None
    result = ContainerParser(key, max_output_size=limit).decode(raw)

    if output is None:
        name = None if ignore_name else (result.opt_header or {}).get("name")
        output = _default_output(path, name)
    if os.path.exists(output) and not force:
        raise FileExistsError(f"{output} exists; use --force to overwrite")
    with open(output, "wb") as wf:
        wf.write(result.decoded_payload)
    return output


def cmd_meta(
    path: str,
    *,
    key_text: Optional[str] = None,
    key_hex: Optional[str] = None,
    key_b64: Optional[str] = None,
    use_embedded_key: bool = False,
    cfg: Optional[CartConfig] = None,
) -> None:
    """Print merged optional header/footer metadata as JSON; the payload is not decoded."""
    cfg = cfg or load_config()
    raw = _read(path)
    key = _resolve_key(raw, cfg, key_text=key_text, key_hex=key_hex, key_b64=key_b64, use_embedded_key=use_embedded_key)
    meta = ContainerParser(key).read_metadata(raw)
    print(_json.dumps(meta.merged(), indent=2, sort_keys=True))


def cmd_check(paths: List[str]) -> bool:
    ok = True
    for p in paths:
        try:
            res = is_cart(_read(p))
        except OSError as exc:
            print(f"Warning: cannot read {p}: {exc}", file=sys.stderr)
            res = False
        print(f"{p}\t{'yes' if res else 'no'}")
        ok = ok and res
    return ok


def _add_key_args(ap: argparse.ArgumentParser) -> None:
    grp = ap.add_mutually_exclusive_group()
    grp.add_argument("--key", dest="key_text", help="Literal 16-character key (e.g. 0123456789abcdef)")
    grp.add_argument("--key-hex", help="16-byte key as 32 hex digits")
    grp.add_argument("--key-b64", help="Base64-encoded 16-byte key (same form as rc4_key in cart.cfg)")
    grp.add_argument("--use-embedded-key", action="store_true", help="Use the key stored in the container header")


def main(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(prog="cartdecode", description="Decode CaRT containers")
    ap.add_argument("--debug", action="store_true", help="Log decode stages to stderr")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_unpack = sub.add_parser("unpack", help="Decode a container and write its payload")
    ap_unpack.add_argument("container", help="CaRT file path")
    ap_unpack.add_argument("-o", "--output", help="Output path (default: embedded name or input without .cart)")
    ap_unpack.add_argument("-f", "--force", action="store_true", help="Overwrite an existing output file")
    ap_unpack.add_argument("-i", "--ignore-name", action="store_true", help="Ignore the name stored in the container")
    ap_unpack.add_argument(
        "--max-output-size",
        type=int,
        help="Abort when the decoded payload exceeds this many bytes (0 = no limit; default from config, 1 GiB)",
    )
    _add_key_args(ap_unpack)

    ap_meta = sub.add_parser("meta", help="Show optional header/footer metadata")
    ap_meta.add_argument("container", help="CaRT file path")
    _add_key_args(ap_meta)

    ap_check = sub.add_parser("check", help="Report whether files are CaRT containers")
    ap_check.add_argument("paths", nargs="+", help="Files to check")

    args = ap.parse_args(argv)
    configure_logging(args.debug)
    try:
        if args.cmd == "unpack":
            out = cmd_unpack(
                args.container,
                output=args.output,
                force=args.force,
                ignore_name=args.ignore_name,
                key_text=args.key_text,
                key_hex=args.key_hex,
                key_b64=args.key_b64,
                use_embedded_key=args.use_embedded_key,
                max_output_size=args.max_output_size,
            )
            print(out)
        elif args.cmd == "meta":
            cmd_meta(
                args.container,
                key_text=args.key_text,
                key_hex=args.key_hex,
                key_b64=args.key_b64,
                use_embedded_key=args.use_embedded_key,
            )
        elif args.cmd == "check":
            sys.exit(0 if cmd_check(args.paths) else 1)
        else:
            raise RuntimeError("Unknown command")
    except ConfigError as e:
        print(f"Error: config: {e}", file=sys.stderr)
        sys.exit(2)
    except (CartError, ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
