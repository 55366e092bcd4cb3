"""
Admin-code digest helper.

    gatekeeper-hash "LOCK-1234"          -> prints the SHA-256 hex
    gatekeeper-hash --check <code> <hex> -> exit 0 if the code matches

Paste the printed hex into lock_code_hash_hex / unlock_code_hash_hex.
"""
from __future__ import annotations

import argparse
import getpass
import sys
from typing import List, Optional

from gatekeeper.security.digest import digest_hex, matches_digest, normalize_code


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gatekeeper-hash", description="Compute admin-code digests.")
    p.add_argument("code", nargs="?", help="code phrase (prompted when omitted)")
    p.add_argument("--check", metavar="HEX", help="verify the code against an existing digest")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    code = args.code if args.code is not None else getpass.getpass("Admin code: ")
    if args.check:
        ok = matches_digest(normalize_code(code), args.check)
        print("match" if ok else "no match")
        return 0 if ok else 1
    print(digest_hex(code))
    return 0


if __name__ == "__main__":
    sys.exit(main())
