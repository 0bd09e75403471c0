"""Command-line front end for the identity switcher."""

from __future__ import annotations
import argparse, json, sys
from typing import List, Optional
from .crypto import fingerprint
from .errors import GitLedgerError
from .events import ACCOUNT_REMOVED, ALL_ACCOUNTS_REMOVED
from .switcher import IdentitySwitcher


def _emit(args, data, text: str) -> None:
    if args.json:
        print(json.dumps(data, sort_keys=True))
    else:
        print(text)


def _fpr(sw: IdentitySwitcher, email: str) -> str:
    try:
        return fingerprint(sw.get_public_key(email))
    except (GitLedgerError, ValueError):
        return "?"


def cmd_list(sw: IdentitySwitcher, args) -> None:
    identities = sw.list()
    rows = [dict(i.to_dict(), fingerprint=_fpr(sw, i.email)) for i in identities]
    lines = [f"{'*' if r['is_active'] else ' '} {r['name']} <{r['email']}>  {r['fingerprint']}" for r in rows]
    _emit(args, rows, "\n".join(lines) or "no identities")


def cmd_current(sw: IdentitySwitcher, args) -> None:
    cur = sw.query_current()
    tag = "" if cur.is_active else "  (not managed)"
    _emit(args, cur.to_dict(), f"{cur.name} <{cur.email}>{tag}")


def cmd_add(sw: IdentitySwitcher, args) -> None:
    pub = sw.create(args.name, args.email)
    _emit(args, {"email": args.email, "public_key": pub}, pub.rstrip("\n"))


def cmd_switch(sw: IdentitySwitcher, args) -> None:
    ident = sw.switch_to(args.email)
    _emit(args, ident.to_dict(), f"switched to {ident.name} <{ident.email}>")


def cmd_remove(sw: IdentitySwitcher, args) -> None:
    sw.remove(args.email)


def cmd_remove_all(sw: IdentitySwitcher, args) -> None:
    if not args.yes:
        raise SystemExit("refusing to remove every identity without --yes")
    sw.remove_all()


def cmd_key(sw: IdentitySwitcher, args) -> None:
    pub = sw.get_public_key(args.email)
    _emit(args, {"email": args.email, "public_key": pub, "fingerprint": _fpr(sw, args.email)}, pub.rstrip("\n"))


def cmd_regenerate(sw: IdentitySwitcher, args) -> None:
    pub = sw.regenerate_key(args.email)
    _emit(args, {"email": args.email, "public_key": pub}, pub.rstrip("\n"))


def cmd_clear(sw: IdentitySwitcher, args) -> None:
    sw.clear_current()
    _emit(args, {"cleared": True}, "git global identity cleared")


def cmd_verify(sw: IdentitySwitcher, args) -> int:
    problems = sw.verify()
    _emit(args, {"ok": not problems, "problems": problems}, "\n".join(problems) or "ok")
    return 1 if problems else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gitledger", description="Switch between git/SSH identities")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List known identities").set_defaults(func=cmd_list)
    sub.add_parser("current", help="Show git's current global identity").set_defaults(func=cmd_current)

    p = sub.add_parser("add", help="Create an identity with a fresh SSH key and activate it")
    p.add_argument("name")
    p.add_argument("email")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("switch", help="Activate a known identity")
    p.add_argument("email")
    p.set_defaults(func=cmd_switch)

    p = sub.add_parser("remove", help="Delete an identity and its key")
    p.add_argument("email")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("remove-all", help="Delete every identity, the installed key and git identity")
    p.add_argument("--yes", action="store_true", help="Confirm removal")
    p.set_defaults(func=cmd_remove_all)

    p = sub.add_parser("key", help="Print an identity's public key")
    p.add_argument("email")
    p.set_defaults(func=cmd_key)

    p = sub.add_parser("regenerate", help="Replace an identity's SSH key and activate it")
    p.add_argument("email")
    p.set_defaults(func=cmd_regenerate)

    sub.add_parser("clear", help="Unset git's global name/email").set_defaults(func=cmd_clear)
    sub.add_parser("verify", help="Check registry, key files and git config agree").set_defaults(func=cmd_verify)
    return parser


def main(argv: Optional[List[str]] = None, switcher: Optional[IdentitySwitcher] = None) -> int:
    args = build_parser().parse_args(argv)
    sw = switcher or IdentitySwitcher.from_settings()

    unsubscribers = [
        sw.bus.subscribe(ACCOUNT_REMOVED, lambda email: _emit(args, {"removed": email}, f"removed {email}")),
        sw.bus.subscribe(ALL_ACCOUNTS_REMOVED, lambda _: _emit(args, {"removed": None}, "removed all identities")),
    ]
    try:
        rc = args.func(sw, args)
    except GitLedgerError as e:
        if args.json:
            print(json.dumps(e.to_dict(), sort_keys=True), file=sys.stderr)
        else:
            print(f"error: {e.message}", file=sys.stderr)
        return 1
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
    return rc or 0


if __name__ == "__main__":
    sys.exit(main())
