"""
Inspect and extend the policy store. Run from project root:
  python -m rolegate.scripts.policy list
  python -m rolegate.scripts.policy add-rule SUBJECT OBJECT ACTION
  python -m rolegate.scripts.policy add-grouping CHILD PARENT
Running servers pick up changes on restart.
"""
import argparse
import sys

from rolegate.core.config import get_settings
from rolegate.core.database import build_engine, build_session_factory
from rolegate.policy import PolicyStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage Rolegate policy rules and role groupings.")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Print all rules and groupings")
    add_rule = sub.add_parser("add-rule", help="Allow SUBJECT to perform ACTION on OBJECT")
    add_rule.add_argument("subject")
    add_rule.add_argument("object")
    add_rule.add_argument("action")
    add_grouping = sub.add_parser("add-grouping", help="Make CHILD inherit every rule of PARENT")
    add_grouping.add_argument("child")
    add_grouping.add_argument("parent")
    args = parser.parse_args(argv)

    settings = get_settings()
    engine = build_engine(settings.database)
    try:
        return _run(args, PolicyStore(build_session_factory(engine)))
    finally:
        engine.dispose()


def _run(args: argparse.Namespace, store: PolicyStore) -> int:
    if args.command == "list":
        rules, groupings = store.load()
        for rule in rules:
            print("p, " + ", ".join(rule))
        for grouping in groupings:
            print("g, " + ", ".join(grouping))
        return 0

    if args.command == "add-rule":
        added = store.add_rule(args.subject, args.object, args.action.upper())
    else:
        added = store.add_grouping(args.child, args.parent)
    if not added:
        print("Already present; nothing to do.", file=sys.stderr)
        return 1
    print("Added.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
