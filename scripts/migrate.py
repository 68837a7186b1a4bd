"""Script to run database migrations."""

import argparse
import sys

from alembic import command
from alembic.config import Config


def main() -> None:
    """Upgrade, downgrade or autogenerate a revision."""
    parser = argparse.ArgumentParser(description="EZHealth database migrations")
    subparsers = parser.add_subparsers(dest="action")

    upgrade = subparsers.add_parser("upgrade", help="Upgrade to a revision (default: head)")
    upgrade.add_argument("revision", nargs="?", default="head")

    downgrade = subparsers.add_parser("downgrade", help="Downgrade to a revision")
    downgrade.add_argument("revision")

    create = subparsers.add_parser("create", help="Autogenerate a new revision")
    create.add_argument("message", nargs="+")

    args = parser.parse_args()
    alembic_cfg = Config("alembic.ini")

    try:
        if args.action == "downgrade":
            command.downgrade(alembic_cfg, args.revision)
        elif args.action == "create":
            command.revision(alembic_cfg, message=" ".join(args.message), autogenerate=True)
        else:
            command.upgrade(alembic_cfg, getattr(args, "revision", "head"))
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        sys.exit(1)

    print("✓ Done")


if __name__ == "__main__":
    main()
