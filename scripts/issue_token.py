"""Issue an access token for a principal, e.g. for manual API testing.

Usage: python scripts/issue_token.py <uuid> Patient|Doctor|Admin [--minutes N]
"""

import argparse
from datetime import timedelta
from uuid import UUID

from ezhealth.core.security import create_access_token
from ezhealth.schemas.auth import Role


def main() -> None:
    """Print a bearer token."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("principal_id", type=UUID)
    parser.add_argument("role", choices=[role.value for role in Role])
    parser.add_argument("--minutes", type=int, default=60)
    args = parser.parse_args()

    token = create_access_token(
        {"sub": str(args.principal_id), "role": args.role},
        expires_delta=timedelta(minutes=args.minutes),
    )
    print(token)


if __name__ == "__main__":
    main()
