"""
Provision an application user with roles. Run from the project root with .env loaded.

Usage:
  python scripts/create_user.py it.lead@company.com 'S3cure-pass' it
  python scripts/create_user.py auditor@company.com 'S3cure-pass' auditor --name "Audit Team"
  python scripts/create_user.py hr@company.com 'S3cure-pass' hr it
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from itam.core.exceptions import AssetTrackerError
from itam.db.session import SessionLocal
from itam.models.user import AppRole
from itam.services.user_service import create_profile


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an asset tracker user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("roles", nargs="+", choices=[r.value for r in AppRole])
    parser.add_argument("--name", dest="full_name", default=None)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        result = create_profile(
            db,
            actor=None,
            email=args.email,
            password=args.password,
            full_name=args.full_name,
            roles=[AppRole(r) for r in args.roles],
        )
    except AssetTrackerError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Created user {result.record.id} ({args.email}) with roles: {', '.join(sorted(args.roles))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
