"""
Create a dashboard admin with a hashed password.

Usage:
    python -m scripts.create_admin --email hq@example.com --password 'S3cret!' --role super
    python -m scripts.create_admin --email lead@example.com --password 'S3cret!' --role community --codes P1,P2
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hcp.config import settings
from hcp.core.errors import HCPError
from hcp.repositories import Repositories
from hcp.schemas.admin import AdminUser
from hcp.schemas.enums import AdminRole, AdminStatus
from hcp.storage import build_storage


ROLES = {
    "super": AdminRole.SUPER_ADMIN,
    "regional": AdminRole.REGIONAL_ADMIN,
    "community": AdminRole.COMMUNITY_ADMIN,
}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a dashboard admin")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="")
    parser.add_argument("--role", choices=sorted(ROLES), default="community")
    parser.add_argument("--codes", default="", help="Comma-separated partner codes")
    return parser.parse_args(argv)


async def create_admin(args: argparse.Namespace) -> int:
    storage = build_storage(settings)
    await storage.initialize()
    try:
        repos = Repositories(storage, settings)
        admin = await repos.admins.create(
            AdminUser(
                name=args.name or args.email,
                email=args.email,
                role=ROLES[args.role],
                status=AdminStatus.ACTIVE,
                assigned_codes=[c.strip() for c in args.codes.split(",") if c.strip()],
                password=args.password,
            ),
            actor_id="system",
        )
    except HCPError as e:
        print(f"Could not create admin: {e.message}")
        return 1
    finally:
        await storage.close()

    print(f"Created admin {admin.email} ({admin.role.value}) with id {admin.id}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_admin(parse_args())))
