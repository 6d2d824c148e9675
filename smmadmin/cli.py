#!/usr/bin/env python3
"""
Admin CLI for smmadmin

Maintenance commands that act on the same database and webhooks as the
running service.

Usage:
    smmadmin-admin token status          # Show the stored global Meta token
    smmadmin-admin token set TOKEN       # Replace the global Meta token
    smmadmin-admin refresh BRAND [--provider instagram|facebook]
    smmadmin-admin dispatch              # Run one scheduled-dispatch sweep
    smmadmin-admin approve POST          # Approve a post and wait for delivery
    smmadmin-admin brands                # List brands
    smmadmin-admin posts BRAND           # List posts of a brand
    smmadmin-admin add-user EMAIL NAME   # Create an admin user (asks for password)
"""

import sys
import getpass
import logging
import argparse
import asyncio
from typing import List, Optional

from smmadmin import __version__
from smmadmin.core import SmmAdmin
from smmadmin.models import META_PROVIDERS, INSTAGRAM
from smmadmin.exceptions import SmmAdminException


def _preview(token: str) -> str:
    """Show only the first and last few characters of a token."""
    if len(token) > 10:
        return f"{token[:6]}...{token[-4:]}"
    return "[short token]"


class AdminCLI:
    """Command implementations on top of a configured SmmAdmin."""

    def __init__(self, app: SmmAdmin):
        self.app = app

    async def token_status(self) -> bool:
        token = await self.app.token_store.get_global_token()
        if not token:
            logging.error("❌ No global Instagram/Facebook token stored")
            logging.info("Use 'token set TOKEN' to store one")
            return False

        logging.info(f"🔑 Global token: {_preview(token)}")
        updated_at = self.app.db.get_global_token_updated_at()
        if updated_at:
            logging.info(f"Last updated: {updated_at.isoformat()}")
        return True

    async def token_set(self, token: str) -> bool:
        token = token.strip()
        if not token:
            logging.error("❌ No token given")
            return False
        await self.app.token_store.set_global_token(token)
        logging.info("✅ Global token stored")
        return True

    async def refresh(self, brand_id: int, provider: str) -> bool:
        brand = self.app.brands.get_brand(brand_id)
        if not brand:
            logging.error(f"❌ Brand {brand_id} not found")
            return False

        credentials = await self.app.refresh_coordinator.refresh_token(brand, provider)
        if credentials is None:
            logging.error(f"❌ Brand {brand.name} has no {provider} credentials")
            return False

        expires_at = credentials.get("expires_at")
        token = credentials.get("access_token")
        logging.info(f"🔄 {provider} credentials for {brand.name}:")
        logging.info(f"Token: {_preview(token) if token else 'none'}")
        logging.info(f"Expires at: {expires_at or 'unknown'}")
        return True

    async def dispatch(self) -> bool:
        delivered = await self.app.dispatcher.run_tick()
        logging.info(f"📬 Dispatch sweep delivered {delivered} post(s)")
        return True

    async def approve(self, post_id: int) -> bool:
        status, message = self.app.posts.approve_post(post_id)
        logging.info(f"👍 {message}")
        await self.app.tasks.drain()

        post = self.app.db.get_post(post_id)
        logging.info(f"Post {post_id} is now {post.status.value}")
        if post.last_error:
            logging.error(f"❌ Last error: {post.last_error}")
            return False
        return True

    async def list_brands(self) -> bool:
        brands = self.app.brands.list_brands()
        if not brands:
            logging.info("No brands found")
            return True
        for brand in brands:
            meta = [p for p in META_PROVIDERS if brand.credentials_for(p)]
            logging.info(f"{brand.id}: {brand.name} (meta: {', '.join(meta) or 'none'})")
        return True

    async def list_posts(self, brand_id: int) -> bool:
        _, _, posts = self.app.brands.get_brand_view(brand_id)
        if not posts:
            logging.info("No posts found")
            return True
        for post in posts:
            schedule = post.schedule_at.isoformat() if post.schedule_at else "-"
            line = f"{post.id}: [{post.status.value}] {post.title or '(untitled)'} @ {schedule}"
            if post.last_error:
                line += f" ({post.last_error})"
            logging.info(line)
        return True

    async def add_user(self, email: str, name: str) -> bool:
        password = getpass.getpass("Password: ")
        user = self.app.users.register(email, password, name)
        logging.info(f"✅ User {user.email} created")
        return True


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Admin CLI for smmadmin")
    parser.add_argument("-c", "--config", default="config.ini", help="Path to config file")
    parser.add_argument(
        "-v", "--version", action="version", version=f"smmadmin {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    token_parser = subparsers.add_parser("token", help="Inspect or replace the global Meta token")
    token_commands = token_parser.add_subparsers(dest="token_command")
    token_commands.add_parser("status", help="Show the stored token")
    set_parser = token_commands.add_parser("set", help="Store a new token")
    set_parser.add_argument("token", help="Long-lived Meta access token")

    refresh_parser = subparsers.add_parser("refresh", help="Refresh a brand's Meta credentials")
    refresh_parser.add_argument("brand_id", type=int)
    refresh_parser.add_argument("--provider", choices=META_PROVIDERS, default=INSTAGRAM)

    subparsers.add_parser("dispatch", help="Run one scheduled-dispatch sweep")

    approve_parser = subparsers.add_parser("approve", help="Approve a post")
    approve_parser.add_argument("post_id", type=int)

    subparsers.add_parser("brands", help="List brands")

    posts_parser = subparsers.add_parser("posts", help="List posts of a brand")
    posts_parser.add_argument("brand_id", type=int)

    user_parser = subparsers.add_parser("add-user", help="Create an admin user")
    user_parser.add_argument("email")
    user_parser.add_argument("name")

    return parser.parse_args(argv)


async def run_command(cli: AdminCLI, args) -> bool:
    """Dispatch parsed arguments to the matching command."""
    if args.command == "token":
        if args.token_command == "set":
            return await cli.token_set(args.token)
        return await cli.token_status()
    if args.command == "refresh":
        return await cli.refresh(args.brand_id, args.provider)
    if args.command == "dispatch":
        return await cli.dispatch()
    if args.command == "approve":
        return await cli.approve(args.post_id)
    if args.command == "brands":
        return await cli.list_brands()
    if args.command == "posts":
        return await cli.list_posts(args.brand_id)
    if args.command == "add-user":
        return await cli.add_user(args.email, args.name)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        cli = AdminCLI(SmmAdmin(args.config, configure_logging=False))
        return 0 if asyncio.run(run_command(cli, args)) else 1
    except KeyboardInterrupt:
        logging.info("Cancelled")
        return 1
    except SmmAdminException as e:
        logging.error(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
