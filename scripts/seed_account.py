"""Create or update a studio account and print a bearer token for it."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import timedelta

from src.photo_studio.auth.auth_service import IdentityService
from src.photo_studio.config import load_config
from src.photo_studio.db.db_models import ProfileModel, UsageCreditsModel
from src.photo_studio.studio.studio_models import Tier


@dataclass(slots=True)
class SeedSummary:
    user_id: str
    tier: str
    credits_limit: int
    token: str


def seed_account(
    user_id: str,
    *,
    tier: str,
    credits_limit: int,
    first_item_pass: bool,
    token_hours: int,
) -> SeedSummary:
    """Upsert profile and usage rows; usage counters are left untouched."""
    config = load_config()
    tier_label = Tier.parse(tier).label

    with config.session_factory() as session:
        profile = session.get(ProfileModel, user_id)
        if profile is None:
            profile = ProfileModel(user_id=user_id)
            session.add(profile)
        profile.subscription_tier = tier_label
        profile.first_item_pass_used = not first_item_pass

        usage = session.get(UsageCreditsModel, user_id)
        if usage is None:
            usage = UsageCreditsModel(user_id=user_id)
            session.add(usage)
        usage.credits_limit = credits_limit
        session.commit()

    token = IdentityService(signing_key=config.jwt_signing_key).issue_token(
        user_id, ttl=timedelta(hours=token_hours)
    )
    return SeedSummary(user_id=user_id, tier=tier_label, credits_limit=credits_limit, token=token)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a studio account for local testing.")
    parser.add_argument("user_id")
    parser.add_argument("--tier", default="free", choices=[tier.label for tier in Tier])
    parser.add_argument("--limit", type=int, default=5, help="Monthly credit limit (999999 = unlimited).")
    parser.add_argument(
        "--first-item-pass", action="store_true", help="Grant the one-time free first item."
    )
    parser.add_argument("--token-hours", type=int, default=24)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        summary = seed_account(
            args.user_id,
            tier=args.tier,
            credits_limit=args.limit,
            first_item_pass=args.first_item_pass,
            token_hours=args.token_hours,
        )
    except Exception as exc:
        print(f"seed failed: {exc}", file=sys.stderr)
        return 2

    print(
        f"seeded user={summary.user_id}, tier={summary.tier}, limit={summary.credits_limit}",
        file=sys.stdout,
    )
    print(summary.token, file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
