#!/usr/bin/env python
"""
Seed script to load demo shoes and a demo seller profile for local smoke tests.
"""
from __future__ import annotations

import argparse
import sys

from solemarket.backends import SupabaseListingStore, SupabaseProfileStore, utcnow
from solemarket.demo_data import DEMO_SELLER_ID, demo_listings
from solemarket.models import UserProfile
from solemarket.supabase_client import get_supabase


def seed():
    client = get_supabase()
    profiles = SupabaseProfileStore(client)
    profiles.create_profile(
        UserProfile(id=DEMO_SELLER_ID, name="Demo Seller", email="seller@demo.test", role="admin", created_at=utcnow())
    )

    listings = demo_listings()
    for listing in listings:
        # Stable ids make re-seeding an upsert rather than a duplicate.
        record = listing.model_dump(mode="json", exclude_none=True)
        client.table(SupabaseListingStore.table).upsert(record, on_conflict="id").execute()

    print(f"Seeded demo seller and {len(listings)} shoes")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo shoes into Supabase tables.")
    parser.parse_args()
    try:
        seed()
    except Exception as exc:
        print(
            "Seed failed:",
            exc,
            "\nCommon fixes:",
            "\n- Ensure .env has real SUPABASE_URL and SUPABASE_SERVICE_KEY (not placeholders)."
            "\n- Verify network access to Supabase.",
            file=sys.stderr,
        )
        sys.exit(1)
