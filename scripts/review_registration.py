"""
Approve or reject a submitted company registration.

Usage:
    python scripts/review_registration.py USER_ID approved
    python scripts/review_registration.py USER_ID rejected
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import MarketplaceError
from domain.registration import RegistrationStatus
from repositories.kv_store import SupabaseKeyValueStore
from services.registration_service import review_registration


def main() -> int:
    parser = argparse.ArgumentParser(description="Review a company registration")
    parser.add_argument("user_id", help="Owner of the registration")
    parser.add_argument(
        "decision",
        choices=[RegistrationStatus.APPROVED.value, RegistrationStatus.REJECTED.value],
        help="Review outcome",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    try:
        registration = review_registration(
            SupabaseKeyValueStore(), args.user_id, RegistrationStatus(args.decision)
        )
    except MarketplaceError as e:
        print(f"\nERROR: {e.message}", file=sys.stderr)
        return 1

    print(f"{registration.company.company_name}: {registration.status.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
