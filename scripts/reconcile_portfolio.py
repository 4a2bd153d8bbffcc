"""
Rebuild buyer portfolios from the purchase ledger.

The purchase records are authoritative. Use this after an incident (e.g. a
failed purchase whose rollback could not complete) to bring the stored
portfolio back in line with the ledger.

Usage:
    python scripts/reconcile_portfolio.py USER_ID [USER_ID ...]
    python scripts/reconcile_portfolio.py --all
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.kv_store import SupabaseKeyValueStore
from repositories.purchase_repository import list_purchases
from services.portfolio_service import rebuild_portfolio


def main() -> int:
    parser = argparse.ArgumentParser(description="Rebuild portfolios from the purchase ledger")
    parser.add_argument("user_ids", nargs="*", help="User ids to reconcile")
    parser.add_argument("--all", action="store_true", help="Reconcile every user with purchases")
    args = parser.parse_args()

    if not args.user_ids and not args.all:
        parser.error("give at least one USER_ID or --all")

    logging.basicConfig(level=logging.INFO)
    store = SupabaseKeyValueStore()

    try:
        user_ids = args.user_ids
        if args.all:
            user_ids = sorted({purchase.user_id for purchase in list_purchases(store)})

        for user_id in user_ids:
            portfolio = rebuild_portfolio(store, user_id)
            print(
                f"{user_id}: {portfolio.total_credits} credits, "
                f"{portfolio.total_spent} spent, {portfolio.active_projects} projects"
            )
    except KeyboardInterrupt:
        print("\n\nReconciliation interrupted by user")
        return 130
    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
