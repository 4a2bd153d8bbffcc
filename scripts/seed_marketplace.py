"""
Seed the marketplace - run once per deployment.

Creates, if absent:
- the private company-documents storage bucket
- the four sample blue carbon projects
- the initial platform statistics

Safe to run repeatedly; existing data is never overwritten.
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.config import get_settings
from repositories.kv_store import SupabaseKeyValueStore
from repositories.storage_repository import SupabaseDocumentStorage
from services.seed_service import seed_marketplace


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    print("=" * 60)
    print("SEEDING BLUE CARBON MARKETPLACE")
    print("=" * 60)

    try:
        report = seed_marketplace(
            SupabaseKeyValueStore(),
            SupabaseDocumentStorage(settings.documents_bucket),
        )
    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    print(f"Documents bucket created: {'yes' if report.bucket_created else 'no (exists)'}")
    print(f"Projects created:         {', '.join(report.projects_created) or 'none (all exist)'}")
    print(f"Platform stats created:   {'yes' if report.stats_created else 'no (exists)'}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
