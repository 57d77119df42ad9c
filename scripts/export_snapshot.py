"""Export snapshot contents to CSV for a GitHub Actions artifact."""
import os
import sys
import csv
import logging
from dotenv import load_dotenv
from agents_radar.infrastructure.snapshot_storage import JsonSnapshotStorage

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

CSV_HEADER = [
    'name_with_owner', 'url', 'stars', 'forks', 'watchers', 'issues',
    'pull_requests', 'language', 'topics', 'license', 'created_at',
    'updated_at', 'is_archived', 'is_fork'
]


def export_to_csv(output_file: str = "repositories.csv"):
    """Export snapshot repositories to CSV file.

    Args:
        output_file: Path to output CSV file
    """
    snapshot_path = os.getenv("SNAPSHOT_PATH", os.path.join("public", "data.json"))

    try:
        snapshot = JsonSnapshotStorage(snapshot_path).load()

        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)

            for repo in sorted(snapshot.repos, key=lambda r: r.stargazer_count, reverse=True):
                writer.writerow([
                    repo.name_with_owner,
                    repo.url,
                    repo.stargazer_count,
                    repo.fork_count,
                    repo.watcher_count,
                    repo.issue_count,
                    repo.pull_request_count,
                    repo.primary_language.name if repo.primary_language else '',
                    ';'.join(repo.topics),
                    (repo.license.spdx_id or repo.license.name) if repo.license else '',
                    repo.created_at.isoformat() if repo.created_at else '',
                    repo.updated_at.isoformat() if repo.updated_at else '',
                    repo.is_archived,
                    repo.is_fork,
                ])

        logger.info(f"Exported {snapshot.count} repositories to {output_file}")

    except Exception as e:
        logger.error(f"Error exporting snapshot: {e}")
        sys.exit(1)


if __name__ == "__main__":
    output_file = sys.argv[1] if len(sys.argv) > 1 else "repositories.csv"
    export_to_csv(output_file)
