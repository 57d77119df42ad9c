"""Query and display statistics about the collected snapshot."""
import os
import sys
from dotenv import load_dotenv
from agents_radar.domain.stats import compute_stats
from agents_radar.infrastructure.snapshot_storage import JsonSnapshotStorage

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


STAR_RANGES = [
    (0, "0"),
    (10, "1-9"),
    (100, "10-99"),
    (1000, "100-999"),
    (10000, "1K-9.9K"),
]


def get_snapshot_path() -> str:
    """Snapshot location from the environment."""
    return os.getenv("SNAPSHOT_PATH", os.path.join("public", "data.json"))


def print_section(title: str):
    """Print a section header."""
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def star_range_label(stars: int) -> str:
    """Bucket a star count for the distribution table."""
    if stars == 0:
        return "0"
    for upper, label in STAR_RANGES[1:]:
        if stars < upper:
            return label
    return "10K+"


def display_statistics():
    """Display various statistics about the collected data."""
    snapshot = JsonSnapshotStorage(get_snapshot_path()).load()
    repos = snapshot.repos
    stats = compute_stats(repos)

    # Overall
    print_section("Overall Statistics")
    print(f"Snapshot generated at: {snapshot.generated_at}")
    print(f"Total repositories: {stats.total_repos:,}")
    print(f"Total stars: {stats.total_stars:,}")
    print(f"Total forks: {stats.total_forks:,}")
    print(f"Average stars: {stats.avg_stars:,}")

    # Top repositories
    print_section("Top 10 Repositories by Stars")
    print(f"{'Repository':<40} {'Stars':>15}")
    print("-" * 60)
    for repo in sorted(repos, key=lambda r: r.stargazer_count, reverse=True)[:10]:
        print(f"{repo.name_with_owner:<40} {repo.stargazer_count:>15,}")

    # Repositories by star ranges
    print_section("Distribution by Star Count")
    buckets = {}
    for repo in repos:
        label = star_range_label(repo.stargazer_count)
        buckets[label] = buckets.get(label, 0) + 1

    print(f"{'Star Range':<20} {'Count':>15} {'Percentage':>15}")
    print("-" * 60)
    for label in [label for _, label in STAR_RANGES] + ["10K+"]:
        count = buckets.get(label, 0)
        if not count:
            continue
        percentage = (count / stats.total_repos * 100) if stats.total_repos > 0 else 0
        print(f"{label:<20} {count:>15,} {percentage:>14.1f}%")

    # Languages
    print_section("Top Languages")
    print(f"{'Language':<30} {'Repos':>10} {'Color':>15}")
    print("-" * 60)
    for language in stats.top_languages[:10]:
        print(f"{language.name:<30} {language.count:>10,} {language.color or '-':>15}")

    # Topics
    print_section("Top Topics")
    for name, count in stats.top_topics:
        print(f"{name:<40} {count:>10,}")

    # Licenses
    print_section("License Distribution")
    for name, count in stats.license_distribution:
        print(f"{name:<40} {count:>10,}")

    print("\n" + "=" * 60)
    print("Query completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    try:
        display_statistics()
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
