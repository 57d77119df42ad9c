"""Verify that the setup is correct before running the data collection job."""
import asyncio
import os
import sys
import aiohttp
from dotenv import load_dotenv

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


GITHUB_RATE_LIMIT_URL = "https://api.github.com/rate_limit"


def get_token():
    return os.getenv("GH_PAT") or os.getenv("GITHUB_TOKEN")


def check_environment_variables():
    """Check required environment variables."""
    print("Checking environment variables...")

    optional_vars = ["SNAPSHOT_PATH", "SEARCH_FILENAME", "SIZE_UPPER_BOUND", "SEARCH_PAGE_DELAY", "ENRICH_BATCH_SIZE"]

    if not get_token():
        print("❌ Missing required environment variable: GH_PAT or GITHUB_TOKEN")
        return False

    print("✅ Required environment variables set")

    for var in optional_vars:
        if os.getenv(var):
            print(f"   {var}: {os.getenv(var)}")

    return True


def check_snapshot_directory():
    """Check that the snapshot directory is writable."""
    print("\nChecking snapshot directory...")

    snapshot_path = os.getenv("SNAPSHOT_PATH", os.path.join("public", "data.json"))
    directory = os.path.dirname(os.path.abspath(snapshot_path))

    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        print(f"❌ Cannot create {directory}: {e}")
        return False

    if not os.access(directory, os.W_OK):
        print(f"❌ {directory} is not writable")
        return False

    print(f"✅ Snapshot directory {directory} is writable")
    if os.path.exists(snapshot_path):
        print(f"   Existing snapshot: {snapshot_path} ({os.path.getsize(snapshot_path):,} bytes)")
    return True


async def fetch_rate_limit(token):
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "User-Agent": "agents-md-radar",
    }
    async with aiohttp.ClientSession(headers=headers) as session:
        async with session.get(GITHUB_RATE_LIMIT_URL) as response:
            if response.status != 200:
                return response.status, None
            return response.status, await response.json()


def check_github_token():
    """Verify GitHub token is accepted by the API."""
    print("\nChecking GitHub token...")

    token = get_token()
    if not token:
        print("❌ GH_PAT / GITHUB_TOKEN not set")
        return False

    status, data = asyncio.run(fetch_rate_limit(token))
    if data is None:
        print(f"❌ GitHub API rejected the token (HTTP {status})")
        return False

    resources = data.get("resources", {})
    for name in ("search", "code_search", "graphql"):
        if name in resources:
            resource = resources[name]
            print(f"   {name}: {resource.get('remaining')}/{resource.get('limit')} remaining")
    print("✅ GitHub token is valid")
    return True


def main():
    """Run all verification checks."""
    print("=" * 60)
    print("AGENTS.md Radar - Setup Verification")
    print("=" * 60)

    checks = [
        ("Environment Variables", check_environment_variables),
        ("Snapshot Directory", check_snapshot_directory),
        ("GitHub Token", check_github_token),
    ]

    results = {}
    for name, check_func in checks:
        try:
            results[name] = check_func()
        except Exception as e:
            print(f"❌ {name} check failed with exception: {e}")
            results[name] = False

    print("\n" + "=" * 60)
    print("Verification Summary")
    print("=" * 60)

    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"{status}: {name}")

    if all(results.values()):
        print("\n✅ All checks passed! Ready to run the collector.")
        print("\nNext steps:")
        print("  python fetch_data.py")
        sys.exit(0)
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        print("\nCommon solutions:")
        print("  - Set the token: export GITHUB_TOKEN=your_token")
        print("  - Point SNAPSHOT_PATH at a writable location")
        sys.exit(1)


if __name__ == "__main__":
    main()
