import asyncio
import os
import sys
import logging
import aiohttp
from dotenv import load_dotenv
from sqlalchemy.exc import ArgumentError

from repo_dashboard.domain.exceptions import DashboardException
from repo_dashboard.domain.reference import resolve
from repo_dashboard.infrastructure.github_client import GitHubRestClient
from repo_dashboard.infrastructure.database import PostgresRepository
from repo_dashboard.application.repository_browser import RepositoryBrowser, FileTreeNavigator
from repo_dashboard.application.database_status import DatabaseStatusMonitor
from repo_dashboard.application.sync_service import RepositorySyncService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


async def main():
    # Load environment variables from .env file
    load_dotenv()

    if len(sys.argv) < 2:
        logger.error("Usage: repo-dashboard <owner/name | https://github.com/owner/name> [path]")
        sys.exit(1)

    reference_input = sys.argv[1]
    path = sys.argv[2] if len(sys.argv) > 2 else ""

    # GitHub token is optional; anonymous requests work for public repositories
    github_token = os.getenv("GITHUB_TOKEN")
    db_url = os.getenv("DATABASE_URL")
    sync_enabled = os.getenv("SYNC_TO_DATABASE", "").lower() in TRUTHY

    try:
        ref = resolve(reference_input)
    except DashboardException as e:
        logger.error(str(e))
        sys.exit(1)

    github_client = GitHubRestClient(token=github_token)

    try:
        gateway = PostgresRepository(db_url=db_url) if db_url else None
    except ArgumentError as e:
        logger.error(f"DATABASE_URL is not a valid database URL: {e}")
        sys.exit(1)

    try:
        async with aiohttp.ClientSession() as session:
            browser = RepositoryBrowser(github_client=github_client, session=session)

            metadata = await browser.fetch_metadata(ref)
            logger.info(
                f"{metadata.full_name}: {metadata.description or 'no description'} "
                f"[{metadata.language or 'unknown language'}, {metadata.size} KB, "
                f"default branch {metadata.default_branch}]"
            )

            navigator = FileTreeNavigator(browser=browser, ref=ref)
            for name in filter(None, path.split("/")):
                navigator.enter_directory(name)
            listing = await navigator.refresh()
            if listing is None:
                logger.error(f"Could not list {ref.full_name}:{path or '/'}: {navigator.error}")
            else:
                for entry in listing.entries:
                    suffix = "/" if entry.is_directory else ""
                    logger.info(f"  {entry.name}{suffix}")

            if gateway is None:
                logger.info("DATABASE_URL is not set; skipping database status.")
                return

            monitor = DatabaseStatusMonitor(gateway)
            status = await monitor.refresh()

            if sync_enabled and status.is_ready:
                sync_service = RepositorySyncService(browser=browser, gateway=gateway)
                persisted = await sync_service.sync_repository(ref)
                if persisted is not None:
                    await sync_service.sync_directory(persisted, ref, navigator.path)
                await monitor.refresh()
            elif sync_enabled:
                logger.warning("Database is not ready; nothing was synced.")
    except DashboardException as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)
    finally:
        if gateway is not None:
            await gateway.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
