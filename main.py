"""
CoachShare client entry point.
Restores the saved session and prints the upcoming training schedule.
"""

import asyncio
from datetime import datetime

from loguru import logger

from coachshare.analysis import bucketize, overall_intensity, profile
from coachshare.api import CoachShareApi
from coachshare.services.errors import ApiError


async def main() -> None:
    """Main function"""
    logger.info("Starting CoachShare client...")

    async with CoachShareApi.from_settings() as api:
        try:
            session = await api.auth.initialize_session()
            if not session.is_authenticated or session.user is None:
                logger.info("No active session. Log in to see your schedule.")
                return

            logger.info(f"Signed in as {session.user.name} ({session.user.role})")

            days = await api.regimens.schedule_days()
            groups = bucketize(days, datetime.now())
            for bucket, entries in groups.items():
                if not entries:
                    continue
                print(f"\n{bucket.value}")
                for entry in entries:
                    print(
                        f"  {entry.date:%a %d %b}  {entry.name}"
                        f"  [{entry.intensity or '-'}]  {entry.regimen_name}"
                    )

            print(f"\nOverall intensity: {overall_intensity(profile(days))}")

        except ApiError as e:
            logger.error(f"API error ({e.status}): {e.message}")

    logger.info("CoachShare client stopped")


if __name__ == "__main__":
    asyncio.run(main())
