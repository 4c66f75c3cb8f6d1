#!/usr/bin/env python3
"""
Seed a dev database with one published demo course and three lessons.
Run from repo root after migrating: python scripts/seed-data.py
Uses DATABASE_URL from env or .env.
"""
import asyncio
import sys
import uuid
from pathlib import Path

# Repo root on path for package imports
repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root))

from sqlalchemy import select  # noqa: E402

from progress_engine.config import Settings  # noqa: E402
from progress_engine.database import get_async_engine, get_async_session_factory  # noqa: E402
from progress_engine.models import Course, Lesson  # noqa: E402
from progress_engine.models.enums import ContentType, CourseStatus  # noqa: E402

DEMO_NETWORK_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
DEMO_INSTRUCTOR_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")
DEMO_SLUG = "getting-started"

LESSONS = [
    ("Welcome", "Introduction", ContentType.VIDEO, True),
    ("Setting up", "Introduction", ContentType.TEXT, False),
    ("Your first project", "Hands-on", ContentType.MIXED, False),
]


async def seed_course(url: str) -> None:
    engine = get_async_engine(url)
    factory = get_async_session_factory(engine)
    async with factory() as session:
        existing = await session.execute(
            select(Course).where(Course.network_id == DEMO_NETWORK_ID, Course.slug == DEMO_SLUG)
        )
        if existing.scalar_one_or_none() is not None:
            print("Progress: demo course already present")
            await engine.dispose()
            return

        course = Course(
            network_id=DEMO_NETWORK_ID,
            instructor_id=DEMO_INSTRUCTOR_ID,
            title="Getting Started",
            slug=DEMO_SLUG,
            is_free=True,
            status=CourseStatus.PUBLISHED,
        )
        session.add(course)
        await session.flush()
        for order, (title, module, content_type, preview) in enumerate(LESSONS, start=1):
            session.add(
                Lesson(
                    course_id=course.course_id,
                    title=title,
                    module_name=module,
                    content_type=content_type,
                    sort_order=order,
                    is_preview=preview,
                )
            )
        await session.commit()
        print(f"Progress: seeded course {course.course_id} with {len(LESSONS)} lessons")
    await engine.dispose()


def main() -> None:
    settings = Settings()
    try:
        asyncio.run(seed_course(settings.database_url))
    except Exception as e:
        print(f"Progress seed skip or error: {e}", file=sys.stderr)
        sys.exit(1)
    print("Seed done.")


if __name__ == "__main__":
    main()
