from datetime import datetime, timezone

from tutorly.db.models import Profile
from tutorly.db.session import SessionLocal


DEMO_TUTOR_ID = "demo_tutor"
DEMO_STUDENT_ID = "demo_student"


def seed_demo_profiles() -> None:
    session = SessionLocal()
    try:
        existing = session.query(Profile).filter(Profile.id == DEMO_TUTOR_ID).first()
        if existing is not None:
            print(f"Demo tutor already exists with id={existing.id}")
            return

        now = datetime.now(timezone.utc)
        tutor = Profile(
            id=DEMO_TUTOR_ID,
            full_name="Demo Tutor",
            email="tutor@example.com",
            role="tutor",
            subjects=["Mathematics", "Physics"],
            hourly_rate=45,
            timezone="America/New_York",
            availability={
                "monday": [{"start": "09:00", "end": "12:00"}, {"start": "14:00", "end": "18:00"}],
                "wednesday": [{"start": "09:00", "end": "17:00"}],
                "saturday": [{"start": "10:00", "end": "14:00"}],
            },
            created_at=now,
            updated_at=now,
        )
        student = Profile(
            id=DEMO_STUDENT_ID,
            full_name="Demo Student",
            email="student@example.com",
            role="student",
            subjects=[],
            timezone="America/New_York",
            availability={},
            created_at=now,
            updated_at=now,
        )
        session.add_all([tutor, student])
        session.commit()
        print(f"Created demo tutor id={tutor.id} and student id={student.id}")
    finally:
        session.close()


if __name__ == "__main__":
    seed_demo_profiles()
