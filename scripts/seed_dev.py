from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker
from luckydraw.db.engine import make_engine
from luckydraw.models import Base, DrawConfiguration, Subscriber


def main() -> None:
    """Seed the development database with sample data."""
    engine = make_engine()

    # Drop and recreate all tables for a clean reset of the schema.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        # Default configuration: 50/30/20 split, 3 winners, ₹5 floor
        session.add(DrawConfiguration(created_at=now))

        # Admin
        session.add(
            Subscriber(
                uid="admin_01",
                email="admin@example.com",
                is_admin=True,
                created_at=now,
                updated_at=now,
            )
        )

        # Subscribers; every fourth one won two weeks ago and is cooling down
        for idx in range(1, 21):
            session.add(
                Subscriber(
                    uid=f"user_{idx:02d}",
                    email=f"user{idx:02d}@example.com",
                    is_subscribed=idx != 20,
                    last_won_at=now - timedelta(days=14) if idx % 4 == 0 else None,
                    created_at=now,
                    updated_at=now,
                )
            )

    print("Development database seeded.")


if __name__ == "__main__":
    main()
