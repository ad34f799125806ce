import argparse

from app.core.logging import setup_logging
from app.db.database import Base, SessionLocal, engine
from app.services.seed import DEMO_SHOP, DEMO_USER_EMAIL, seed_demo_data


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo warehouses, items and inventory.")
    parser.add_argument("--user-id", default="demo-user")
    parser.add_argument("--email", default=DEMO_USER_EMAIL)
    parser.add_argument("--shop", default=DEMO_SHOP)
    parser.add_argument("--create-tables", action="store_true", help="create tables without running migrations")
    args = parser.parse_args()

    setup_logging()
    if args.create_tables:
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_demo_data(db, args.user_id, email=args.email, shop=args.shop or None)
    finally:
        db.close()


if __name__ == "__main__":
    main()
