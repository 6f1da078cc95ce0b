import argparse
import logging
from florist.database import SessionLocal, engine
from florist import models
from florist.crud import create_or_update_admin, get_translation_settings

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger("create_admin")

def main():
    parser = argparse.ArgumentParser(description="Create an admin user, or reset the password of an existing one.")
    parser.add_argument("username", type=str, help="The username for the admin.")
    parser.add_argument("password", type=str, help="The password for the admin.")
    args = parser.parse_args()

    logger.info("Creating database tables...")
    models.Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        get_translation_settings(db)
        logger.info(f"Saving admin '{args.username}'...")
        user = create_or_update_admin(db, username=args.username, password=args.password)
        logger.info(f"Admin '{user.username}' is ready.")
    finally:
        db.close()

if __name__ == "__main__":
    main()
