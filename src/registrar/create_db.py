# src/registrar/create_db.py
import logging

from dotenv import load_dotenv

from registrar import create_app
from registrar.seed import reset_database


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    with app.app_context():
        # create_app already resets when RESET_DB_ON_START is on
        if not app.config.get("RESET_DB_ON_START", True):
            reset_database(app)
        print("Tables created at:", app.config["SQLALCHEMY_DATABASE_URI"])


if __name__ == "__main__":
    main()
