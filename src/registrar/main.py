import logging
import os
from dotenv import load_dotenv

# Load .env only locally
load_dotenv()

from registrar import create_app
from registrar.config import Config

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def run():
    app = create_app()
    port = int(os.environ.get("PORT", 3000))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "").lower() in ("1", "true"))


if __name__ == "__main__":
    run()
