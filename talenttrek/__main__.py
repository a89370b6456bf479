"""
Run the TalentTrek API.

Usage:
    python -m talenttrek                 # start the development server
    python -m talenttrek --init-db       # create the database schema
    python -m talenttrek --seed          # load sample jobs
"""

import argparse
import logging
import sys

from .app import create_app
from .config import Config, ConfigError
from .database import DatabaseManager
from .seed import seed_jobs

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="TalentTrek job board API")
    parser.add_argument("--host", help="Host to bind (default: HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: PORT or 5000)")
    parser.add_argument("--init-db", action="store_true", help="Create the database schema and exit")
    parser.add_argument("--seed", action="store_true", help="Replace all jobs with sample postings and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = Config()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if args.init_db or args.seed:
        with DatabaseManager(config.database_path) as db:
            db.create_schema()
            if args.seed:
                jobs = seed_jobs(db)
                print(f"Seeded {len(jobs)} jobs into {config.database_path}")
        return 0

    try:
        config.validate()
    except ConfigError as e:
        logger.error(str(e))
        logger.error("Create a .env file with at least JWT_SECRET=your_jwt_secret_key_here")
        return 1

    app = create_app(config)
    host = args.host or config.host
    port = args.port or config.port
    logger.info(f"TalentTrek API running on http://{host}:{port} ({config.environment})")
    app.run(host=host, port=port, debug=not config.is_production)
    return 0


if __name__ == "__main__":
    sys.exit(main())
