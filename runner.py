import logging
import os
import sys
from mentorhub import create_app

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def main():
    try:
        app = create_app()
    except Exception as e:
        logger.error(f"Error creating Flask app: {e}")
        sys.exit(1)

    port = int(os.environ.get('PORT', 5000))
    logger.info("=" * 50)
    logger.info(f"Starting MentorHub back office on port {port}...")
    logger.info("=" * 50)

    try:
        app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        from mentorhub.utils.scheduler import shutdown_scheduler
        shutdown_scheduler()
        sys.exit(0)


if __name__ == '__main__':
    main()
