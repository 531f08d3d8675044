import sys
import logging

from bot import PasswordGeneratorBot
from config import BOT_TOKEN

logger = logging.getLogger(__name__)

def main():
    if not BOT_TOKEN:
        logger.error("BOT_TOKEN environment variable is not set")
        sys.exit(1)

    bot = PasswordGeneratorBot(BOT_TOKEN)
    bot.run()

if __name__ == '__main__':
    main()
