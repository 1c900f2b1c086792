"""aiohttp applications for the bot and the media host."""
