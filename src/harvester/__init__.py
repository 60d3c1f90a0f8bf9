"""Historical kline acquisition: live API crawl and bulk archive download."""
