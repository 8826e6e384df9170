"""Fear & Greed Index Telegram signal bot."""
