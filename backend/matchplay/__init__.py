"""Match-play tournament scoring: results, scoreboard and persistence."""
