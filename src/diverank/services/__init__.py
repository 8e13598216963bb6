"""Services: storage, matchmaking, recording, leaderboard and replay."""
