"""1:1 chat connection broker for Slack."""
