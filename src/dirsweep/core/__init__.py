"""Core sweep machinery - pacing, block signals, browser agent, orchestration."""
