"""Core lesson-building logic: tools, agent loop, planner."""
