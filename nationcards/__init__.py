"""
Nation Cards - Card Game Engine with MCTS Bots

A pure, rules-driven engine for a turn-based nation card game with AI opponents.
The engine provides:
- Immutable state transitions
- Legal action generation
- Heuristic and neural state evaluation
- MCTS bot play and training-record export
"""

__version__ = "0.1.0"
