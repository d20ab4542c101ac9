# Routes package init
"""
VerseRank Backend: API Routes Package
======================================

Route Inventory:
    - progress.py:     POST /api/memorized-verses     (record a memorization)
                       GET  /api/memorized-verses     (list the user's verses)
                       GET  /api/progress             (rank, progress, next rank)
                       GET  /api/progress/history     (level-up history)
    - ranks.py:        GET  /api/ranks                (the rank ladder)
    - leaderboard.py:  GET  /api/leaderboard          (ranked page + own entry)
    - health.py:       GET  /health                   (service health check)

Design Principle:
    Routes are THIN. They extract the principal and parameters, call a
    service, and set the status code. Bounds checks live in the services so
    they raise the same ValidationError (400) whether called over HTTP or not.
"""
