# Services package init
"""
VerseRank Backend: Services Layer
==================================

Service Inventory:
    - rank_calculator: the rank table and pure rank arithmetic (no I/O)
    - ProgressService: records memorizations, reads progress and history
    - LeaderboardService: ranked pages over all users' counters

Services receive the AsyncSession as an argument on every call and hold no
per-request state, so each module exposes one shared instance.
"""
