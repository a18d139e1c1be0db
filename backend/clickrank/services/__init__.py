"""Domain services: credentials, sessions, stats and leaderboard.

Routes and socket handlers import from here, keeping transport concerns
separated from the storage rules each operation has to honour.
"""
